"""The two sides of an order book together, with depth queries and cancellation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from perpbook.bookside import BookSide
from perpbook.nodes import LeafNode
from perpbook.types import Side


class InvalidOrderIdError(KeyError):
    """Raised when cancelling an order that is not on the book."""


def _size_until(orders: Iterable[LeafNode], stop, max_depth: int) -> int:
    total = 0
    for order in orders:
        if stop(order) or total >= max_depth:
            break
        total += order.quantity
    return min(total, max_depth)


class Book:
    """An order book made of a bid side and an ask side."""

    def __init__(self, bids: BookSide, asks: BookSide) -> None:
        if bids.side is not Side.BID:
            raise ValueError("the bids book side must hold bids")
        if asks.side is not Side.ASK:
            raise ValueError("the asks book side must hold asks")
        self.bids = bids
        self.asks = asks

    def _side(self, side: Side) -> BookSide:
        return self.bids if Side(side) is Side.BID else self.asks

    def best_bid_price(self) -> Optional[int]:
        """Price of the highest bid, or None when there are no bids."""
        best = self.bids.get_max()
        return None if best is None else best.price()

    def best_ask_price(self) -> Optional[int]:
        """Price of the lowest ask, or None when there are no asks."""
        best = self.asks.get_min()
        return None if best is None else best.price()

    def bids_size_above(self, price: int, max_depth: int) -> int:
        """Quantity of bids at or above ``price``, capped at ``max_depth``."""
        return _size_until(self.bids, lambda bid: price > bid.price(), max_depth)

    def asks_size_below(self, price: int, max_depth: int) -> int:
        """Quantity of asks at or below ``price``, capped at ``max_depth``."""
        return _size_until(self.asks, lambda ask: price < ask.price(), max_depth)

    def bids_size_above_order(self, order_id: int, max_depth: int) -> int:
        """Quantity of bids ahead of ``order_id``; the whole side if it is not found."""
        return _size_until(self.bids, lambda bid: bid.key == order_id, max_depth)

    def asks_size_below_order(self, order_id: int, max_depth: int) -> int:
        """Quantity of asks ahead of ``order_id``; the whole side if it is not found."""
        return _size_until(self.asks, lambda ask: ask.key == order_id, max_depth)

    def impact_price(self, side: Side, quantity: int) -> Optional[int]:
        """Price reached after walking ``quantity`` lots into ``side``, or None if too thin."""
        total = 0
        for order in self._side(side):
            total += order.quantity
            if total >= quantity:
                return order.price()
        return None

    def cancel_order(self, order_id: int, side: Side) -> LeafNode:
        """Remove the order with ``order_id`` from ``side`` and return it."""
        removed = self._side(side).remove_by_key(order_id)
        if removed is None:
            raise InvalidOrderIdError(order_id)
        return removed