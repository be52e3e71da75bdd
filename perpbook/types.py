"""Enumerations shared by the order book, the event queue and the matching engine."""

from enum import IntEnum


class Side(IntEnum):
    """Side of an order; the value is its one-byte wire encoding."""

    BID = 0
    ASK = 1

    @property
    def opposite(self) -> "Side":
        """The side that an order on this side trades against."""
        return Side.ASK if self is Side.BID else Side.BID


class OrderType(IntEnum):
    """How an order interacts with the book; the value is its one-byte wire encoding."""

    LIMIT = 0
    IMMEDIATE_OR_CANCEL = 1
    POST_ONLY = 2
    MARKET = 3
    POST_ONLY_SLIDE = 4