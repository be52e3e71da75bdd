"""Leaf and inner nodes of the crit-bit tree that holds one side of the order book."""

from __future__ import annotations

from dataclasses import dataclass, field

from perpbook.types import OrderType

NodeHandle = int

_KEY_BITS = 128
_I128_MIN = -(1 << (_KEY_BITS - 1))
_I128_MAX = (1 << (_KEY_BITS - 1)) - 1


def _check_key(key: int) -> int:
    if not _I128_MIN <= key <= _I128_MAX:
        raise OverflowError(f"key {key} does not fit in a signed 128-bit integer")
    return key


def key_to_price(key: int) -> int:
    """The price held in the upper 64 bits of an order key."""
    return _check_key(key) >> 64


@dataclass
class LeafNode:
    """A resting order on the book."""

    version: int
    owner_slot: int
    key: int
    owner: bytes
    quantity: int
    client_order_id: int
    timestamp: int
    best_initial: int
    order_type: OrderType = OrderType.LIMIT

    def __post_init__(self) -> None:
        _check_key(self.key)
        self.order_type = OrderType(self.order_type)

    def price(self) -> int:
        """The order's price in lots."""
        return key_to_price(self.key)


@dataclass
class InnerNode:
    """A branch of the tree: keys below it share their first ``prefix_len`` bits."""

    prefix_len: int
    key: int
    children: list[NodeHandle] = field(default_factory=lambda: [0, 0])

    def __post_init__(self) -> None:
        if not 0 <= self.prefix_len < _KEY_BITS:
            raise ValueError(f"prefix length must be in 0..{_KEY_BITS - 1}, got {self.prefix_len}")
        _check_key(self.key)
        if len(self.children) != 2:
            raise ValueError("an inner node has exactly two children")

    def walk_down(self, search_key: int) -> tuple[NodeHandle, bool]:
        """The child on ``search_key``'s side of the critical bit, and that bit."""
        crit_bit_mask = 1 << (_KEY_BITS - 1 - self.prefix_len)
        crit_bit = (_check_key(search_key) & crit_bit_mask) != 0
        return self.children[int(crit_bit)], crit_bit