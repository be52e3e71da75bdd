"""Events produced by matching and the fixed-capacity ring buffer that holds them."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union

from perpbook.types import Side

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


def _checked_i64(value: int) -> int:
    if not _I64_MIN <= value <= _I64_MAX:
        raise OverflowError(f"value {value} does not fit in a signed 64-bit integer")
    return value


class EventType(IntEnum):
    """Kind of event; the value is its one-byte wire encoding."""

    FILL = 0
    OUT = 1
    LIQUIDATE = 2


@dataclass
class FillEvent:
    """A trade between a resting maker order and an incoming taker order."""

    taker_side: Side
    maker_slot: int
    maker_out: bool
    timestamp: int
    seq_num: int
    maker: bytes
    maker_order_id: int
    maker_client_order_id: int
    maker_fee: object
    best_initial: int
    maker_timestamp: int
    taker: bytes
    taker_order_id: int
    taker_client_order_id: int
    taker_fee: object
    price: int
    quantity: int
    version: int = 0
    event_type: EventType = field(default=EventType.FILL, init=False)

    def base_quote_change(self, side: Side) -> tuple[int, int]:
        """Change in (base, quote) position for the party on ``side`` of this fill."""
        notional = _checked_i64(self.price * self.quantity)
        if side is Side.BID:
            return self.quantity, -notional
        return -self.quantity, notional


@dataclass
class OutEvent:
    """A resting order that left the book without trading, e.g. booted when full."""

    side: Side
    slot: int
    timestamp: int
    seq_num: int
    owner: bytes
    quantity: int
    event_type: EventType = field(default=EventType.OUT, init=False)


@dataclass
class LiquidateEvent:
    """A liquidation on the market this queue belongs to."""

    timestamp: int
    seq_num: int
    liqee: bytes
    liqor: bytes
    price: object
    quantity: int
    liquidation_fee: object
    event_type: EventType = field(default=EventType.LIQUIDATE, init=False)


Event = Union[FillEvent, OutEvent, LiquidateEvent]


class QueueFullError(Exception):
    """Raised when pushing onto a queue that has no free slot."""

    def __init__(self, event: Event) -> None:
        super().__init__("event queue is full")
        self.event = event


class QueueEmptyError(Exception):
    """Raised when popping from a queue that holds no events."""


class EventQueue:
    """A ring buffer of events with a running sequence number."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._buf: list[Optional[Event]] = [None] * capacity
        self._head = 0
        self._count = 0
        self._seq_num = 0

    @property
    def capacity(self) -> int:
        return len(self._buf)

    @property
    def head(self) -> int:
        """Buffer index of the oldest event."""
        return self._head

    @property
    def seq_num(self) -> int:
        """Number of events pushed so far, less any reverted."""
        return self._seq_num

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Event]:
        for offset in range(self._count):
            yield self._buf[(self._head + offset) % len(self._buf)]

    def full(self) -> bool:
        return self._count == len(self._buf)

    def empty(self) -> bool:
        return self._count == 0

    def push_back(self, event: Event) -> None:
        """Append an event; raises QueueFullError carrying the event if there is no room."""
        if self.full():
            raise QueueFullError(event)
        slot = (self._head + self._count) % len(self._buf)
        self._buf[slot] = event
        self._count += 1
        self._seq_num += 1

    def peek_front(self) -> Optional[Event]:
        """The oldest event, or None when the queue is empty."""
        if self.empty():
            return None
        return self._buf[self._head]

    def pop_front(self) -> Event:
        """Remove and return the oldest event."""
        if self.empty():
            raise QueueEmptyError("event queue is empty")
        event = self._buf[self._head]
        self._count -= 1
        self._head = (self._head + 1) % len(self._buf)
        return event

    def revert_pushes(self, desired_len: int) -> None:
        """Drop the newest events so that ``desired_len`` remain, rolling back the sequence number."""
        if desired_len > self._count:
            raise ValueError(
                f"cannot revert to length {desired_len}, queue holds {self._count}"
            )
        self._seq_num -= self._count - desired_len
        self._count = desired_len