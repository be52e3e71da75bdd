# perpbook

Building blocks for the order book of a perpetual futures market, held in memory:

- `perpbook.types`: the `Side` (`BID`, `ASK`) and `OrderType` (`LIMIT`, `IMMEDIATE_OR_CANCEL`, `POST_ONLY`, `MARKET`, `POST_ONLY_SLIDE`) enumerations.
- `perpbook.nodes`: `LeafNode` (a resting order), `InnerNode`, and `key_to_price`.
- `perpbook.bookside`: `BookSide`, a crit-bit tree of orders in a fixed pool of nodes.
- `perpbook.book`: `Book`, which puts a bid side and an ask side together for depth, impact-price and cancel queries.
- `perpbook.queue`: `FillEvent`, `OutEvent`, `LiquidateEvent` and `EventQueue`, a bounded ring buffer with a sequence number.
- `perpbook.oracle`: recognises oracle account data and decodes Pyth product and price accounts.

Only the standard library is needed.

## Installation

```
pip install perpbook
```

For the tests:

```
pip install "perpbook[test]"
pytest
```

## Orders and keys

An order is a `LeafNode` keyed by a signed 128-bit order id. The upper 64 bits of the key hold the price. `key_to_price(key)` returns that price, and so does `LeafNode.price()`. A key outside the signed 128-bit range raises `OverflowError`.

```python
from perpbook.nodes import LeafNode, key_to_price
from perpbook.types import OrderType

key = (1500 << 64) | 7
leaf = LeafNode(
    version=0,
    owner_slot=0,
    key=key,
    owner=bytes(32),
    quantity=10,
    client_order_id=1,
    timestamp=0,
    best_initial=0,
    order_type=OrderType.LIMIT,
)
assert leaf.price() == key_to_price(key) == 1500
```

## Book sides

```python
from perpbook.bookside import BookSide, OutOfSpaceError
from perpbook.types import Side

bids = BookSide(Side.BID, capacity=1024)   # 1024 is the default capacity
handle, replaced = bids.insert_leaf(leaf)  # replaced is the old order if the key was taken

best = bids.get_max()                      # None when the side is empty
levels = bids.price_quantities(reverse=True)  # [(price, quantity), ...], highest key first
for order in bids:                         # best first: highest key for bids, lowest for asks
    ...

removed = bids.remove_by_key(leaf.key)     # None when no order has that key
```

- `len(side)` is the number of resting orders.
- `insert_leaf` raises `OutOfSpaceError` when the node pool has no free slot. Adding an order to a non-empty side uses two nodes: one for the leaf and one for the branch.
- `is_full()` is true once the pool is nearly used up, with at most one free node left.
- `find_min()` and `find_max()` return node handles. `leaf_at(handle)` returns the order at a handle, or `None`.
- `get_min()` and `get_max()` return the extreme orders. `remove_min()` and `remove_max()` take them off the side.

## The whole book

```python
from perpbook.book import Book, InvalidOrderIdError

book = Book(bids, asks)                    # ValueError if a side is the wrong way round
book.best_bid_price()                      # None when there are no bids
book.best_ask_price()
book.bids_size_above(price, max_depth)     # bid quantity at or above price, capped at max_depth
book.asks_size_below(price, max_depth)
book.bids_size_above_order(order_id, max_depth)  # quantity ahead of that order
book.asks_size_below_order(order_id, max_depth)
book.impact_price(Side.ASK, quantity)      # None if the side is not that deep
book.cancel_order(order_id, Side.BID)      # returns the LeafNode, or raises InvalidOrderIdError
```

## Event queue

```python
from perpbook.queue import EventQueue, QueueEmptyError, QueueFullError, OutEvent
from perpbook.types import Side

events = EventQueue(capacity=32)
events.push_back(OutEvent(Side.BID, slot=0, timestamp=0, seq_num=events.seq_num,
                          owner=bytes(32), quantity=5))
first = events.peek_front()                # None when empty
event = events.pop_front()                 # raises QueueEmptyError when empty
events.revert_pushes(desired_len)          # ValueError if desired_len > len(events)
```

- `push_back` raises `QueueFullError` when the queue is full. The rejected event is available as `error.event`.
- Each push adds one to `seq_num`. `revert_pushes` drops the newest events and takes `seq_num` back by the number dropped.
- Iterating a queue yields its events from oldest to newest.
- `FillEvent.base_quote_change(side)` gives the `(base, quote)` position change for the party on `side`. It raises `OverflowError` if `price * quantity` does not fit in 64 bits.

## Oracles

```python
from perpbook.oracle import OracleType, Price, Product, determine_oracle_type

kind = determine_oracle_type(raw_bytes)    # PYTH, STUB, SWITCHBOARD or UNKNOWN
price = Price.from_bytes(raw_bytes)
product = Product.from_bytes(raw_bytes)
```

`determine_oracle_type` decides from the first four bytes of the data. If they do not match, it uses the data length: 1000 bytes means Switchboard.

`Price.from_bytes` and `Product.from_bytes` raise `ValueError` in these cases:

- the data is too short,
- the magic number is wrong,
- the account type is wrong,
- the version is not 2.

`AccKey.is_valid()` is false for an all-zero key.

## What this package does not do

- It does not match orders. No function crosses an incoming order against the opposite side, applies post-only or market semantics, or produces fill events. `OrderType` is only stored on each order. Events are built by the caller and pushed onto an `EventQueue`.
- It keeps no trader accounts, positions, fees or liquidity incentives. Fee and price fields on events are stored as they are given.
- It does not read or write persistent storage. Every structure lives in memory.