import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from perpbook.bookside import MAX_BOOK_NODES, BookSide, OutOfSpaceError
from perpbook.nodes import LeafNode
from perpbook.types import OrderType, Side

OWNER = bytes(32)


def make_leaf(price, seq, quantity=1):
    return LeafNode(
        version=0,
        owner_slot=0,
        key=(price << 64) | seq,
        owner=OWNER,
        quantity=quantity,
        client_order_id=seq,
        timestamp=0,
        best_initial=price,
        order_type=OrderType.LIMIT,
    )


def filled(side, prices, capacity=MAX_BOOK_NODES):
    book = BookSide(side, capacity)
    for seq, price in enumerate(prices, start=1):
        book.insert_leaf(make_leaf(price, seq, quantity=price))
    return book


def test_empty_side():
    book = BookSide(Side.ASK)
    assert len(book) == 0
    assert list(book) == []
    assert book.get_min() is None
    assert book.get_max() is None
    assert book.find_min() is None
    assert book.find_max() is None
    assert book.remove_min() is None
    assert book.remove_max() is None
    assert book.remove_by_key(5) is None
    assert book.price_quantities(False) == []


def test_asks_iterate_lowest_first():
    book = filled(Side.ASK, [30, 10, 20, 50, 40])
    assert [leaf.price() for leaf in book] == [10, 20, 30, 40, 50]


def test_bids_iterate_highest_first():
    book = filled(Side.BID, [30, 10, 20, 50, 40])
    assert [leaf.price() for leaf in book] == [50, 40, 30, 20, 10]


def test_price_quantities_both_directions():
    book = filled(Side.BID, [3, 1, 2])
    assert book.price_quantities(False) == [(1, 1), (2, 2), (3, 3)]
    assert book.price_quantities(True) == [(3, 3), (2, 2), (1, 1)]


def test_min_max_and_handles():
    book = filled(Side.ASK, [7, 3, 9, 5])
    assert book.get_min().price() == 3
    assert book.get_max().price() == 9
    assert book.leaf_at(book.find_min()) is book.get_min()
    assert book.leaf_at(book.find_max()) is book.get_max()


def test_insert_returns_handle_of_leaf():
    book = BookSide(Side.ASK)
    leaf = make_leaf(10, 1)
    handle, replaced = book.insert_leaf(leaf)
    assert replaced is None
    assert book.leaf_at(handle) is leaf
    other = make_leaf(20, 2)
    handle2, replaced2 = book.insert_leaf(other)
    assert replaced2 is None
    assert book.leaf_at(handle2) is other


def test_same_key_clobbers_single_leaf():
    book = BookSide(Side.ASK)
    first = make_leaf(10, 1, quantity=5)
    book.insert_leaf(first)
    second = make_leaf(10, 1, quantity=8)
    _, replaced = book.insert_leaf(second)
    assert replaced is first
    assert len(book) == 1
    assert book.get_min() is second


def test_remove_by_key():
    book = filled(Side.ASK, [10, 20, 30])
    key = (20 << 64) | 2
    removed = book.remove_by_key(key)
    assert removed.key == key
    assert len(book) == 2
    assert [leaf.price() for leaf in book] == [10, 30]
    assert book.remove_by_key(key) is None


def test_remove_missing_key_leaves_book_unchanged():
    book = filled(Side.BID, [10, 20])
    assert book.remove_by_key((15 << 64) | 9) is None
    assert len(book) == 2
    single = filled(Side.BID, [10])
    assert single.remove_by_key((11 << 64) | 1) is None
    assert len(single) == 1


def test_remove_min_and_max():
    book = filled(Side.ASK, [4, 1, 3, 2])
    assert book.remove_min().price() == 1
    assert book.remove_max().price() == 4
    assert [leaf.price() for leaf in book] == [2, 3]
    book.remove_min()
    book.remove_min()
    assert len(book) == 0
    assert book.root is None


def test_mutating_leaf_in_place_is_visible():
    book = filled(Side.ASK, [10, 20])
    book.leaf_at(book.find_min()).quantity = 99
    assert book.price_quantities(False)[0] == (10, 99)


def test_out_of_space_when_pool_exhausted():
    book = filled(Side.ASK, [10, 20], capacity=3)
    with pytest.raises(OutOfSpaceError):
        book.insert_leaf(make_leaf(30, 3))
    assert [leaf.price() for leaf in book] == [10, 20]


def test_out_of_space_rolls_back_partial_insert():
    book = filled(Side.ASK, [10, 20], capacity=4)
    with pytest.raises(OutOfSpaceError):
        book.insert_leaf(make_leaf(30, 3))
    assert len(book) == 2
    assert book.remove_by_key((10 << 64) | 1) is not None
    book.insert_leaf(make_leaf(30, 3))
    assert [leaf.price() for leaf in book] == [20, 30]


def test_freed_nodes_are_reused():
    book = BookSide(Side.BID, capacity=5)
    for seq in range(1, 50):
        book.insert_leaf(make_leaf(100 + seq, seq))
        book.insert_leaf(make_leaf(200 + seq, 1000 + seq))
        book.insert_leaf(make_leaf(300 + seq, 2000 + seq))
        assert len(book) == 3
        book.remove_max()
        book.remove_min()
        book.remove_min()
        assert len(book) == 0


def test_is_full():
    assert BookSide(Side.ASK, capacity=1).is_full()
    assert not BookSide(Side.ASK).is_full()


def test_invalid_capacity():
    with pytest.raises(ValueError):
        BookSide(Side.ASK, capacity=0)


@settings(max_examples=60, deadline=None)
@given(
    st.lists(
        st.tuples(st.integers(1, 2**40), st.integers(0, 2**64 - 1)),
        min_size=1,
        max_size=40,
        unique=True,
    ),
    st.sampled_from([Side.BID, Side.ASK]),
    st.data(),
)
def test_ordering_invariant_under_inserts_and_removals(entries, side, data):
    book = BookSide(side, capacity=128)
    keys = set()
    for price, seq in entries:
        leaf = make_leaf(price, seq)
        book.insert_leaf(leaf)
        keys.add(leaf.key)
    assert len(book) == len(keys)
    expected = sorted(keys, reverse=side is Side.BID)
    assert [leaf.key for leaf in book] == expected

    to_remove = data.draw(st.lists(st.sampled_from(sorted(keys)), unique=True))
    for key in to_remove:
        removed = book.remove_by_key(key)
        assert removed is not None and removed.key == key
        keys.discard(key)
    assert len(book) == len(keys)
    assert [leaf.key for leaf in book] == sorted(keys, reverse=side is Side.BID)
    if keys:
        assert book.get_min().key == min(keys)
        assert book.get_max().key == max(keys)