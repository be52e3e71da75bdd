import pytest
from hypothesis import given
from hypothesis import strategies as st

from perpbook.types import OrderType, Side


def test_side_wire_values():
    assert Side(0) is Side.BID
    assert Side(1) is Side.ASK
    assert [s.value for s in Side] == [0, 1]


def test_order_type_wire_values():
    assert OrderType(0) is OrderType.LIMIT
    assert OrderType(1) is OrderType.IMMEDIATE_OR_CANCEL
    assert OrderType(2) is OrderType.POST_ONLY
    assert OrderType(3) is OrderType.MARKET
    assert OrderType(4) is OrderType.POST_ONLY_SLIDE
    assert len(OrderType) == 5


@pytest.mark.parametrize("side", list(Side))
def test_side_round_trip(side):
    assert Side(int(side)) is side


@pytest.mark.parametrize("order_type", list(OrderType))
def test_order_type_round_trip(order_type):
    assert OrderType(int(order_type)) is order_type


def test_side_opposite():
    assert Side(0).opposite is Side(1)
    assert Side(1).opposite is Side(0)


@given(st.sampled_from([0, 1]))
def test_side_opposite_is_involution(value):
    side = Side(value)
    assert side.opposite.opposite is side
    assert side.opposite is Side(1 - value)


@pytest.mark.parametrize("value", [2, 255, -1])
def test_side_rejects_unknown_value(value):
    with pytest.raises(ValueError):
        Side(value)


@pytest.mark.parametrize("value", [5, 6, 255, -1])
def test_order_type_rejects_unknown_value(value):
    with pytest.raises(ValueError):
        OrderType(value)