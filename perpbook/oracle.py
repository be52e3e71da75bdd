"""Oracle account detection and decoding of Pyth product and price accounts."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

MAGIC = 0xA1B2C3D4
VERSION_2 = 2
VERSION = VERSION_2
MAP_TABLE_SIZE = 640
PROD_ACCT_SIZE = 512
PROD_HDR_SIZE = 48
PROD_ATTR_SIZE = PROD_ACCT_SIZE - PROD_HDR_SIZE

_KEY_SIZE = 32
_PYTH_PREFIX = bytes([212, 195, 178, 161])
_STUB_PREFIX = bytes([77, 110, 103, 111])
_SWITCHBOARD_SIZE = 1000
_COMPONENT_COUNT = 32

_PRODUCT_LAYOUT = struct.Struct(f"<4I{_KEY_SIZE}s{PROD_ATTR_SIZE}s")
_PRICE_HEADER_LAYOUT = struct.Struct(f"<4IIiIIQQqQ6q{_KEY_SIZE}s{_KEY_SIZE}s{_KEY_SIZE}s")
_PRICE_INFO_LAYOUT = struct.Struct("<qQIIQ")
_PRICE_COMP_SIZE = _KEY_SIZE + 2 * _PRICE_INFO_LAYOUT.size
_PRICE_SIZE = (
    _PRICE_HEADER_LAYOUT.size + _PRICE_INFO_LAYOUT.size + _COMPONENT_COUNT * _PRICE_COMP_SIZE
)


class OracleType(Enum):
    """Kind of oracle account."""

    STUB = 0
    PYTH = 1
    SWITCHBOARD = 2
    UNKNOWN = 3


class AccountType(IntEnum):
    """Type tag stored in a Pyth account header."""

    UNKNOWN = 0
    MAPPING = 1
    PRODUCT = 2
    PRICE = 3


class PriceStatus(IntEnum):
    """Status of an aggregate or contributing price; only TRADING is valid."""

    UNKNOWN = 0
    TRADING = 1
    HALTED = 2
    AUCTION = 3


class PriceType(IntEnum):
    """Kind of price a price account carries."""

    UNKNOWN = 0
    PRICE = 1


@dataclass(frozen=True)
class AccKey:
    """A 32-byte account key."""

    val: bytes = bytes(_KEY_SIZE)

    def __post_init__(self) -> None:
        if len(self.val) != _KEY_SIZE:
            raise ValueError(f"account key must be {_KEY_SIZE} bytes, got {len(self.val)}")
        object.__setattr__(self, "val", bytes(self.val))

    def is_valid(self) -> bool:
        """True unless every byte of the key is zero."""
        return any(self.val)


def _require_size(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise ValueError(f"{what} account needs {size} bytes, got {len(data)}")


def _check_header(magic: int, atype: int, ver: int, expected: AccountType, what: str) -> None:
    if magic != MAGIC:
        raise ValueError("not a valid pyth account")
    if atype != expected:
        raise ValueError(f"not a valid pyth {what} account")
    if ver != VERSION_2:
        raise ValueError(f"unexpected pyth {what} account version")


@dataclass(frozen=True)
class Product:
    """A Pyth product account."""

    magic: int
    ver: int
    atype: int
    size: int
    px_acc: AccKey
    attr: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> Product:
        """Decode a product account, checking its magic, type and version."""
        data = bytes(data)
        _require_size(data, _PRODUCT_LAYOUT.size, "product")
        magic, ver, atype, size, px_acc, attr = _PRODUCT_LAYOUT.unpack_from(data)
        _check_header(magic, atype, ver, AccountType.PRODUCT, "product")
        return cls(magic, ver, atype, size, AccKey(px_acc), attr)


@dataclass(frozen=True)
class PriceInfo:
    """An aggregate or contributing price."""

    price: int
    conf: int
    status: PriceStatus
    corp_act: int
    pub_slot: int

    @classmethod
    def _unpack(cls, data: bytes, offset: int) -> PriceInfo:
        price, conf, status, corp_act, pub_slot = _PRICE_INFO_LAYOUT.unpack_from(data, offset)
        return cls(price, conf, PriceStatus(status), corp_act, pub_slot)


@dataclass(frozen=True)
class PriceComp:
    """One publisher's contribution to a price account."""

    publisher: AccKey
    agg: PriceInfo
    latest: PriceInfo

    @classmethod
    def _unpack(cls, data: bytes, offset: int) -> PriceComp:
        publisher = AccKey(data[offset : offset + _KEY_SIZE])
        offset += _KEY_SIZE
        agg = PriceInfo._unpack(data, offset)
        latest = PriceInfo._unpack(data, offset + _PRICE_INFO_LAYOUT.size)
        return cls(publisher, agg, latest)


@dataclass(frozen=True)
class Price:
    """A Pyth price account."""

    magic: int
    ver: int
    atype: int
    size: int
    ptype: PriceType
    expo: int
    num: int
    unused: int
    curr_slot: int
    valid_slot: int
    twap: int
    avol: int
    drv: tuple[int, ...]
    prod: AccKey
    next: AccKey
    agg_pub: AccKey
    agg: PriceInfo
    comp: tuple[PriceComp, ...]

    @classmethod
    def from_bytes(cls, data: bytes) -> Price:
        """Decode a price account, checking its magic, type and version."""
        data = bytes(data)
        _require_size(data, _PRICE_SIZE, "price")
        fields = _PRICE_HEADER_LAYOUT.unpack_from(data)
        magic, ver, atype, size, ptype, expo, num, unused = fields[:8]
        curr_slot, valid_slot, twap, avol = fields[8:12]
        drv = tuple(fields[12:18])
        prod, next_key, agg_pub = fields[18:21]
        _check_header(magic, atype, ver, AccountType.PRICE, "price")

        offset = _PRICE_HEADER_LAYOUT.size
        agg = PriceInfo._unpack(data, offset)
        offset += _PRICE_INFO_LAYOUT.size
        comp = tuple(
            PriceComp._unpack(data, offset + n * _PRICE_COMP_SIZE)
            for n in range(_COMPONENT_COUNT)
        )
        return cls(
            magic=magic,
            ver=ver,
            atype=atype,
            size=size,
            ptype=PriceType(ptype),
            expo=expo,
            num=num,
            unused=unused,
            curr_slot=curr_slot,
            valid_slot=valid_slot,
            twap=twap,
            avol=avol,
            drv=drv,
            prod=AccKey(prod),
            next=AccKey(next_key),
            agg_pub=AccKey(agg_pub),
            agg=agg,
            comp=comp,
        )


def determine_oracle_type(data: bytes) -> OracleType:
    """Tell the kind of oracle from an account's raw data."""
    data = bytes(data)
    if data[:4] == _PYTH_PREFIX:
        return OracleType.PYTH
    if data[:4] == _STUB_PREFIX:
        return OracleType.STUB
    if len(data) == _SWITCHBOARD_SIZE:
        return OracleType.SWITCHBOARD
    return OracleType.UNKNOWN