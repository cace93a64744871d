"""Column type descriptions and the small value types they rely on."""

from __future__ import annotations

import ipaddress
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from fractions import Fraction
from typing import Any

DEFAULT_TZ: tzinfo = timezone.utc

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MAX_DECIMAL_SCALE = 18
_DECIMAL_PRECISION = 18

_SIMPLE_TYPES = frozenset(
    {
        "Bool",
        "UInt8",
        "UInt16",
        "UInt32",
        "UInt64",
        "UInt128",
        "Int8",
        "Int16",
        "Int32",
        "Int64",
        "Int128",
        "String",
        "Float32",
        "Float64",
        "Date",
        "IPv4",
        "IPv6",
        "UUID",
    }
)
_WRAPPER_TYPES = frozenset({"Nullable", "Array", "LowCardinality"})
_ENUM_RANGES = {"Enum8": (-(2**7), 2**7 - 1), "Enum16": (-(2**15), 2**15 - 1)}


def _tz_name(tz: tzinfo) -> str:
    return str(getattr(tz, "key", None) or tz)


@dataclass(frozen=True)
class DateTimeType:
    """A DateTime column flavour: plain seconds, or DateTime64 with a precision."""

    precision: int | None = None
    tz: tzinfo | None = None

    def __post_init__(self) -> None:
        if self.precision is None:
            if self.tz is not None:
                raise ValueError("a 32-bit DateTime type carries no time zone")
            return
        if not 0 <= self.precision <= 9:
            raise ValueError(f"DateTime64 precision must be in 0..9, got {self.precision}")
        if self.tz is None:
            object.__setattr__(self, "tz", DEFAULT_TZ)

    def __str__(self) -> str:
        if self.precision is None:
            return "DateTime"
        return f"DateTime64({self.precision}, '{_tz_name(self.tz)}')"


@dataclass(frozen=True)
class SqlType:
    """A column type, named as in the server's DDL, with its parameters."""

    name: str
    args: tuple[Any, ...] = field(default=())

    def __post_init__(self) -> None:
        args = tuple(self.args)
        name = self.name
        if name in _SIMPLE_TYPES:
            if args:
                raise ValueError(f"{name} takes no parameters")
        elif name in _WRAPPER_TYPES:
            if len(args) != 1 or not isinstance(args[0], SqlType):
                raise ValueError(f"{name} needs exactly one inner type")
        elif name == "FixedString":
            if len(args) != 1 or not isinstance(args[0], int) or args[0] < 0:
                raise ValueError("FixedString needs a non-negative length")
        elif name == "Decimal":
            if len(args) != 2 or not all(isinstance(a, int) for a in args):
                raise ValueError("Decimal needs a precision and a scale")
        elif name == "DateTime":
            if not args:
                args = (DateTimeType(),)
            if len(args) != 1 or not isinstance(args[0], DateTimeType):
                raise ValueError("DateTime needs one DateTimeType")
        elif name in _ENUM_RANGES:
            low, high = _ENUM_RANGES[name]
            pairs = tuple((str(label), int(code)) for label, code in args)
            for label, code in pairs:
                if not low <= code <= high:
                    raise ValueError(f"{name} value {code} for {label!r} is out of range")
            args = pairs
        elif name == "Map":
            if len(args) != 2 or not all(isinstance(a, SqlType) for a in args):
                raise ValueError("Map needs a key type and a value type")
        elif name == "SimpleAggregateFunction":
            if len(args) != 2 or not isinstance(args[0], str) or not isinstance(args[1], SqlType):
                raise ValueError("SimpleAggregateFunction needs a function name and a type")
        else:
            raise ValueError(f"unknown SQL type {name!r}")
        object.__setattr__(self, "args", args)

    def __str__(self) -> str:
        name, args = self.name, self.args
        if name in _SIMPLE_TYPES:
            return name
        if name == "DateTime":
            return str(args[0])
        if name in _ENUM_RANGES:
            items = ", ".join(f"'{label}' = {code}" for label, code in args)
            return f"{name}({items})"
        return f"{name}({', '.join(str(a) for a in args)})"


@dataclass(frozen=True, eq=False)
class Decimal:
    """A fixed-point number stored as an integer scaled by ten to ``scale``."""

    underlying: int
    precision: int
    scale: int
    nobits: int = 64

    @classmethod
    def of(cls, source: int | float, scale: int) -> Decimal:
        """Build a decimal with the given scale from an integer or a float."""
        if not 0 <= scale <= _MAX_DECIMAL_SCALE:
            raise ValueError(f"decimal scale must be in 0..{_MAX_DECIMAL_SCALE}, got {scale}")
        factor = 10**scale
        if isinstance(source, float):
            if not math.isfinite(source):
                raise ValueError(f"cannot build a decimal from {source}")
            underlying = round(source * factor)
        else:
            underlying = int(source) * factor
        return cls(underlying, _DECIMAL_PRECISION, scale)

    def _fraction(self) -> Fraction:
        return Fraction(self.underlying, 10**self.scale)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Decimal):
            return NotImplemented
        return self._fraction() == other._fraction()

    def __hash__(self) -> int:
        return hash(self._fraction())

    def __float__(self) -> float:
        return self.underlying / 10**self.scale

    def __str__(self) -> str:
        sign = "-" if self.underlying < 0 else ""
        digits = str(abs(self.underlying))
        if self.scale == 0:
            return sign + digits
        digits = digits.rjust(self.scale + 1, "0")
        return f"{sign}{digits[:-self.scale]}.{digits[-self.scale:]}"


@dataclass(frozen=True)
class Enum8:
    """The numeric code of an Enum8 column value."""

    value: int

    def __post_init__(self) -> None:
        low, high = _ENUM_RANGES["Enum8"]
        if not low <= self.value <= high:
            raise ValueError(f"Enum8 code {self.value} is out of range")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Enum16:
    """The numeric code of an Enum16 column value."""

    value: int

    def __post_init__(self) -> None:
        low, high = _ENUM_RANGES["Enum16"]
        if not low <= self.value <= high:
            raise ValueError(f"Enum16 code {self.value} is out of range")

    def __str__(self) -> str:
        return str(self.value)


def decode_ipv4(octets: bytes) -> ipaddress.IPv4Address:
    """Decode an IPv4 column value, stored with its octets reversed."""
    data = bytes(octets)
    if len(data) != 4:
        raise ValueError(f"IPv4 needs 4 bytes, got {len(data)}")
    return ipaddress.IPv4Address(data[::-1])


def decode_ipv6(octets: bytes) -> ipaddress.IPv6Address:
    """Decode an IPv6 column value, stored in network order."""
    data = bytes(octets)
    if len(data) != 16:
        raise ValueError(f"IPv6 needs 16 bytes, got {len(data)}")
    return ipaddress.IPv6Address(data)


def to_datetime(value: int, precision: int, tz: tzinfo) -> datetime:
    """Turn a DateTime64 tick count into an aware datetime in ``tz``.

    Sub-microsecond digits are truncated.
    """
    if not 0 <= precision <= 9:
        raise ValueError(f"DateTime64 precision must be in 0..9, got {precision}")
    factor = 10**precision
    seconds, fraction = divmod(value, factor)
    micros = fraction * 1_000_000 // factor
    return (_EPOCH + timedelta(seconds=seconds, microseconds=micros)).astimezone(tz)