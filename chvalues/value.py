"""Owned values of database columns and their conversions."""

from __future__ import annotations

import ipaddress
import math
import struct
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal as _PlainDecimal
from enum import Enum
from typing import Any, Iterable

from chvalues.sqltypes import (
    DEFAULT_TZ,
    DateTimeType,
    Decimal,
    Enum8,
    Enum16,
    SqlType,
    decode_ipv4,
    decode_ipv6,
    to_datetime,
)
from chvalues.unmarshal import ScalarKind

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EPOCH_DATE = date(1970, 1, 1)
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class ValueKind(Enum):
    """The variants a column value can take."""

    BOOL = "Bool"
    UINT8 = "UInt8"
    UINT16 = "UInt16"
    UINT32 = "UInt32"
    UINT64 = "UInt64"
    UINT128 = "UInt128"
    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    INT128 = "Int128"
    STRING = "String"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    DATE = "Date"
    DATETIME = "DateTime"
    DATETIME64 = "DateTime64"
    CHRONO_DATETIME = "ChronoDateTime"
    IPV4 = "IPv4"
    IPV6 = "IPv6"
    UUID = "UUID"
    NULLABLE = "Nullable"
    ARRAY = "Array"
    DECIMAL = "Decimal"
    ENUM8 = "Enum8"
    ENUM16 = "Enum16"
    MAP = "Map"


_INT_RANGES = {
    **{ValueKind(f"UInt{bits}"): (0, 2**bits - 1) for bits in (8, 16, 32, 64, 128)},
    **{ValueKind(f"Int{bits}"): (-(2 ** (bits - 1)), 2 ** (bits - 1) - 1) for bits in (8, 16, 32, 64, 128)},
}

_SCALAR_TO_KIND = {
    ScalarKind.U8: ValueKind.UINT8,
    ScalarKind.U16: ValueKind.UINT16,
    ScalarKind.U32: ValueKind.UINT32,
    ScalarKind.U64: ValueKind.UINT64,
    ScalarKind.U128: ValueKind.UINT128,
    ScalarKind.I8: ValueKind.INT8,
    ScalarKind.I16: ValueKind.INT16,
    ScalarKind.I32: ValueKind.INT32,
    ScalarKind.I64: ValueKind.INT64,
    ScalarKind.I128: ValueKind.INT128,
    ScalarKind.F32: ValueKind.FLOAT32,
    ScalarKind.F64: ValueKind.FLOAT64,
    ScalarKind.BOOL: ValueKind.BOOL,
}

_EXTRACTABLE = frozenset(_SCALAR_TO_KIND.values()) | {ValueKind.IPV4}
_SCALAR_NAMES = frozenset(kind.value for kind in _EXTRACTABLE if kind is not ValueKind.IPV4)
_HASHABLE = frozenset(_INT_RANGES) | {
    ValueKind.STRING,
    ValueKind.DATE,
    ValueKind.DATETIME,
    ValueKind.DATETIME64,
}
_SIMPLE_SQL_KINDS = frozenset(_INT_RANGES) | {
    ValueKind.BOOL,
    ValueKind.STRING,
    ValueKind.FLOAT32,
    ValueKind.FLOAT64,
    ValueKind.DATE,
    ValueKind.IPV4,
    ValueKind.IPV6,
    ValueKind.UUID,
}
_FIXED_SIZES = {ValueKind.IPV4: 4, ValueKind.IPV6: 16, ValueKind.UUID: 16}


def _to_f32(x: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        raise ValueError(f"{x} does not fit in Float32") from None


def _format_float(x: float, single: bool) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = repr(x)
    if single:
        for digits in range(1, 10):
            candidate = f"{x:.{digits}g}"
            if _to_f32(float(candidate)) == x:
                text = candidate
                break
    plain = format(_PlainDecimal(text), "f")
    if "." in plain:
        plain = plain.rstrip("0").rstrip(".")
    return plain


def _rfc2822(moment: datetime) -> str:
    return (
        f"{_WEEKDAYS[moment.weekday()]}, {moment.day:02d} {_MONTHS[moment.month - 1]} "
        f"{moment.year:04d} {moment:%H:%M:%S} {moment:%z}"
    )


def _seconds_to_datetime(seconds: int, tz: tzinfo) -> datetime:
    return (_EPOCH + timedelta(seconds=seconds)).astimezone(tz)


def _swap_uuid_halves(raw: bytes) -> bytes:
    return raw[:8][::-1] + raw[8:][::-1]


@dataclass(frozen=True, eq=False)
class Value:
    """A client-side value of a column, tagged with its kind.

    ``data`` holds the payload; the other fields carry the parameters some
    kinds need: time zone and precision for date-times, the element type
    of arrays and null nullables, key and value types of maps, and the
    labels of enums.
    """

    kind: ValueKind
    data: Any = None
    tz: tzinfo | None = None
    precision: int | None = None
    item_type: SqlType | None = None
    value_type: SqlType | None = None
    enum_values: tuple[tuple[str, int], ...] = ()

    def __post_init__(self) -> None:
        kind, data = self.kind, self.data
        if kind in _INT_RANGES:
            if isinstance(data, bool) or not isinstance(data, int):
                raise TypeError(f"{kind.value} needs an int, got {data!r}")
            low, high = _INT_RANGES[kind]
            if not low <= data <= high:
                raise ValueError(f"{data} is out of range for {kind.value}")
        elif kind is ValueKind.BOOL:
            if not isinstance(data, bool):
                raise TypeError(f"Bool needs a bool, got {data!r}")
        elif kind is ValueKind.FLOAT32:
            self._set("data", _to_f32(float(data)))
        elif kind is ValueKind.FLOAT64:
            self._set("data", float(data))
        elif kind is ValueKind.STRING:
            if isinstance(data, str):
                self._set("data", data.encode("utf-8"))
            elif isinstance(data, (bytes, bytearray, memoryview)):
                self._set("data", bytes(data))
            else:
                raise TypeError(f"String needs bytes or str, got {data!r}")
        elif kind is ValueKind.DATE:
            self._check_int(data, 0, 2**16 - 1)
        elif kind is ValueKind.DATETIME:
            self._check_int(data, 0, 2**32 - 1)
            if self.tz is None:
                self._set("tz", DEFAULT_TZ)
        elif kind is ValueKind.DATETIME64:
            self._check_int(data, -(2**63), 2**63 - 1)
            if self.precision is None or not 0 <= self.precision <= 9:
                raise ValueError(f"DateTime64 precision must be in 0..9, got {self.precision}")
            if self.tz is None:
                self._set("tz", DEFAULT_TZ)
        elif kind is ValueKind.CHRONO_DATETIME:
            if not isinstance(data, datetime) or data.tzinfo is None:
                raise TypeError("ChronoDateTime needs an aware datetime")
        elif kind in _FIXED_SIZES:
            raw = bytes(data)
            if len(raw) != _FIXED_SIZES[kind]:
                raise ValueError(f"{kind.value} needs {_FIXED_SIZES[kind]} bytes, got {len(raw)}")
            self._set("data", raw)
        elif kind is ValueKind.NULLABLE:
            if data is None:
                if not isinstance(self.item_type, SqlType):
                    raise ValueError("a null value needs its inner type")
            elif not isinstance(data, Value):
                raise TypeError("a non-null Nullable wraps a Value")
        elif kind is ValueKind.ARRAY:
            if not isinstance(self.item_type, SqlType):
                raise ValueError("an Array needs its element type")
            items = tuple(data or ())
            if not all(isinstance(item, Value) for item in items):
                raise TypeError("Array items must be Values")
            self._set("data", items)
        elif kind is ValueKind.DECIMAL:
            if not isinstance(data, Decimal):
                raise TypeError("Decimal needs a Decimal")
        elif kind in (ValueKind.ENUM8, ValueKind.ENUM16):
            code_type = Enum8 if kind is ValueKind.ENUM8 else Enum16
            if not isinstance(data, code_type):
                raise TypeError(f"{kind.value} needs an {code_type.__name__}")
            self._set("enum_values", tuple((str(label), int(code)) for label, code in self.enum_values))
        elif kind is ValueKind.MAP:
            if not isinstance(self.item_type, SqlType) or not isinstance(self.value_type, SqlType):
                raise ValueError("a Map needs its key and value types")
            entries = dict(data or {})
            if not all(isinstance(k, Value) and isinstance(v, Value) for k, v in entries.items()):
                raise TypeError("Map keys and values must be Values")
            self._set("data", entries)

    def _set(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)

    def _check_int(self, data: Any, low: int, high: int) -> None:
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"{self.kind.value} needs an int, got {data!r}")
        if not low <= data <= high:
            raise ValueError(f"{data} is out of range for {self.kind.value}")

    @classmethod
    def default(cls, sql_type: SqlType) -> Value:
        """The zero value of a column of the given type."""
        name, args = sql_type.name, sql_type.args
        if name == "Bool":
            return cls(ValueKind.BOOL, False)
        if name in ("Float32", "Float64"):
            return cls(ValueKind(name), 0.0)
        if name in _SCALAR_NAMES:
            return cls(ValueKind(name), 0)
        if name == "String":
            return cls(ValueKind.STRING, b"")
        if name == "LowCardinality":
            return cls.default(args[0])
        if name == "FixedString":
            return cls(ValueKind.STRING, bytes(args[0]))
        if name == "Date":
            return cls(ValueKind.DATE, 0)
        if name == "DateTime":
            if args[0].precision is not None:
                return cls(ValueKind.DATETIME64, 0, tz=DEFAULT_TZ, precision=1)
            return cls(ValueKind.CHRONO_DATETIME, _EPOCH.astimezone(DEFAULT_TZ))
        if name == "SimpleAggregateFunction":
            return cls.default(args[1])
        if name == "Nullable":
            return cls(ValueKind.NULLABLE, None, item_type=args[0])
        if name == "Array":
            return cls(ValueKind.ARRAY, (), item_type=args[0])
        if name == "Decimal":
            return cls(ValueKind.DECIMAL, Decimal(0, args[0], args[1], 64))
        if name in ("IPv4", "IPv6", "UUID"):
            kind = ValueKind(name)
            return cls(kind, bytes(_FIXED_SIZES[kind]))
        if name == "Enum8":
            return cls(ValueKind.ENUM8, Enum8(0), enum_values=args)
        if name == "Enum16":
            return cls(ValueKind.ENUM16, Enum16(0), enum_values=args)
        if name == "Map":
            return cls(ValueKind.MAP, {}, item_type=args[0], value_type=args[1])
        raise ValueError(f"no default for {sql_type}")

    @classmethod
    def from_python(cls, obj: Any) -> Value:
        """Build a value from a plain Python object.

        Integers become the narrowest of Int32, Int64, Int128 and UInt128
        that holds them; floats become Float64. A datetime whose tzinfo is
        ``timezone.utc`` becomes a DateTime of whole seconds, any other
        aware datetime is kept as is. Lists and dicts must be non-empty and
        of one element type.
        """
        if isinstance(obj, Value):
            return obj
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, int):
            for kind in (ValueKind.INT32, ValueKind.INT64, ValueKind.INT128, ValueKind.UINT128):
                low, high = _INT_RANGES[kind]
                if low <= obj <= high:
                    return cls(kind, obj)
            raise ValueError(f"{obj} does not fit any integer column type")
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT64, obj)
        if isinstance(obj, (str, bytes, bytearray, memoryview)):
            return cls(ValueKind.STRING, obj)
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                raise ValueError("a naive datetime has no time zone")
            if obj.tzinfo is timezone.utc:
                seconds = (obj - _EPOCH) // timedelta(seconds=1)
                return cls(ValueKind.DATETIME, seconds % 2**32, tz=timezone.utc)
            return cls(ValueKind.CHRONO_DATETIME, obj)
        if isinstance(obj, date):
            return cls(ValueKind.DATE, (obj - _EPOCH_DATE).days)
        if isinstance(obj, Decimal):
            return cls(ValueKind.DECIMAL, obj)
        if isinstance(obj, Enum8):
            return cls(ValueKind.ENUM8, obj)
        if isinstance(obj, Enum16):
            return cls(ValueKind.ENUM16, obj)
        if isinstance(obj, uuid.UUID):
            return cls.from_uuid(obj)
        if isinstance(obj, ipaddress.IPv4Address):
            return cls(ValueKind.IPV4, obj.packed[::-1])
        if isinstance(obj, ipaddress.IPv6Address):
            return cls(ValueKind.IPV6, obj.packed)
        if isinstance(obj, dict):
            entries = {cls.from_python(k): cls.from_python(v) for k, v in obj.items()}
            if not entries:
                raise ValueError("cannot infer the types of an empty map")
            key_type = _single_type(entries.keys(), "map keys")
            value_type = _single_type(entries.values(), "map values")
            return cls(ValueKind.MAP, entries, item_type=key_type, value_type=value_type)
        if isinstance(obj, (list, tuple)):
            items = tuple(cls.from_python(item) for item in obj)
            if not items:
                raise ValueError("cannot infer the element type of an empty array")
            return cls(ValueKind.ARRAY, items, item_type=_single_type(items, "array items"))
        if obj is None:
            raise ValueError("None needs a type; use Value.from_option")
        raise TypeError(f"cannot convert {type(obj).__name__} into a Value")

    @classmethod
    def from_option(cls, obj: Any, sql_type: SqlType | None = None) -> Value:
        """Wrap an optional object as a Nullable value of ``sql_type``."""
        if obj is None:
            if sql_type is None:
                raise ValueError("a null value needs its inner type")
            return cls(ValueKind.NULLABLE, None, item_type=sql_type)
        inner = cls._coerce(obj, sql_type) if sql_type is not None else cls.from_python(obj)
        return cls(ValueKind.NULLABLE, inner)

    @classmethod
    def from_uuid(cls, value: uuid.UUID) -> Value:
        """Build a UUID value, storing each 8-byte half reversed."""
        return cls(ValueKind.UUID, _swap_uuid_halves(value.bytes))

    @classmethod
    def array(cls, sql_type: SqlType, items: Iterable[Any]) -> Value:
        """Build an array whose elements have type ``sql_type``."""
        values = tuple(cls._coerce(item, sql_type) for item in items)
        return cls(ValueKind.ARRAY, values, item_type=sql_type)

    @classmethod
    def _coerce(cls, obj: Any, sql_type: SqlType) -> Value:
        if isinstance(obj, Value):
            return obj
        name = sql_type.name
        if name in _SCALAR_NAMES:
            return cls(ValueKind(name), obj)
        if name == "Nullable":
            return cls.from_option(obj, sql_type.args[0])
        if name == "Array" and isinstance(obj, (list, tuple)):
            return cls.array(sql_type.args[0], obj)
        return cls.from_python(obj)

    def sql_type(self) -> SqlType:
        """The column type this value belongs to."""
        kind = self.kind
        if kind in _SIMPLE_SQL_KINDS:
            return SqlType(kind.value)
        if kind in (ValueKind.DATETIME, ValueKind.CHRONO_DATETIME):
            return SqlType("DateTime", (DateTimeType(),))
        if kind is ValueKind.DATETIME64:
            return SqlType("DateTime", (DateTimeType(self.precision, self.tz),))
        if kind is ValueKind.NULLABLE:
            inner = self.item_type if self.data is None else self.data.sql_type()
            return SqlType("Nullable", (inner,))
        if kind is ValueKind.ARRAY:
            return SqlType("Array", (self.item_type,))
        if kind is ValueKind.DECIMAL:
            return SqlType("Decimal", (self.data.precision, self.data.scale))
        if kind in (ValueKind.ENUM8, ValueKind.ENUM16):
            return SqlType(kind.value, self.enum_values)
        return SqlType("Map", (self.item_type, self.value_type))

    def _mismatch(self, target: str) -> TypeError:
        return TypeError(f"Can't convert Value::{self.sql_type()} into {target}.")

    def as_str(self) -> str:
        """The text of a String value."""
        if self.kind is not ValueKind.STRING:
            raise self._mismatch("String")
        try:
            return self.data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError(f"Can't convert Value::String into String: {exc}") from None

    def as_bytes(self) -> bytes:
        """The raw bytes of a String value."""
        if self.kind is not ValueKind.STRING:
            raise self._mismatch("bytes")
        return self.data

    def as_date(self) -> date:
        """The calendar date of a Date value."""
        if self.kind is not ValueKind.DATE:
            raise self._mismatch("date")
        return _EPOCH_DATE + timedelta(days=self.data)

    def as_datetime(self) -> datetime:
        """The aware datetime of a DateTime, DateTime64 or chrono value."""
        if self.kind is ValueKind.DATETIME:
            return _seconds_to_datetime(self.data, self.tz)
        if self.kind is ValueKind.DATETIME64:
            return to_datetime(self.data, self.precision, self.tz)
        if self.kind is ValueKind.CHRONO_DATETIME:
            return self.data
        raise self._mismatch("datetime")

    def extract(self, kind: ScalarKind | ValueKind) -> Any:
        """The payload of a scalar or IPv4 value of exactly the given kind."""
        if isinstance(kind, ScalarKind):
            target, target_name = _SCALAR_TO_KIND[kind], kind.value
        elif kind in _EXTRACTABLE:
            target, target_name = kind, kind.value
        else:
            raise ValueError(f"{kind} cannot be extracted as a scalar")
        if self.kind is target:
            return self.data
        raise self._mismatch(target_name)

    def format(self, alternate: bool = False) -> str:
        """Render the value; ``alternate`` selects the long date-time form."""
        kind, data = self.kind, self.data
        if kind is ValueKind.BOOL:
            return "true" if data else "false"
        if kind in _INT_RANGES:
            return str(data)
        if kind is ValueKind.STRING:
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError:
                return "[" + ", ".join(str(b) for b in data) + "]"
        if kind in (ValueKind.FLOAT32, ValueKind.FLOAT64):
            return _format_float(data, kind is ValueKind.FLOAT32)
        if kind is ValueKind.DATETIME:
            moment = _seconds_to_datetime(data, self.tz)
            if alternate:
                return f"{moment:%Y-%m-%d %H:%M:%S} {moment.tzname()}"
            return _rfc2822(moment)
        if kind is ValueKind.DATETIME64:
            return _rfc2822(to_datetime(data, self.precision, self.tz))
        if kind is ValueKind.CHRONO_DATETIME:
            return _rfc2822(data)
        if kind is ValueKind.DATE:
            return self.as_date().strftime("%Y-%m-%d")
        if kind is ValueKind.NULLABLE:
            return "NULL" if data is None else data.format(alternate)
        if kind is ValueKind.ARRAY:
            return "[" + ", ".join(str(item) for item in data) + "]"
        if kind is ValueKind.DECIMAL:
            return str(data)
        if kind is ValueKind.IPV4:
            return str(decode_ipv4(data))
        if kind is ValueKind.IPV6:
            return str(decode_ipv6(data))
        if kind is ValueKind.UUID:
            return str(uuid.UUID(bytes=_swap_uuid_halves(data)))
        if kind in (ValueKind.ENUM8, ValueKind.ENUM16):
            return f"{kind.value}, {data}"
        return "[" + ", ".join(f"key=>{k} value=>{v}" for k, v in data.items()) + "]"

    def __str__(self) -> str:
        return self.format(False)

    def __eq__(self, other: object) -> bool:
        """Compare values; maps never compare equal, not even to themselves."""
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        kind = self.kind
        if kind is ValueKind.DATETIME64:
            return self.precision == other.precision and self.data == other.data
        if kind is ValueKind.NULLABLE:
            if self.data is None and other.data is None:
                return self.item_type == other.item_type
            if self.data is None or other.data is None:
                return False
            return self.data == other.data
        if kind is ValueKind.ARRAY:
            return self.item_type == other.item_type and self.data == other.data
        if kind in (ValueKind.ENUM8, ValueKind.ENUM16):
            return self.enum_values == other.enum_values and self.data == other.data
        if kind is ValueKind.MAP:
            return False
        return self.data == other.data

    def __hash__(self) -> int:
        if self.kind not in _HASHABLE:
            raise TypeError(f"unhashable Value of kind {self.kind.value}")
        if self.kind is ValueKind.DATETIME64:
            return hash((self.data, self.precision))
        return hash(self.data)


def _single_type(values: Iterable[Value], what: str) -> SqlType:
    types = {value.sql_type() for value in values}
    if len(types) != 1:
        raise ValueError(f"{what} have mixed types: {', '.join(sorted(map(str, types)))}")
    return types.pop()