"""Borrowed views of column values, as read out of a block."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

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
from chvalues.value import (
    _FIXED_SIZES,
    _INT_RANGES,
    _SIMPLE_SQL_KINDS,
    ValueKind,
    _format_float,
    _rfc2822,
    _seconds_to_datetime,
    _swap_uuid_halves,
    _to_f32,
)

_HASHABLE = frozenset(_INT_RANGES) | {ValueKind.STRING}


class FromSqlError(TypeError):
    """A column value cannot be read as the requested type."""

    def __init__(self, src: str, dst: str) -> None:
        super().__init__(f"Can't convert {src} into {dst}.")
        self.src = src
        self.dst = dst


@dataclass(frozen=True, eq=False)
class ValueRef:
    """A column value as it sits in a block, tagged with its kind.

    The fields mirror those of an owned value; there is no kind for a
    free-standing aware datetime.
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
            self._check_int(data, *_INT_RANGES[kind])
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
            raise ValueError("a borrowed value has no ChronoDateTime kind")
        elif kind in _FIXED_SIZES:
            raw = bytes(data)
            if len(raw) != _FIXED_SIZES[kind]:
                raise ValueError(f"{kind.value} needs {_FIXED_SIZES[kind]} bytes, got {len(raw)}")
            self._set("data", raw)
        elif kind is ValueKind.NULLABLE:
            if data is None:
                if not isinstance(self.item_type, SqlType):
                    raise ValueError("a null value needs its inner type")
            elif not isinstance(data, ValueRef):
                raise TypeError("a non-null Nullable wraps a ValueRef")
        elif kind is ValueKind.ARRAY:
            if not isinstance(self.item_type, SqlType):
                raise ValueError("an Array needs its element type")
            items = tuple(data or ())
            if not all(isinstance(item, ValueRef) for item in items):
                raise TypeError("Array items must be ValueRefs")
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
            if not all(isinstance(k, ValueRef) and isinstance(v, ValueRef) for k, v in entries.items()):
                raise TypeError("Map keys and values must be ValueRefs")
            self._set("data", entries)

    def _set(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)

    def _check_int(self, data: Any, low: int, high: int) -> None:
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError(f"{self.kind.value} needs an int, got {data!r}")
        if not low <= data <= high:
            raise ValueError(f"{data} is out of range for {self.kind.value}")

    def sql_type(self) -> SqlType:
        """The column type this value belongs to."""
        kind = self.kind
        if kind in _SIMPLE_SQL_KINDS:
            return SqlType(kind.value)
        if kind is ValueKind.DATETIME:
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

    def as_str(self) -> str:
        """The text of a String value; invalid UTF-8 raises UnicodeDecodeError."""
        if self.kind is not ValueKind.STRING:
            raise FromSqlError(str(self.sql_type()), "str")
        return self.data.decode("utf-8")

    def as_string(self) -> str:
        """The text of a String value, as a new string."""
        return str(self.as_str())

    def as_bytes(self) -> bytes:
        """The raw bytes of a String value."""
        if self.kind is not ValueKind.STRING:
            raise FromSqlError(str(self.sql_type()), "bytes")
        return self.data

    def format(self, alternate: bool = False) -> str:
        """Render the value; ``alternate`` selects the RFC 2822 form of DateTime."""
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
        if kind is ValueKind.DATE:
            return f"{to_datetime(data * 86400, 0, DEFAULT_TZ):%Y-%m-%d}"
        if kind is ValueKind.DATETIME:
            moment = _seconds_to_datetime(data, self.tz)
            if alternate:
                return _rfc2822(moment)
            return f"{moment:%Y-%m-%d %H:%M:%S}"
        if kind is ValueKind.DATETIME64:
            return f"{to_datetime(data, self.precision, self.tz):%Y-%m-%d %H:%M:%S}"
        if kind is ValueKind.NULLABLE:
            return "NULL" if data is None else str(data)
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
            return str(data)
        return "[" + ", ".join(f"{k}-{v}" for k, v in data.items()) + "]"

    def __str__(self) -> str:
        return self.format(False)

    def __eq__(self, other: object) -> bool:
        """Compare values.

        Date-times compare by instant. Bool, IPv4, IPv6 and UUID values
        never compare equal.
        """
        if not isinstance(other, ValueRef):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        kind = self.kind
        if kind in (ValueKind.BOOL, ValueKind.IPV4, ValueKind.IPV6, ValueKind.UUID):
            return False
        if kind is ValueKind.DATETIME:
            return _seconds_to_datetime(self.data, self.tz) == _seconds_to_datetime(other.data, other.tz)
        if kind is ValueKind.DATETIME64:
            return to_datetime(self.data, self.precision, self.tz) == to_datetime(
                other.data, other.precision, other.tz
            )
        if kind is ValueKind.NULLABLE:
            if self.data is None and other.data is None:
                return self.item_type == other.item_type
            if self.data is None or other.data is None:
                return False
            return self.data == other.data
        if kind is ValueKind.ARRAY:
            return self.item_type == other.item_type and self.data == other.data
        if kind in (ValueKind.ENUM8, ValueKind.ENUM16):
            return self.data == other.data and self.enum_values == other.enum_values
        if kind is ValueKind.MAP:
            return (
                len(self.data) == len(other.data)
                and self.item_type == other.item_type
                and self.value_type == other.value_type
                and self.data == other.data
            )
        return self.data == other.data

    def __hash__(self) -> int:
        if self.kind not in _HASHABLE:
            raise TypeError(f"unhashable ValueRef of kind {self.kind.value}")
        return hash(self.data)