"""Conversions between borrowed column values, owned values and plain Python objects."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

from chvalues.sqltypes import Enum8, Enum16, to_datetime
from chvalues.unmarshal import ScalarKind
from chvalues.value import (
    _EPOCH_DATE,
    _INT_RANGES,
    _SCALAR_TO_KIND,
    _seconds_to_datetime,
    Value,
    ValueKind,
)
from chvalues.value_ref import FromSqlError, ValueRef

_EXTRACTABLE = frozenset(_SCALAR_TO_KIND.values())
_INT_CANDIDATES = (ValueKind.INT32, ValueKind.INT64, ValueKind.INT128, ValueKind.UINT128)


def _mismatch(ref: ValueRef, target: str) -> FromSqlError:
    return FromSqlError(f"ValueRef::{ref.sql_type()}", target)


def ref_from_value(value: Value) -> ValueRef:
    """Borrow an owned value; a free-standing aware datetime has no borrowed form."""
    kind = value.kind
    if kind is ValueKind.CHRONO_DATETIME:
        raise ValueError("a ChronoDateTime value has no borrowed form")
    if kind is ValueKind.NULLABLE:
        if value.data is None:
            return ValueRef(ValueKind.NULLABLE, None, item_type=value.item_type)
        return ValueRef(ValueKind.NULLABLE, ref_from_value(value.data))
    if kind is ValueKind.ARRAY:
        items = tuple(ref_from_value(item) for item in value.data)
        return ValueRef(ValueKind.ARRAY, items, item_type=value.item_type)
    if kind is ValueKind.MAP:
        entries = {ref_from_value(k): ref_from_value(v) for k, v in value.data.items()}
        return ValueRef(
            ValueKind.MAP, entries, item_type=value.item_type, value_type=value.value_type
        )
    return ValueRef(
        kind,
        value.data,
        tz=value.tz,
        precision=value.precision,
        enum_values=value.enum_values,
    )


def ref_from_python(obj: Any) -> ValueRef:
    """Build a borrowed value from a bool, number, string or bytes.

    Integers take the narrowest of Int32, Int64, Int128 and UInt128 that
    holds them; floats become Float64.
    """
    if isinstance(obj, ValueRef):
        return obj
    if isinstance(obj, bool):
        return ValueRef(ValueKind.BOOL, obj)
    if isinstance(obj, int):
        for kind in _INT_CANDIDATES:
            low, high = _INT_RANGES[kind]
            if low <= obj <= high:
                return ValueRef(kind, obj)
        raise ValueError(f"{obj} does not fit any integer column type")
    if isinstance(obj, float):
        return ValueRef(ValueKind.FLOAT64, obj)
    if isinstance(obj, (str, bytes, bytearray, memoryview)):
        return ValueRef(ValueKind.STRING, obj)
    raise TypeError(f"cannot convert {type(obj).__name__} into a ValueRef")


def ref_to_value(ref: ValueRef) -> Value:
    """Make an owned copy of a borrowed value."""
    kind = ref.kind
    if kind is ValueKind.NULLABLE:
        if ref.data is None:
            return Value(ValueKind.NULLABLE, None, item_type=ref.item_type)
        return Value(ValueKind.NULLABLE, ref_to_value(ref.data))
    if kind is ValueKind.ARRAY:
        items = tuple(ref_to_value(item) for item in ref.data)
        return Value(ValueKind.ARRAY, items, item_type=ref.item_type)
    if kind is ValueKind.MAP:
        entries = {ref_to_value(k): ref_to_value(v) for k, v in ref.data.items()}
        return Value(ValueKind.MAP, entries, item_type=ref.item_type, value_type=ref.value_type)
    return Value(
        kind,
        ref.data,
        tz=ref.tz,
        precision=ref.precision,
        enum_values=ref.enum_values,
    )


def ref_as_date(ref: ValueRef) -> date:
    """The calendar date of a Date value."""
    if ref.kind is not ValueKind.DATE:
        raise _mismatch(ref, "date")
    return _EPOCH_DATE + timedelta(days=ref.data)


def ref_as_datetime(ref: ValueRef) -> datetime:
    """The aware datetime of a DateTime or DateTime64 value."""
    if ref.kind is ValueKind.DATETIME:
        return _seconds_to_datetime(ref.data, ref.tz)
    if ref.kind is ValueKind.DATETIME64:
        return to_datetime(ref.data, ref.precision, ref.tz)
    raise _mismatch(ref, "datetime")


def ref_as_enum(ref: ValueRef) -> Enum8 | Enum16:
    """The code of an Enum8 or Enum16 value."""
    if ref.kind in (ValueKind.ENUM8, ValueKind.ENUM16):
        return ref.data
    raise _mismatch(ref, "enum")


def ref_extract(ref: ValueRef, kind: ScalarKind | ValueKind) -> Any:
    """The payload of a bool, integer or float value of exactly the given kind."""
    if isinstance(kind, ScalarKind):
        target, target_name = _SCALAR_TO_KIND[kind], kind.value
    elif kind in _EXTRACTABLE:
        target, target_name = kind, kind.value
    else:
        raise ValueError(f"{kind} cannot be extracted as a scalar")
    if ref.kind is target:
        return ref.data
    raise _mismatch(ref, target_name)