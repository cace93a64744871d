import uuid
from datetime import timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from chvalues.sqltypes import DEFAULT_TZ, DateTimeType, Decimal, Enum8, SqlType
from chvalues.value import ValueKind
from chvalues.value_ref import FromSqlError, ValueRef


def int32_array():
    return ValueRef(
        ValueKind.ARRAY,
        [ValueRef(ValueKind.INT32, 1), ValueRef(ValueKind.INT32, 2), ValueRef(ValueKind.INT32, 3)],
        item_type=SqlType("Int32"),
    )


def test_display_strings():
    assert str(ValueRef(ValueKind.STRING, bytes([0, 159, 146, 150]))) == "[0, 159, 146, 150]"
    assert str(ValueRef(ValueKind.STRING, b"text")) == "text"


@pytest.mark.parametrize(
    "kind",
    [
        ValueKind.UINT8,
        ValueKind.UINT16,
        ValueKind.UINT32,
        ValueKind.UINT64,
        ValueKind.UINT128,
        ValueKind.INT8,
        ValueKind.INT16,
        ValueKind.INT32,
        ValueKind.INT64,
        ValueKind.INT128,
    ],
)
def test_display_integers(kind):
    assert str(ValueRef(kind, 42)) == "42"


def test_display_floats():
    assert str(ValueRef(ValueKind.FLOAT32, 42.0)) == "42"
    assert str(ValueRef(ValueKind.FLOAT64, 42.0)) == "42"


def test_display_nullable_and_array():
    assert str(ValueRef(ValueKind.NULLABLE, None, item_type=SqlType("UInt8"))) == "NULL"
    assert str(ValueRef(ValueKind.NULLABLE, ValueRef(ValueKind.UINT8, 42))) == "42"
    assert str(int32_array()) == "[1, 2, 3]"


def test_display_dates():
    assert str(ValueRef(ValueKind.DATE, 0)) == "1970-01-01"
    assert ValueRef(ValueKind.DATE, 0).format(True) == "1970-01-01"
    assert str(ValueRef(ValueKind.DATETIME, 0, tz=DEFAULT_TZ)) == "1970-01-01 00:00:00"
    assert ValueRef(ValueKind.DATETIME, 0, tz=DEFAULT_TZ).format(True) in (
        "Thu, 1 Jan 1970 00:00:00 +0000",
        "Thu, 01 Jan 1970 00:00:00 +0000",
    )


def test_display_datetime64():
    ref = ValueRef(ValueKind.DATETIME64, 1_500, precision=3, tz=DEFAULT_TZ)
    assert str(ref) == "1970-01-01 00:00:01"


def test_display_decimal_and_enum():
    assert str(ValueRef(ValueKind.DECIMAL, Decimal.of(2.0, 2))) == "2.00"
    assert str(ValueRef(ValueKind.ENUM8, Enum8(3))) == "3"


def test_display_map():
    ref = ValueRef(
        ValueKind.MAP,
        {ValueRef(ValueKind.UINT8, 1): ValueRef(ValueKind.UINT8, 2)},
        item_type=SqlType("UInt8"),
        value_type=SqlType("UInt8"),
    )
    assert str(ref) == "[1-2]"


def test_uuid():
    parsed = uuid.UUID("936da01f-9abd-4d9d-80c7-02af85c822a8")
    raw = parsed.bytes
    buffer = raw[:8][::-1] + raw[8:][::-1]
    assert str(ValueRef(ValueKind.UUID, buffer)) == "936da01f-9abd-4d9d-80c7-02af85c822a8"


@pytest.mark.parametrize(
    "kind",
    [
        ValueKind.UINT8,
        ValueKind.UINT16,
        ValueKind.UINT32,
        ValueKind.UINT64,
        ValueKind.UINT128,
        ValueKind.INT8,
        ValueKind.INT16,
        ValueKind.INT32,
        ValueKind.INT64,
        ValueKind.INT128,
    ],
)
def test_get_sql_type_integers(kind):
    assert ValueRef(kind, 42).sql_type() == SqlType(kind.value)


def test_get_sql_type_others():
    assert ValueRef(ValueKind.FLOAT32, 42.0).sql_type() == SqlType("Float32")
    assert ValueRef(ValueKind.FLOAT64, 42.0).sql_type() == SqlType("Float64")
    assert ValueRef(ValueKind.STRING, b"").sql_type() == SqlType("String")
    assert ValueRef(ValueKind.DATE, 42).sql_type() == SqlType("Date")
    assert ValueRef(ValueKind.DATETIME, 42, tz=DEFAULT_TZ).sql_type() == SqlType(
        "DateTime", (DateTimeType(),)
    )
    assert ValueRef(ValueKind.DECIMAL, Decimal.of(2.0, 4)).sql_type() == SqlType("Decimal", (18, 4))
    assert int32_array().sql_type() == SqlType("Array", (SqlType("Int32"),))
    assert ValueRef(ValueKind.NULLABLE, None, item_type=SqlType("UInt8")).sql_type() == SqlType(
        "Nullable", (SqlType("UInt8"),)
    )
    assert ValueRef(ValueKind.NULLABLE, ValueRef(ValueKind.INT8, 42)).sql_type() == SqlType(
        "Nullable", (SqlType("Int8"),)
    )


def test_as_str_and_bytes():
    ref = ValueRef(ValueKind.STRING, b"abc")
    assert ref.as_str() == "abc"
    assert ref.as_string() == "abc"
    assert ref.as_bytes() == b"abc"


def test_as_str_wrong_type():
    with pytest.raises(FromSqlError) as info:
        ValueRef(ValueKind.UINT8, 1).as_str()
    assert info.value.src == "UInt8"
    assert info.value.dst == "str"


def test_as_bytes_wrong_type():
    with pytest.raises(FromSqlError) as info:
        ValueRef(ValueKind.INT32, 1).as_bytes()
    assert info.value.dst == "bytes"


def test_as_str_invalid_utf8():
    with pytest.raises(UnicodeDecodeError):
        ValueRef(ValueKind.STRING, bytes([0, 159, 146, 150])).as_str()


@given(st.text())
def test_string_round_trip(text):
    assert ValueRef(ValueKind.STRING, text.encode("utf-8")).as_str() == text


def test_datetime_equality_by_instant():
    plus_three = timezone(timedelta(hours=3))
    assert ValueRef(ValueKind.DATETIME, 100, tz=DEFAULT_TZ) == ValueRef(ValueKind.DATETIME, 100, tz=plus_three)
    assert ValueRef(ValueKind.DATETIME, 100) != ValueRef(ValueKind.DATETIME, 101)


def test_datetime64_equality_across_precisions():
    a = ValueRef(ValueKind.DATETIME64, 1_000, precision=3)
    b = ValueRef(ValueKind.DATETIME64, 1, precision=0)
    assert a == b


def test_bool_values_never_equal():
    assert (ValueRef(ValueKind.BOOL, True) == ValueRef(ValueKind.BOOL, True)) is False


def test_array_equality():
    assert int32_array() == int32_array()
    other = ValueRef(ValueKind.ARRAY, [ValueRef(ValueKind.INT32, 1)], item_type=SqlType("Int32"))
    assert int32_array() != other


def test_map_equality():
    def make(value_type):
        return ValueRef(
            ValueKind.MAP,
            {ValueRef(ValueKind.UINT8, 1): ValueRef(ValueKind.UINT8, 2)},
            item_type=SqlType("UInt8"),
            value_type=value_type,
        )

    assert make(SqlType("UInt8")) == make(SqlType("UInt8"))
    assert make(SqlType("UInt8")) != make(SqlType("UInt16"))


def test_hash_keys_in_dict():
    table = {ValueRef(ValueKind.STRING, b"k"): 1}
    assert table[ValueRef(ValueKind.STRING, "k")] == 1


def test_hash_unsupported_kind():
    with pytest.raises(TypeError):
        hash(ValueRef(ValueKind.FLOAT64, 1.0))


def test_rejects_out_of_range_and_chrono():
    with pytest.raises(ValueError):
        ValueRef(ValueKind.UINT8, 256)
    with pytest.raises(ValueError):
        ValueRef(ValueKind.CHRONO_DATETIME, None)