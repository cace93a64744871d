# chvalues

Client-side values for a columnar SQL database. The package holds single
cells as Python objects and knows the SQL type of each one. It converts
between cells and ordinary Python data, and it renders cells as text.

## Installing

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Modules

- `chvalues.sqltypes` describes column types and the small value types they
  use.
  - `SqlType(name, args)` is a column type named as in DDL, for example
    `SqlType("UInt8")`, `SqlType("Array", (SqlType("Int32"),))` or
    `SqlType("Decimal", (18, 4))`. `str()` gives the DDL spelling.
  - `DateTimeType(precision, tz)` describes a DateTime column. Without a
    precision it is a plain 32-bit DateTime. With a precision from 0 to 9 it
    is a DateTime64, and the time zone defaults to UTC.
  - `Decimal` is a fixed-point number. `Decimal.of(source, scale)` builds
    one from an int or a float. It supports `str()` and `float()`.
  - `Enum8` and `Enum16` hold enum codes and check their ranges.
  - `decode_ipv4(octets)` and `decode_ipv6(octets)` turn stored bytes into
    `ipaddress` objects. IPv4 octets are stored in reversed order.
  - `to_datetime(value, precision, tz)` turns a DateTime64 tick count into
    an aware `datetime`. Digits below microseconds are truncated.
- `chvalues.unmarshal` provides `ScalarKind` and `unmarshal(kind, scratch)`.
  They decode little-endian integers (8 to 128 bits, signed or unsigned),
  `f32`/`f64` floats and booleans from raw bytes.
- `chvalues.value` provides `Value`, an owned cell, and `ValueKind`, which
  names the cell's variant.
  - Constructors are `Value.from_python`, `Value.from_option`,
    `Value.from_uuid`, `Value.array` and `Value.default(sql_type)`.
  - Readers are `sql_type()`, `as_str()`, `as_bytes()`, `as_date()`,
    `as_datetime()` and `extract(kind)`.
  - For output there are `str()` and `format(alternate)`.
- `chvalues.value_ref` provides `ValueRef`, a borrowed view of a cell, and
  `FromSqlError`. The readers are `sql_type()`, `as_str()`, `as_string()`,
  `as_bytes()` and `format(alternate)`.
- `chvalues.refconvert` converts between `ValueRef`, `Value` and Python data.
  - `ref_from_value` and `ref_to_value` convert between the two cell types.
  - `ref_from_python` builds a `ValueRef` from a bool, number, string or
    bytes.
  - `ref_as_date`, `ref_as_datetime`, `ref_as_enum` and `ref_extract` read
    values out of a `ValueRef`.

## Examples

Building values and reading them back:

    from chvalues.value import Value
    from chvalues.sqltypes import SqlType

    v = Value.from_python(42)
    print(v, v.sql_type())          # 42 Int32

    s = Value.from_python("text")
    assert s.as_str() == "text"

    none = Value.from_option(None, SqlType("UInt8"))
    print(none)                     # NULL

    arr = Value.array(SqlType("Int32"), [1, 2, 3])
    print(arr)                      # [1, 2, 3]

Decimals keep their scale:

    from chvalues.sqltypes import Decimal

    d = Decimal.of(2.0, 2)
    print(d)                        # 2.00
    print(float(d))                 # 2.0

Borrowed views and conversions:

    from chvalues.value_ref import ValueRef, FromSqlError
    from chvalues.refconvert import ref_from_value, ref_to_value

    r = ref_from_value(Value.from_python("abc"))
    assert r.as_string() == "abc"
    assert ref_to_value(r) == Value.from_python("abc")

Decoding raw little-endian bytes:

    from chvalues.unmarshal import ScalarKind, unmarshal

    assert unmarshal(ScalarKind.U16, b"\x01\x02") == 0x0201

## Behaviour worth knowing

- Errors:
  - Reading a `Value` as the wrong kind raises `TypeError`.
  - Reading a `ValueRef` as the wrong kind raises `FromSqlError`, which is a
    subclass of `TypeError`.
  - Reading invalid UTF-8 as text raises `ValueError` from `Value.as_str()`
    and `UnicodeDecodeError` from `ValueRef.as_str()`.
- Formatting:
  - A `Value` DateTime is shown in RFC 2822 form by default.
    `format(alternate=True)` gives `YYYY-MM-DD HH:MM:SS` followed by the
    time zone name.
  - A `ValueRef` DateTime is shown as `YYYY-MM-DD HH:MM:SS` by default, and
    `format(alternate=True)` gives the RFC 2822 form.
  - Strings that are not valid UTF-8 are shown as a list of byte values.
- Equality and hashing:
  - Map values never compare equal, not even to themselves.
  - Bool, IPv4, IPv6 and UUID `ValueRef`s never compare equal.
  - Only integer, string and date-time `Value`s are hashable. Only integer
    and string `ValueRef`s are hashable.
- A `Value` that holds a free-standing aware datetime (the `CHRONO_DATETIME`
  kind) has no borrowed form. `ref_from_value` raises `ValueError` for it.

## What this package does not do

This package models single cells only. It does not connect to a server, it
does not send or receive queries, and it has no blocks, rows or columns to
hold many cells. Apart from `unmarshal`, it does not encode or decode the
wire format.