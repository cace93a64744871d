import struct

import pytest
from hypothesis import given, strategies as st

from chvalues.unmarshal import ScalarKind, unmarshal

INT_KINDS = [
    ScalarKind.U8,
    ScalarKind.U16,
    ScalarKind.U32,
    ScalarKind.U64,
    ScalarKind.U128,
    ScalarKind.I8,
    ScalarKind.I16,
    ScalarKind.I32,
    ScalarKind.I64,
    ScalarKind.I128,
]


def test_u32_little_endian():
    assert unmarshal(ScalarKind.U32, b"\x01\x00\x00\x00") == 1


def test_i32_all_ones_is_minus_one():
    assert unmarshal(ScalarKind.I32, b"\xff\xff\xff\xff") == -1


def test_unsigned_all_ones_is_max():
    assert unmarshal(ScalarKind.U16, b"\xff\xff") == 2**16 - 1


@pytest.mark.parametrize("kind", INT_KINDS)
@given(data=st.data())
def test_int_round_trip(kind, data):
    bits = kind.size * 8
    if kind.signed:
        value = data.draw(st.integers(-(2 ** (bits - 1)), 2 ** (bits - 1) - 1))
    else:
        value = data.draw(st.integers(0, 2**bits - 1))
    raw = value.to_bytes(kind.size, "little", signed=kind.signed)
    assert unmarshal(kind, raw) == value


@given(st.floats(allow_nan=False))
def test_f64_round_trip(value):
    assert unmarshal(ScalarKind.F64, struct.pack("<d", value)) == value


@given(st.floats(width=32, allow_nan=False))
def test_f32_round_trip(value):
    assert unmarshal(ScalarKind.F32, struct.pack("<f", value)) == value


def test_bool_values():
    assert unmarshal(ScalarKind.BOOL, b"\x00") is False
    assert unmarshal(ScalarKind.BOOL, b"\x02") is True


def test_bool_empty_raises():
    with pytest.raises(ValueError):
        unmarshal(ScalarKind.BOOL, b"")


@pytest.mark.parametrize("kind", INT_KINDS + [ScalarKind.F32, ScalarKind.F64])
def test_wrong_length_raises(kind):
    with pytest.raises(ValueError):
        unmarshal(kind, bytes(kind.size + 1))


def test_accepts_bytearray_and_memoryview():
    raw = (12345).to_bytes(8, "little")
    assert unmarshal(ScalarKind.U64, bytearray(raw)) == 12345
    assert unmarshal(ScalarKind.U64, memoryview(raw)) == 12345