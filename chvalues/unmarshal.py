"""Decoding of fixed-width little-endian scalars from raw column bytes."""

from __future__ import annotations

import struct
from enum import Enum


class ScalarKind(Enum):
    """Fixed-width scalar types that can be read from a byte slice."""

    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    F32 = "f32"
    F64 = "f64"
    BOOL = "bool"

    @property
    def size(self) -> int:
        """Width of the scalar in bytes."""
        return _SIZES[self]

    @property
    def signed(self) -> bool:
        """Whether an integer kind is two's complement signed."""
        return self.value.startswith("i")


_SIZES = {
    ScalarKind.U8: 1,
    ScalarKind.U16: 2,
    ScalarKind.U32: 4,
    ScalarKind.U64: 8,
    ScalarKind.U128: 16,
    ScalarKind.I8: 1,
    ScalarKind.I16: 2,
    ScalarKind.I32: 4,
    ScalarKind.I64: 8,
    ScalarKind.I128: 16,
    ScalarKind.F32: 4,
    ScalarKind.F64: 8,
    ScalarKind.BOOL: 1,
}

_FLOAT_FORMATS = {ScalarKind.F32: "<f", ScalarKind.F64: "<d"}


def unmarshal(kind: ScalarKind, scratch: bytes | bytearray | memoryview) -> int | float | bool:
    """Decode one scalar of the given kind from its little-endian bytes.

    Integer and float kinds need exactly ``kind.size`` bytes; a boolean is
    true when its first byte is non-zero.
    """
    data = bytes(scratch)
    if kind is ScalarKind.BOOL:
        if not data:
            raise ValueError("cannot decode bool from an empty buffer")
        return data[0] != 0
    if len(data) != kind.size:
        raise ValueError(
            f"{kind.value} needs {kind.size} bytes, got {len(data)}"
        )
    float_format = _FLOAT_FORMATS.get(kind)
    if float_format is not None:
        return struct.unpack(float_format, data)[0]
    return int.from_bytes(data, "little", signed=kind.signed)