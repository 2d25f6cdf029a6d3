# py/loopy_tools/little_endian.py
"""
Little-endian field decoding.

Every reader takes a byte sequence and an offset and returns a plain int.
Bytes are assembled least-significant first regardless of host byte order.
Nothing here allocates, mutates or retains the buffer.
"""
from __future__ import annotations

from typing import Sequence


class OutOfBoundsError(ValueError):
    """Requested field does not fit inside the buffer."""

    def __init__(self, op: str, offset: int, width: int, length: int):
        super().__init__(f"{op} out of bounds (offset={offset} width={width} len={length})")
        self.offset = offset
        self.width = width
        self.length = length


def _check(op: str, b: Sequence[int], off: int, width: int) -> None:
    if not isinstance(off, int) or isinstance(off, bool):
        raise TypeError(f"{op} offset must be int, not {type(off).__name__}")
    if off < 0 or off + width > len(b):
        raise OutOfBoundsError(op, off, width, len(b))


def _assemble(b: Sequence[int], off: int, width: int) -> int:
    v = 0
    for i in range(width):
        v |= (b[off + i] & 0xFF) << (8 * i)
    return v


def _signed(v: int, bits: int) -> int:
    if v & (1 << (bits - 1)):
        return v - (1 << bits)
    return v


# -------- Readers --------

def read_uint8(b: Sequence[int], off: int) -> int:
    _check("read_uint8", b, off, 1)
    return b[off] & 0xFF


def read_int8(b: Sequence[int], off: int) -> int:
    _check("read_int8", b, off, 1)
    return _signed(b[off] & 0xFF, 8)


def read_uint16le(b: Sequence[int], off: int) -> int:
    _check("read_uint16le", b, off, 2)
    return (b[off] & 0xFF) | ((b[off + 1] & 0xFF) << 8)


def read_int16le(b: Sequence[int], off: int) -> int:
    _check("read_int16le", b, off, 2)
    return _signed(_assemble(b, off, 2), 16)


def read_uint32le(b: Sequence[int], off: int) -> int:
    _check("read_uint32le", b, off, 4)
    return (
        (b[off] & 0xFF)
        | ((b[off + 1] & 0xFF) << 8)
        | ((b[off + 2] & 0xFF) << 16)
        | ((b[off + 3] & 0xFF) << 24)
    )


def read_int32le(b: Sequence[int], off: int) -> int:
    _check("read_int32le", b, off, 4)
    return _signed(_assemble(b, off, 4), 32)


def read_uint64le(b: Sequence[int], off: int) -> int:
    _check("read_uint64le", b, off, 8)
    return _assemble(b, off, 8)


def read_int64le(b: Sequence[int], off: int) -> int:
    _check("read_int64le", b, off, 8)
    return _signed(_assemble(b, off, 8), 64)


# -------- Encoders --------

def _encode(name: str, x: int, width: int, signed: bool) -> bytes:
    bits = 8 * width
    lo, hi = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
    if not (lo <= x <= hi):
        raise ValueError(f"{name} value {x} does not fit ({lo}..{hi})")
    x &= (1 << bits) - 1
    return bytes((x >> (8 * i)) & 0xFF for i in range(width))


def u8(x: int) -> bytes:
    return _encode("u8", x, 1, False)


def s8(x: int) -> bytes:
    return _encode("s8", x, 1, True)


def u16le(x: int) -> bytes:
    return _encode("u16le", x, 2, False)


def s16le(x: int) -> bytes:
    return _encode("s16le", x, 2, True)


def u32le(x: int) -> bytes:
    return _encode("u32le", x, 4, False)


def s32le(x: int) -> bytes:
    return _encode("s32le", x, 4, True)


def u64le(x: int) -> bytes:
    return _encode("u64le", x, 8, False)


def s64le(x: int) -> bytes:
    return _encode("s64le", x, 8, True)


# name -> (reader, width); used by the peek command
READERS = {
    "u8": (read_uint8, 1),
    "s8": (read_int8, 1),
    "u16": (read_uint16le, 2),
    "s16": (read_int16le, 2),
    "u32": (read_uint32le, 4),
    "s32": (read_int32le, 4),
    "u64": (read_uint64le, 8),
    "s64": (read_int64le, 8),
}
