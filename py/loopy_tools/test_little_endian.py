# py/loopy_tools/test_little_endian.py
from __future__ import annotations

import random
import struct
import unittest

from .little_endian import (
    READERS,
    OutOfBoundsError,
    read_int8,
    read_int16le,
    read_int32le,
    read_int64le,
    read_uint8,
    read_uint16le,
    read_uint32le,
    read_uint64le,
    s8,
    s16le,
    s32le,
    s64le,
    u8,
    u16le,
    u32le,
    u64le,
)

# (reader, encoder, width, lo, hi, struct format)
CASES = [
    (read_uint8, u8, 1, 0, 0xFF, "<B"),
    (read_int8, s8, 1, -0x80, 0x7F, "<b"),
    (read_uint16le, u16le, 2, 0, 0xFFFF, "<H"),
    (read_int16le, s16le, 2, -0x8000, 0x7FFF, "<h"),
    (read_uint32le, u32le, 4, 0, 0xFFFFFFFF, "<I"),
    (read_int32le, s32le, 4, -0x80000000, 0x7FFFFFFF, "<i"),
    (read_uint64le, u64le, 8, 0, 0xFFFFFFFFFFFFFFFF, "<Q"),
    (read_int64le, s64le, 8, -0x8000000000000000, 0x7FFFFFFFFFFFFFFF, "<q"),
]


def _samples(lo: int, hi: int, rng: random.Random, n: int = 500):
    edges = {lo, lo + 1, hi - 1, hi, 0, 1, -1}
    # byte-pattern edges: 0x7F.., 0x80.., 0xFF..
    span = hi - lo + 1
    bits = span.bit_length() - 1
    for k in range(0, bits + 1, 8):
        edges.update({(1 << k) - 1, 1 << k, -(1 << k)})
    vals = [v for v in edges if lo <= v <= hi]
    vals += [rng.randint(lo, hi) for _ in range(n)]
    return vals


class TestSingleByte(unittest.TestCase):
    def test_uint8_every_byte(self) -> None:
        buf = bytes(range(256))
        for i in range(256):
            self.assertEqual(read_uint8(buf, i), i)

    def test_int8_every_byte(self) -> None:
        buf = bytes(range(256))
        for i in range(256):
            with self.subTest(byte=i):
                self.assertEqual(read_int8(buf, i), i if i < 128 else i - 256)

    def test_int8_sign(self) -> None:
        self.assertEqual(read_int8(b"\xff", 0), -1)
        self.assertEqual(read_int8(b"\x7f", 0), 127)
        self.assertEqual(read_int8(b"\x80", 0), -128)
        self.assertEqual(read_int8(b"\x00", 0), 0)


class TestKnownValues(unittest.TestCase):
    def test_uint16(self) -> None:
        self.assertEqual(read_uint16le(bytes([0x34, 0x12]), 0), 0x1234)

    def test_uint32(self) -> None:
        self.assertEqual(read_uint32le(bytes([0x78, 0x56, 0x34, 0x12]), 0), 0x12345678)

    def test_uint32_top_bit_is_not_a_sign(self) -> None:
        v = read_uint32le(bytes([0xFF, 0xFF, 0xFF, 0xFF]), 0)
        self.assertEqual(v, 4294967295)
        self.assertGreater(v, 0)

    def test_signed_all_ones(self) -> None:
        self.assertEqual(read_int16le(b"\xff\xff", 0), -1)
        self.assertEqual(read_int32le(b"\xff" * 4, 0), -1)
        self.assertEqual(read_int64le(b"\xff" * 8, 0), -1)

    def test_uint64(self) -> None:
        buf = bytes([0x08, 0x07, 0x06, 0x05, 0x04, 0x03, 0x02, 0x01])
        self.assertEqual(read_uint64le(buf, 0), 0x0102030405060708)

    def test_offset_is_respected(self) -> None:
        buf = b"\xaa\xbb\x34\x12\xcc"
        self.assertEqual(read_uint16le(buf, 2), 0x1234)
        self.assertEqual(read_uint16le(buf, 1), 0x34BB)


class TestRoundTrip(unittest.TestCase):
    def test_sixteen_bit_full_range(self) -> None:
        for v in range(0x10000):
            self.assertEqual(read_uint16le(u16le(v), 0), v)
        for v in range(-0x8000, 0x8000):
            self.assertEqual(read_int16le(s16le(v), 0), v)

    def test_wide_fields_sampled(self) -> None:
        rng = random.Random(0x10097)
        for reader, enc, width, lo, hi, fmt in CASES:
            for v in _samples(lo, hi, rng):
                with self.subTest(reader=reader.__name__, value=v):
                    raw = enc(v)
                    self.assertEqual(len(raw), width)
                    self.assertEqual(raw, struct.pack(fmt, v))
                    self.assertEqual(reader(raw, 0), v)

    def test_agrees_with_struct_at_any_offset(self) -> None:
        rng = random.Random(1234)
        buf = bytes(rng.randrange(256) for _ in range(64))
        for reader, _enc, width, _lo, _hi, fmt in CASES:
            for off in range(len(buf) - width + 1):
                with self.subTest(reader=reader.__name__, off=off):
                    self.assertEqual(reader(buf, off), struct.unpack_from(fmt, buf, off)[0])

    def test_unsigned_never_negative(self) -> None:
        rng = random.Random(99)
        buf = bytes(rng.randrange(128, 256) for _ in range(32))
        for reader in (read_uint8, read_uint16le, read_uint32le, read_uint64le):
            for off in range(0, 24):
                self.assertGreaterEqual(reader(buf, off), 0)


class TestBounds(unittest.TestCase):
    def test_short_buffer(self) -> None:
        with self.assertRaises(OutOfBoundsError):
            read_uint16le(bytes([0x01]), 0)

    def test_every_reader_one_past_end(self) -> None:
        for reader, _enc, width, _lo, _hi, _fmt in CASES:
            buf = bytes(width + 3)
            with self.subTest(reader=reader.__name__):
                with self.assertRaises(OutOfBoundsError):
                    reader(buf, len(buf) - width + 1)
                with self.assertRaises(OutOfBoundsError):
                    reader(buf, len(buf))
                with self.assertRaises(OutOfBoundsError):
                    reader(b"", 0)

    def test_negative_offset(self) -> None:
        for reader, _enc, width, _lo, _hi, _fmt in CASES:
            with self.subTest(reader=reader.__name__):
                with self.assertRaises(OutOfBoundsError):
                    reader(bytes(16), -1)
        # Python indexing would happily wrap this; the reader must not.
        with self.assertRaises(OutOfBoundsError):
            read_uint8(b"\x01\x02\x03", -1)

    def test_last_valid_offset(self) -> None:
        buf = bytes(range(1, 17))
        for reader, _enc, width, _lo, _hi, fmt in CASES:
            off = len(buf) - width
            with self.subTest(reader=reader.__name__):
                self.assertEqual(reader(buf, off), struct.unpack_from(fmt, buf, off)[0])

    def test_error_details(self) -> None:
        with self.assertRaises(OutOfBoundsError) as cm:
            read_uint32le(bytes(6), 4)
        e = cm.exception
        self.assertIsInstance(e, ValueError)
        self.assertEqual((e.offset, e.width, e.length), (4, 4, 6))
        self.assertIn("read_uint32le", str(e))

    def test_offset_must_be_int(self) -> None:
        with self.assertRaises(TypeError):
            read_uint8(b"\x00\x01", 1.0)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            read_uint8(b"\x00\x01", True)  # type: ignore[arg-type]


class TestBufferTypes(unittest.TestCase):
    def test_bytearray_and_memoryview(self) -> None:
        raw = bytes([0x78, 0x56, 0x34, 0x12])
        for buf in (raw, bytearray(raw), memoryview(raw)):
            with self.subTest(kind=type(buf).__name__):
                self.assertEqual(read_uint32le(buf, 0), 0x12345678)

    def test_buffer_not_mutated(self) -> None:
        buf = bytearray(b"\xff\x80\x01\x00\x7f\xfe\x00\x10")
        before = bytes(buf)
        for reader, _enc, width, _lo, _hi, _fmt in CASES:
            reader(buf, 0)
        self.assertEqual(bytes(buf), before)

    def test_wide_elements_are_masked(self) -> None:
        # A list of ints is a valid sequence; values outside 0..255 keep only their low byte.
        self.assertEqual(read_uint16le([0x134, 0x212], 0), 0x1234)
        self.assertEqual(read_uint8([-1], 0), 0xFF)
        self.assertEqual(read_int8([0x1FF], 0), -1)


class TestEncoders(unittest.TestCase):
    def test_out_of_range(self) -> None:
        for _reader, enc, _width, lo, hi, _fmt in CASES:
            with self.subTest(enc=enc.__name__):
                with self.assertRaises(ValueError):
                    enc(hi + 1)
                with self.assertRaises(ValueError):
                    enc(lo - 1)

    def test_byte_order(self) -> None:
        self.assertEqual(u16le(0x1234), b"\x34\x12")
        self.assertEqual(u32le(0x12345678), b"\x78\x56\x34\x12")
        self.assertEqual(s32le(-2), b"\xfe\xff\xff\xff")


class TestReaderTable(unittest.TestCase):
    def test_widths(self) -> None:
        self.assertEqual({k: w for k, (_fn, w) in READERS.items()},
                         {"u8": 1, "s8": 1, "u16": 2, "s16": 2, "u32": 4, "s32": 4, "u64": 8, "s64": 8})


if __name__ == "__main__":
    unittest.main()
