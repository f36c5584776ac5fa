"""Encoder tests: narrowest-fit size classes, fixed-width forms, errors."""

from __future__ import annotations

import io
import os
import struct
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mpcodec import CodecError, Encoder, ERR_UNSUPPORTED, ERR_UTF8


def enc(fn_name, *args, **opts):
    buf = io.BytesIO()
    getattr(Encoder(buf, **opts), fn_name)(*args)
    return buf.getvalue()


class TestIntegerSizeClasses(unittest.TestCase):
    CASES = [
        (0, "00"),
        (127, "7f"),
        (128, "cc80"),
        (255, "ccff"),
        (256, "cd0100"),
        (65535, "cdffff"),
        (65536, "ce00010000"),
        (2**32 - 1, "ceffffffff"),
        (2**32, "cf0000000100000000"),
        (2**63 - 1, "cf7fffffffffffffff"),
        (-1, "ff"),
        (-32, "e0"),
        (-33, "d0df"),
        (-128, "d080"),
        (-129, "d1ff7f"),
        (-32768, "d18000"),
        (-32769, "d2ffff7fff"),
        (-(2**31), "d280000000"),
        (-(2**31) - 1, "d3ffffffff7fffffff"),
        (-(2**63), "d38000000000000000"),
    ]

    def test_encode_int(self):
        for n, hx in self.CASES:
            with self.subTest(n=n):
                self.assertEqual(enc("encode_int", n).hex(), hx)

    def test_encode_dispatches_ints(self):
        for n, hx in self.CASES:
            with self.subTest(n=n):
                self.assertEqual(enc("encode", n).hex(), hx)

    def test_encode_uint_max(self):
        self.assertEqual(enc("encode_uint", 2**64 - 1).hex(), "cfffffffffffffffff")

    def test_encode_uint_rejects_negative(self):
        with self.assertRaises(CodecError) as ctx:
            enc("encode_uint", -1)
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED)

    def test_encode_int_rejects_non_int(self):
        for bad in (1.5, "1", True):
            with self.subTest(bad=bad):
                with self.assertRaises(CodecError):
                    enc("encode_int", bad)


class TestFixedWidth(unittest.TestCase):
    def test_fixed_width_forms_ignore_narrowest_fit(self):
        self.assertEqual(enc("encode_int8", 1).hex(), "d001")
        self.assertEqual(enc("encode_int16", 1).hex(), "d10001")
        self.assertEqual(enc("encode_int32", -1).hex(), "d2ffffffff")
        self.assertEqual(enc("encode_int64", 1).hex(), "d30000000000000001")
        self.assertEqual(enc("encode_uint8", 1).hex(), "cc01")
        self.assertEqual(enc("encode_uint16", 1).hex(), "cd0001")
        self.assertEqual(enc("encode_uint32", 1).hex(), "ce00000001")
        self.assertEqual(enc("encode_uint64", 1).hex(), "cf0000000000000001")

    def test_fixed_width_range_checked(self):
        for name, n in [("encode_int8", 128), ("encode_int16", -32769),
                        ("encode_uint8", 256), ("encode_uint32", 2**32)]:
            with self.subTest(name=name):
                with self.assertRaises(CodecError) as ctx:
                    enc(name, n)
                self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED)


class TestFloats(unittest.TestCase):
    def test_double(self):
        self.assertEqual(enc("encode_float64", 0.1).hex(), "cb3fb999999999999a")

    def test_float_always_double(self):
        self.assertEqual(enc("encode", 0.5).hex(), "cb3fe0000000000000")

    def test_infinity_verbatim(self):
        self.assertEqual(enc("encode_float64", float("inf")).hex(), "cb7ff0000000000000")

    def test_nan_bits_verbatim(self):
        nan = struct.unpack(">d", bytes.fromhex("7ff8000000000001"))[0]
        self.assertEqual(enc("encode_float64", nan).hex(), "cb7ff8000000000001")

    def test_float32(self):
        self.assertEqual(enc("encode_float32", 1.5).hex(), "ca3fc00000")

    def test_float32_overflow(self):
        with self.assertRaises(CodecError) as ctx:
            enc("encode_float32", 1e300)
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED)


class TestStringSizeClasses(unittest.TestCase):
    def _head(self, n, size):
        return enc("encode_string", "a" * n)[:size].hex()

    def test_boundaries(self):
        self.assertEqual(self._head(0, 1), "a0")
        self.assertEqual(self._head(31, 1), "bf")
        self.assertEqual(self._head(32, 2), "d920")
        self.assertEqual(self._head(255, 2), "d9ff")
        self.assertEqual(self._head(256, 3), "da0100")
        self.assertEqual(self._head(65535, 3), "daffff")
        self.assertEqual(self._head(65536, 5), "db00010000")

    def test_length_counts_utf8_bytes(self):
        # 16 two-byte characters = 32 bytes -> str8
        b = enc("encode_string", "é" * 16)
        self.assertEqual(b[:2].hex(), "d920")
        self.assertEqual(len(b), 34)

    def test_payload_follows_header(self):
        self.assertEqual(enc("encode_string", "hi").hex(), "a26869")

    def test_lone_surrogate(self):
        with self.assertRaises(CodecError) as ctx:
            enc("encode_string", "\ud800")
        self.assertEqual(ctx.exception.code, ERR_UTF8)


class TestContainerHeaders(unittest.TestCase):
    def test_array_len(self):
        self.assertEqual(enc("encode_array_len", 0).hex(), "90")
        self.assertEqual(enc("encode_array_len", 15).hex(), "9f")
        self.assertEqual(enc("encode_array_len", 16).hex(), "dc0010")
        self.assertEqual(enc("encode_array_len", 65535).hex(), "dcffff")
        self.assertEqual(enc("encode_array_len", 65536).hex(), "dd00010000")

    def test_map_len(self):
        self.assertEqual(enc("encode_map_len", 0).hex(), "80")
        self.assertEqual(enc("encode_map_len", 15).hex(), "8f")
        self.assertEqual(enc("encode_map_len", 16).hex(), "de0010")
        self.assertEqual(enc("encode_map_len", 65536).hex(), "df00010000")

    def test_negative_length(self):
        with self.assertRaises(CodecError):
            enc("encode_array_len", -1)

    def test_sixteen_key_map_uses_map16(self):
        doc = {"k{:02d}".format(i): i for i in range(16)}
        self.assertEqual(enc("encode", doc)[:3].hex(), "de0010")

    def test_nil_and_bools(self):
        self.assertEqual(enc("encode_nil").hex(), "c0")
        self.assertEqual(enc("encode_bool", True).hex(), "c3")
        self.assertEqual(enc("encode_bool", False).hex(), "c2")


class TestKindErrors(unittest.TestCase):
    def test_bad_key_writes_nothing(self):
        buf = io.BytesIO()
        with self.assertRaises(CodecError) as ctx:
            Encoder(buf).encode({"a": 1, 2: 3})
        self.assertEqual(ctx.exception.code, ERR_UNSUPPORTED)
        self.assertEqual(buf.getvalue(), b"")

    def test_partial_output_inside_array(self):
        buf = io.BytesIO()
        with self.assertRaises(CodecError):
            Encoder(buf).encode([1, 2, object()])
        self.assertEqual(buf.getvalue(), bytes.fromhex("930102"))

    def test_custom_max_depth(self):
        with self.assertRaises(CodecError):
            Encoder(io.BytesIO(), max_depth=2).encode([[[1]]])
        buf = io.BytesIO()
        Encoder(buf, max_depth=3).encode([[[1]]])
        self.assertEqual(buf.getvalue().hex(), "91919101")


class _ShortWriter:
    """Raw-style stream that accepts at most two bytes per call."""

    def __init__(self):
        self.data = bytearray()

    def write(self, b):
        chunk = bytes(b[:2])
        self.data += chunk
        return len(chunk)


class _BrokenWriter:
    def write(self, b):
        raise OSError("pipe closed")


class TestTransport(unittest.TestCase):
    def test_short_writes_completed(self):
        w = _ShortWriter()
        Encoder(w).encode({"key": -70000})
        self.assertEqual(bytes(w.data).hex(), "81a36b6579d2fffeee90")

    def test_transport_error_propagates(self):
        with self.assertRaises(OSError):
            Encoder(_BrokenWriter()).encode({"a": 1})

    def test_no_writer_attached(self):
        with self.assertRaises(ValueError):
            Encoder().encode(1)


if __name__ == "__main__":
    unittest.main()
