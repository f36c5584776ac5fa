"""MessagePack encoder: narrowest-fit encoding of a dynamic value tree.

Supported kinds and their Python types:

    Nil    None
    Bool   bool
    Int    int      (-2**63 .. 2**64-1)
    Float  float    (always emitted as a 64-bit double)
    Str    str      (UTF-8)
    Array  list / tuple
    Map    dict     (str keys only)

Every integer, string, array and map uses the smallest tag family that
can represent it.  Map keys are emitted in unsigned byte order of their
UTF-8 encoding by default, so two equal maps always produce the same
bytes whatever their insertion order.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from ._constants import (
    ARRAY16,
    ARRAY32,
    DOUBLE,
    FALSE,
    FIXARRAY_LOW,
    FIXMAP_LOW,
    FIXSTR_LOW,
    FLOAT,
    INT8,
    INT8_MIN,
    INT16,
    INT16_MIN,
    INT32,
    INT32_MIN,
    INT64,
    INT64_MAX,
    INT64_MIN,
    MAP16,
    MAP32,
    MAX_DEPTH,
    NEG_FIXNUM_MIN,
    NIL,
    POS_FIXNUM_HIGH,
    STR8,
    STR16,
    STR32,
    TRUE,
    UINT8,
    UINT8_MAX,
    UINT16,
    UINT16_MAX,
    UINT32,
    UINT32_MAX,
    UINT64,
    UINT64_MAX,
)
from ._errors import ERR_LIMIT_DEPTH, ERR_UNSUPPORTED, ERR_UTF8, CodecError
from ._writer import ByteWriter


def _utf8(s: str) -> bytes:
    # surrogateescape lets strings decoded from non-UTF-8 wire bytes
    # re-encode to exactly those bytes.
    try:
        return s.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raise CodecError(ERR_UTF8, "msgpack: string holds a lone surrogate")


def _check_range(n: Any, lo: int, hi: int, what: str) -> None:
    if isinstance(n, bool) or not isinstance(n, int):
        raise CodecError(ERR_UNSUPPORTED,
                         "msgpack: {} expects int, got {}".format(what, type(n).__name__))
    if n < lo or n > hi:
        raise CodecError(ERR_UNSUPPORTED,
                         "msgpack: {} out of range: {}".format(what, n))


class Encoder:
    """Streaming encoder over any object with a ``write`` method.

    Not safe for concurrent use; give each thread its own instance or
    take one from the pool (``get_encoder``/``put_encoder``).
    """

    def __init__(self, writer: Any = None, *,
                 max_depth: int = MAX_DEPTH,
                 sort_keys: bool = True) -> None:
        self._w = ByteWriter(writer)
        self.max_depth = max_depth
        self.sort_keys = sort_keys

    def reset(self, writer: Any) -> None:
        """Retarget at a new output, keeping the scratch buffer."""
        self._w.reset(writer)

    @property
    def writer(self) -> Any:
        return self._w.stream

    # ── Kind dispatch ─────────────────────────────────────────

    def encode(self, value: Any) -> None:
        """Encode one dynamic value."""
        self._encode_value(value, 0)

    def _encode_value(self, v: Any, depth: int) -> None:
        if v is None:
            self.encode_nil()
            return

        # bool before int: isinstance(True, int) is True.
        if isinstance(v, bool):
            self.encode_bool(v)
            return

        if isinstance(v, int):
            self.encode_int(v)
            return

        if isinstance(v, float):
            self.encode_float64(v)
            return

        if isinstance(v, str):
            self.encode_string(v)
            return

        if isinstance(v, (list, tuple)):
            if depth + 1 > self.max_depth:
                raise CodecError(ERR_LIMIT_DEPTH, "msgpack: nesting exceeds max_depth")
            self.encode_array_len(len(v))
            for item in v:
                self._encode_value(item, depth + 1)
            return

        if isinstance(v, dict):
            if depth + 1 > self.max_depth:
                raise CodecError(ERR_LIMIT_DEPTH, "msgpack: nesting exceeds max_depth")
            self._encode_map(v, depth + 1)
            return

        raise CodecError(ERR_UNSUPPORTED,
                         "msgpack: unsupported kind {}".format(type(v).__name__))

    def _encode_map(self, m: dict, depth: int) -> None:
        # Keys are checked before the header goes out, so a bad key never
        # leaves a half-written map behind.
        items: List[Tuple[bytes, Any]] = []
        for k, v in m.items():
            if not isinstance(k, str):
                raise CodecError(ERR_UNSUPPORTED,
                                 "msgpack: map key must be a string, got {}".format(
                                     type(k).__name__))
            items.append((_utf8(k), v))

        if self.sort_keys:
            items.sort(key=lambda kv: kv[0])

        self.encode_map_len(len(items))
        for kb, v in items:
            self._encode_string_len(len(kb))
            self._w.write(kb)
            self._encode_value(v, depth)

    # ── Scalars ───────────────────────────────────────────────

    def encode_nil(self) -> None:
        self._w.write_byte(NIL)

    def encode_bool(self, value: bool) -> None:
        self._w.write_byte(TRUE if value else FALSE)

    def encode_int(self, n: int) -> None:
        """Signed integer, narrowest fit.  Non-negative values take the unsigned path."""
        _check_range(n, INT64_MIN, UINT64_MAX, "int")
        if n >= 0:
            self.encode_uint(n)
        elif n >= NEG_FIXNUM_MIN:
            self._w.write_byte(n & 0xFF)
        elif n >= INT8_MIN:
            self.encode_int8(n)
        elif n >= INT16_MIN:
            self.encode_int16(n)
        elif n >= INT32_MIN:
            self.encode_int32(n)
        else:
            self.encode_int64(n)

    def encode_uint(self, n: int) -> None:
        """Unsigned integer, narrowest fit."""
        _check_range(n, 0, UINT64_MAX, "uint")
        if n <= POS_FIXNUM_HIGH:
            self._w.write_byte(n)
        elif n <= UINT8_MAX:
            self.encode_uint8(n)
        elif n <= UINT16_MAX:
            self.encode_uint16(n)
        elif n <= UINT32_MAX:
            self.encode_uint32(n)
        else:
            self.encode_uint64(n)

    # Fixed-width forms always emit the named family.

    def encode_int8(self, n: int) -> None:
        _check_range(n, INT8_MIN, 2**7 - 1, "int8")
        self._w.write1(INT8, n & 0xFF)

    def encode_int16(self, n: int) -> None:
        _check_range(n, INT16_MIN, 2**15 - 1, "int16")
        self._w.write2(INT16, n & 0xFFFF)

    def encode_int32(self, n: int) -> None:
        _check_range(n, INT32_MIN, 2**31 - 1, "int32")
        self._w.write4(INT32, n & 0xFFFFFFFF)

    def encode_int64(self, n: int) -> None:
        _check_range(n, INT64_MIN, INT64_MAX, "int64")
        self._w.write8(INT64, n & 0xFFFFFFFFFFFFFFFF)

    def encode_uint8(self, n: int) -> None:
        _check_range(n, 0, UINT8_MAX, "uint8")
        self._w.write1(UINT8, n)

    def encode_uint16(self, n: int) -> None:
        _check_range(n, 0, UINT16_MAX, "uint16")
        self._w.write2(UINT16, n)

    def encode_uint32(self, n: int) -> None:
        _check_range(n, 0, UINT32_MAX, "uint32")
        self._w.write4(UINT32, n)

    def encode_uint64(self, n: int) -> None:
        _check_range(n, 0, UINT64_MAX, "uint64")
        self._w.write8(UINT64, n)

    def encode_float64(self, x: float) -> None:
        """Double (0xCB) + IEEE-754 bits.  NaN and infinities pass through as-is."""
        self._w.write_f64(DOUBLE, x)

    def encode_float32(self, x: float) -> None:
        try:
            self._w.write_f32(FLOAT, x)
        except OverflowError:
            raise CodecError(ERR_UNSUPPORTED,
                             "msgpack: {!r} does not fit a float32".format(x))

    def encode_string(self, s: str) -> None:
        raw = _utf8(s)
        self._encode_string_len(len(raw))
        self._w.write(raw)

    def _encode_string_len(self, n: int) -> None:
        if n < 32:
            self._w.write_byte(FIXSTR_LOW | n)
        elif n < 256:
            self._w.write1(STR8, n)
        elif n <= UINT16_MAX:
            self._w.write2(STR16, n)
        elif n <= UINT32_MAX:
            self._w.write4(STR32, n)
        else:
            raise CodecError(ERR_UNSUPPORTED, "msgpack: string too long")

    # ── Container headers ─────────────────────────────────────
    # Only the header is written; the caller must follow with exactly n
    # elements (arrays) or n key/value pairs (maps).

    def encode_array_len(self, n: int) -> None:
        _check_range(n, 0, UINT32_MAX, "array length")
        if n < 16:
            self._w.write_byte(FIXARRAY_LOW | n)
        elif n <= UINT16_MAX:
            self._w.write2(ARRAY16, n)
        else:
            self._w.write4(ARRAY32, n)

    def encode_map_len(self, n: int) -> None:
        _check_range(n, 0, UINT32_MAX, "map length")
        if n < 16:
            self._w.write_byte(FIXMAP_LOW | n)
        elif n <= UINT16_MAX:
            self._w.write2(MAP16, n)
        else:
            self._w.write4(MAP32, n)
