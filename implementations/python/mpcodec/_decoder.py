"""MessagePack decoder: tag-driven materialization of a dynamic value tree.

One tag byte is read, classified into its family, the matching width of
payload is read, and containers recurse.  Results are native Python
values (see ``_encoder`` for the type table).  All integer families
decode to ``int``; a ``uint64`` above 2**63-1 keeps its unsigned value.

Declared container lengths come from untrusted input, so nothing is
preallocated beyond the ceilings in ``_constants``; larger streams still
decode by growing as elements actually arrive.
"""

from __future__ import annotations

import logging
import struct
from typing import Any, Dict, List, Optional

from ._constants import (
    ARRAY16,
    ARRAY32,
    DOUBLE,
    FALSE,
    FIXARRAY_MASK,
    FIXMAP_MASK,
    FIXSTR_MASK,
    FLOAT,
    INT8,
    INT16,
    INT32,
    INT64,
    MAP16,
    MAP32,
    MAX_DEPTH,
    NIL,
    SLICE_ALLOC_LIMIT,
    STR8,
    STR16,
    STR32,
    TRUE,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    is_fixed_array,
    is_fixed_map,
    is_fixed_num,
    is_fixed_string,
    is_neg_fixed_num,
    is_pos_fixed_num,
    is_string,
)
from ._errors import (
    ERR_KEY_TYPE,
    ERR_LIMIT_DEPTH,
    ERR_UNKNOWN_TAG,
    ERR_UNSUPPORTED,
    CodecError,
    unexpected_code,
)
from ._reader import ByteReader

logger = logging.getLogger(__name__)

_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

# tag -> (payload width, signed)
_INT_WIDTHS = {
    UINT8: (1, False),
    INT8: (1, True),
    UINT16: (2, False),
    INT16: (2, True),
    UINT32: (4, False),
    INT32: (4, True),
    UINT64: (8, False),
    INT64: (8, True),
}


class Decoder:
    """Streaming decoder over any object with a ``read`` method, or bytes.

    Reads are strictly sequential.  After any error the stream position
    is undefined; discard the input (or ``reset`` to a new one).
    """

    def __init__(self, reader: Any = None, *, max_depth: int = MAX_DEPTH) -> None:
        self._r = ByteReader(reader)
        self.max_depth = max_depth
        self._depth = 0

    def reset(self, reader: Any) -> None:
        """Retarget at a new input, keeping the read buffer."""
        self._r.reset(reader)
        self._depth = 0

    @property
    def reader(self) -> Any:
        return self._r.stream

    # ── Entry point ───────────────────────────────────────────

    def decode(self, out: Optional[dict] = None) -> Optional[Dict[str, Any]]:
        """Decode one map-rooted document.

        When ``out`` is given it must be a dict; its contents are replaced
        by the decoded map and it is returned.  A Nil root returns None
        and leaves ``out`` untouched.
        """
        if out is not None and not isinstance(out, dict):
            raise CodecError(ERR_UNSUPPORTED,
                             "msgpack: decode target must be a dict, got {}".format(
                                 type(out).__name__))
        m = self.decode_map()
        if m is None or out is None:
            return m
        out.clear()
        out.update(m)
        return out

    # ── Maps ──────────────────────────────────────────────────

    def decode_map_len(self) -> int:
        """Read a map header; -1 means Nil."""
        return self._map_len(self._r.read_byte())

    def _map_len(self, c: int) -> int:
        if c == NIL:
            return -1
        if is_fixed_map(c):
            return c & FIXMAP_MASK
        if c == MAP16:
            return self._uint(2)
        if c == MAP32:
            return self._uint(4)
        raise unexpected_code(c, "decoding map length")

    def decode_map(self) -> Optional[Dict[str, Any]]:
        n = self.decode_map_len()
        if n == -1:
            return None

        self._enter()
        try:
            # dicts grow on their own; nothing is sized from n up front.
            m: Dict[str, Any] = {}
            for _ in range(n):
                k = self._map_key()
                m[k] = self.decode_interface()  # duplicate keys: last wins
            return m
        finally:
            self._depth -= 1

    def _map_key(self) -> str:
        c = self._r.read_byte()
        if not is_string(c):
            raise CodecError(
                ERR_KEY_TYPE,
                "msgpack: map key has non-string code=0x{:02x}".format(c),
                tag=c,
                hint="decoding map key",
            )
        # is_string excludes Nil, so the length is never -1 here.
        return self._text(self._bytes_len(c))

    # ── Arrays ────────────────────────────────────────────────

    def decode_array_len(self) -> int:
        """Read an array header; -1 means Nil."""
        return self._array_len(self._r.read_byte())

    def _array_len(self, c: int) -> int:
        if c == NIL:
            return -1
        if is_fixed_array(c):
            return c & FIXARRAY_MASK
        if c == ARRAY16:
            return self._uint(2)
        if c == ARRAY32:
            return self._uint(4)
        raise unexpected_code(c, "decoding array length")

    def decode_array(self) -> Optional[List[Any]]:
        return self._array(self._r.read_byte())

    def _array(self, c: int) -> Optional[List[Any]]:
        n = self._array_len(c)
        if n == -1:
            return None

        self._enter()
        try:
            hint = min(n, SLICE_ALLOC_LIMIT)
            items: List[Any] = [None] * hint
            for i in range(n):
                v = self.decode_interface()
                if i < hint:
                    items[i] = v
                else:
                    items.append(v)
            return items
        finally:
            self._depth -= 1

    # ── Strings ───────────────────────────────────────────────

    def decode_string(self) -> Optional[str]:
        """Decode a string; Nil yields None."""
        return self._string(self._r.read_byte())

    def _string(self, c: int) -> Optional[str]:
        n = self._bytes_len(c)
        if n == -1:
            return None
        return self._text(n)

    def _text(self, n: int) -> str:
        if n == 0:
            return ""
        # No UTF-8 validation: surrogateescape keeps every wire byte.
        return self._r.read_n(n).decode("utf-8", "surrogateescape")

    def _bytes_len(self, c: int) -> int:
        if c == NIL:
            return -1
        if is_fixed_string(c):
            return c & FIXSTR_MASK
        if c == STR8:
            return self._r.read_byte()
        if c == STR16:
            return self._uint(2)
        if c == STR32:
            return self._uint(4)
        raise unexpected_code(c, "decoding string/bytes length")

    # ── Booleans and numbers ──────────────────────────────────

    def decode_bool(self) -> bool:
        """Decode a bool; Nil yields False."""
        return self._bool(self._r.read_byte())

    def _bool(self, c: int) -> bool:
        if c == NIL or c == FALSE:
            return False
        if c == TRUE:
            return True
        raise unexpected_code(c, "decoding bool")

    def decode_int(self) -> int:
        """Decode any integer family; Nil yields 0."""
        return self._int(self._r.read_byte())

    def _int(self, c: int) -> int:
        if c == NIL:
            return 0
        if is_fixed_num(c):
            return c - 0x100 if is_neg_fixed_num(c) else c
        width = _INT_WIDTHS.get(c)
        if width is None:
            raise unexpected_code(c, "decoding int64")
        size, signed = width
        if size == 1:
            raw = bytes((self._r.read_byte(),))
        else:
            raw = self._r.read_n(size)
        return int.from_bytes(raw, "big", signed=signed)

    def decode_float(self) -> float:
        """Decode Float/Double, widening integer families too."""
        c = self._r.read_byte()
        if c == FLOAT or c == DOUBLE:
            return self._float(c)
        if c == NIL or is_fixed_num(c) or c in _INT_WIDTHS:
            return float(self._int(c))
        raise unexpected_code(c, "decoding float64")

    def _float(self, c: int) -> float:
        if c == FLOAT:
            return _F32.unpack(self._r.read_n(4))[0]
        return _F64.unpack(self._r.read_n(8))[0]

    # ── Generic ───────────────────────────────────────────────

    def decode_interface(self) -> Any:
        """Decode whatever value comes next."""
        r = self._r
        c = r.read_byte()

        if is_pos_fixed_num(c):
            return c
        if is_fixed_map(c):
            r.unread_byte()
            return self.decode_map()
        if is_fixed_array(c):
            return self._array(c)
        if is_fixed_string(c):
            return self._string(c)

        if c == NIL:
            return None
        if c == FALSE or c == TRUE:
            return c == TRUE
        if c == DOUBLE or c == FLOAT:
            return self._float(c)
        if c in (STR8, STR16, STR32):
            return self._string(c)
        if c == MAP16 or c == MAP32:
            r.unread_byte()
            return self.decode_map()
        if c == ARRAY16 or c == ARRAY32:
            return self._array(c)
        if c in _INT_WIDTHS:
            return self._int(c)
        if is_neg_fixed_num(c):
            return c - 0x100

        logger.debug("decode_interface: unsupported code 0x%02x", c)
        raise CodecError(
            ERR_UNKNOWN_TAG,
            "msgpack: unknown code=0x{:02x} decoding value".format(c),
            tag=c,
            hint="decoding value",
        )

    def skip(self) -> None:
        """Consume the next value without keeping it."""
        self.decode_interface()

    def decode_raw(self) -> bytes:
        """Return the exact wire bytes of the next value."""
        self._r.begin_record()
        try:
            self.decode_interface()
        finally:
            raw = self._r.end_record()
        return raw

    # ── Helpers ───────────────────────────────────────────────

    def _uint(self, size: int) -> int:
        return int.from_bytes(self._r.read_n(size), "big")

    def _enter(self) -> None:
        if self._depth >= self.max_depth:
            raise CodecError(ERR_LIMIT_DEPTH, "msgpack: nesting exceeds max_depth")
        self._depth += 1
