"""MessagePack tag table, fixed-range classifiers, and allocation ceilings.

Only the subset of the format that mpcodec speaks is listed here: nil,
booleans, integers, floats, UTF-8 strings, arrays and string-keyed maps.
The bin/ext families are deliberately absent; a decoder that meets one
reports an unknown tag.
"""

from __future__ import annotations

# ── Single-byte tags ─────────────────────────────────────────

NIL: int = 0xC0
FALSE: int = 0xC2
TRUE: int = 0xC3

FLOAT: int = 0xCA   # IEEE-754 single, 4 payload bytes
DOUBLE: int = 0xCB  # IEEE-754 double, 8 payload bytes

UINT8: int = 0xCC
UINT16: int = 0xCD
UINT32: int = 0xCE
UINT64: int = 0xCF

INT8: int = 0xD0
INT16: int = 0xD1
INT32: int = 0xD2
INT64: int = 0xD3

STR8: int = 0xD9
STR16: int = 0xDA
STR32: int = 0xDB

ARRAY16: int = 0xDC
ARRAY32: int = 0xDD

MAP16: int = 0xDE
MAP32: int = 0xDF

# ── Fixed ranges (low, high, mask) ───────────────────────────
# The low bits of a fixed-range tag carry the value or the length.

POS_FIXNUM_LOW: int = 0x00
POS_FIXNUM_HIGH: int = 0x7F

NEG_FIXNUM_LOW: int = 0xE0
NEG_FIXNUM_HIGH: int = 0xFF

FIXMAP_LOW: int = 0x80
FIXMAP_HIGH: int = 0x8F
FIXMAP_MASK: int = 0x0F

FIXARRAY_LOW: int = 0x90
FIXARRAY_HIGH: int = 0x9F
FIXARRAY_MASK: int = 0x0F

FIXSTR_LOW: int = 0xA0
FIXSTR_HIGH: int = 0xBF
FIXSTR_MASK: int = 0x1F


def is_fixed_num(c: int) -> bool:
    """True for positive fixint [0x00..0x7F] and negative fixint [0xE0..0xFF]."""
    return c <= POS_FIXNUM_HIGH or c >= NEG_FIXNUM_LOW


def is_pos_fixed_num(c: int) -> bool:
    return POS_FIXNUM_LOW <= c <= POS_FIXNUM_HIGH


def is_neg_fixed_num(c: int) -> bool:
    return NEG_FIXNUM_LOW <= c <= NEG_FIXNUM_HIGH


def is_fixed_map(c: int) -> bool:
    return FIXMAP_LOW <= c <= FIXMAP_HIGH


def is_fixed_array(c: int) -> bool:
    return FIXARRAY_LOW <= c <= FIXARRAY_HIGH


def is_fixed_string(c: int) -> bool:
    return FIXSTR_LOW <= c <= FIXSTR_HIGH


def is_string(c: int) -> bool:
    """True for every tag of the string family (fixstr, str8/16/32)."""
    return is_fixed_string(c) or c in (STR8, STR16, STR32)


# ── Integer bounds ───────────────────────────────────────────
# Python ints are arbitrary-precision, so every width is range-checked
# by hand before packing.

INT8_MIN: int = -(2**7)
INT16_MIN: int = -(2**15)
INT32_MIN: int = -(2**31)
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

UINT8_MAX: int = 2**8 - 1
UINT16_MAX: int = 2**16 - 1
UINT32_MAX: int = 2**32 - 1
UINT64_MAX: int = 2**64 - 1

NEG_FIXNUM_MIN: int = -32

# ── Allocation ceilings ──────────────────────────────────────
# Upper bounds on *hinted* capacity.  A stream that declares more
# elements than these is still decoded, by growing incrementally.

BYTES_ALLOC_LIMIT: int = 1_000_000
SLICE_ALLOC_LIMIT: int = 10_000

# tag byte + up to 8 payload bytes
SCRATCH_SIZE: int = 9

# Nesting guard for both directions.  Kept well below the default
# interpreter recursion limit.
MAX_DEPTH: int = 256

# Idle instances kept per pool.
POOL_MAX_IDLE: int = 32
