"""mpcodec: a narrowest-fit MessagePack codec for JSON-like values.

Converts between native Python values (None, bool, int, float, str,
list, str-keyed dict) and the MessagePack wire format.

Quick start:
    >>> from mpcodec import marshal, unmarshal
    >>> marshal({"M": True}).hex()
    '81a14dc3'
    >>> unmarshal(bytes.fromhex("81a14dc2"))
    {'M': False}

Streaming use goes through ``new_encoder``/``new_decoder``, which accept
any binary stream; ``reset`` rebinds an instance to a new stream.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Optional

from ._constants import INT64_MAX, INT64_MIN, MAX_DEPTH, UINT64_MAX
from ._decoder import Decoder
from ._encoder import Encoder
from ._errors import (
    ERR_EOF,
    ERR_JSON,
    ERR_KEY_TYPE,
    ERR_LENGTH_CODE,
    ERR_LIMIT_DEPTH,
    ERR_UNKNOWN_TAG,
    ERR_UNSUPPORTED,
    ERR_UTF8,
    CodecError,
)
from ._pool import get_decoder, get_encoder, put_decoder, put_encoder
from ._reader import ByteReader
from ._writer import ByteWriter

__version__ = "1.0.0"

__all__ = [
    # One-shot API
    "marshal",
    "unmarshal",
    # Streaming API
    "new_encoder",
    "new_decoder",
    "Encoder",
    "Decoder",
    "ByteReader",
    "ByteWriter",
    # Pool
    "get_encoder",
    "put_encoder",
    "get_decoder",
    "put_decoder",
    # Exception
    "CodecError",
    # Error codes
    "ERR_EOF",
    "ERR_UNKNOWN_TAG",
    "ERR_LENGTH_CODE",
    "ERR_UNSUPPORTED",
    "ERR_KEY_TYPE",
    "ERR_UTF8",
    "ERR_LIMIT_DEPTH",
    "ERR_JSON",
    # Bounds
    "INT64_MIN",
    "INT64_MAX",
    "UINT64_MAX",
]


# ── One-shot API ──────────────────────────────────────────────

def marshal(value: Any) -> bytes:
    """Encode one value into a new byte string."""
    buf = io.BytesIO()
    enc = get_encoder()
    enc.reset(buf)
    try:
        enc.encode(value)
    finally:
        put_encoder(enc)
    return buf.getvalue()


def unmarshal(data: bytes, out: Optional[dict] = None) -> Optional[Dict[str, Any]]:
    """Decode a map-rooted document from a byte string.

    Returns the decoded dict (``out`` itself when given), or None for a
    Nil root.  Bytes after the root value are ignored.
    """
    dec = get_decoder()
    dec.reset(data)
    try:
        return dec.decode(out)
    finally:
        put_decoder(dec)


# ── Streaming API ─────────────────────────────────────────────

def new_encoder(writer: Any, *, max_depth: int = MAX_DEPTH,
                sort_keys: bool = True) -> Encoder:
    """Encoder writing to any object with a ``write`` method."""
    return Encoder(writer, max_depth=max_depth, sort_keys=sort_keys)


def new_decoder(reader: Any, *, max_depth: int = MAX_DEPTH) -> Decoder:
    """Decoder reading from a binary stream or a bytes-like object."""
    return Decoder(reader, max_depth=max_depth)
