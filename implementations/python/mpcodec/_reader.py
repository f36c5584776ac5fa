"""Pull-style byte source used by the decoder.

``ByteReader`` wraps any object with a ``read(n)`` method (a file opened
in binary mode, a socket file, ``io.BytesIO``), or a bytes-like object,
which is wrapped in ``io.BytesIO``.  It adds one byte of lookback and an
exact-length ``read_n`` that never asks the stream for more than
``BYTES_ALLOC_LIMIT`` bytes at a time, so a hostile declared length
cannot force one giant allocation before the data actually arrives.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Optional

from ._constants import BYTES_ALLOC_LIMIT
from ._errors import ERR_EOF, CodecError

logger = logging.getLogger(__name__)


class ByteReader:
    """Byte reader with single-byte lookback and an optional record tape.

    While ``record`` is a bytearray, every byte first consumed during that
    time is appended to it; an unread followed by a re-read leaves it as
    it was.  ``begin_record``/``end_record`` manage the tape for callers that
    need the raw bytes of a value.
    """

    def __init__(self, stream: Any = None) -> None:
        self._buf = bytearray()
        self.record: Optional[bytearray] = None
        self.reset(stream)

    def reset(self, stream: Any) -> None:
        """Retarget at a new input, dropping lookback and any record tape."""
        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(stream)
        self._stream = stream
        self._last: Optional[int] = None
        self._pending = False
        self._taped = False
        self.record = None

    @property
    def stream(self) -> Any:
        return self._stream

    # ── Reads ─────────────────────────────────────────────────

    def read_byte(self) -> int:
        if self._pending:
            # A pushed-back byte returns to the tape only if it was taken off it.
            self._pending = False
            c = self._last
        else:
            chunk = self._source().read(1)
            if not chunk:
                raise CodecError(ERR_EOF, "msgpack: unexpected end of input")
            c = chunk[0]
            self._last = c
            self._taped = self.record is not None
        if self._taped and self.record is not None:
            self.record.append(c)
        return c

    def unread_byte(self) -> None:
        """Push back the byte returned by the immediately preceding read_byte."""
        if self._last is None or self._pending:
            raise ValueError("unread_byte: no byte to unread")
        self._pending = True
        if self._taped and self.record:
            self.record.pop()

    def read_n(self, n: int) -> bytes:
        """Return exactly n bytes or raise ERR_EOF."""
        if n < 0:
            raise ValueError("read_n: negative length {}".format(n))
        if n == 0:
            self._last = None
            return b""

        if n > BYTES_ALLOC_LIMIT:
            logger.debug("read_n: declared length %d exceeds %d, growing in chunks",
                         n, BYTES_ALLOC_LIMIT)

        # buf is empty between calls.
        buf = self._buf
        try:
            if self._pending:
                buf.append(self._last)
                self._pending = False
            self._last = None

            src = self._source()
            while len(buf) < n:
                want = min(n - len(buf), BYTES_ALLOC_LIMIT)
                chunk = src.read(want)
                if not chunk:
                    logger.debug("read_n: short read, wanted %d got %d", n, len(buf))
                    raise CodecError(
                        ERR_EOF,
                        "msgpack: unexpected end of input: wanted {} bytes, got {}".format(
                            n, len(buf)),
                    )
                buf += chunk
            data = bytes(buf)
        finally:
            del buf[:]

        if self.record is not None:
            self.record += data
        return data

    # ── Record tape ───────────────────────────────────────────

    def begin_record(self) -> None:
        self.record = bytearray()
        self._taped = False

    def end_record(self) -> bytes:
        rec = self.record
        self.record = None
        self._taped = False
        return bytes(rec) if rec is not None else b""

    def _source(self) -> Any:
        if self._stream is None:
            raise ValueError("reader has no input attached")
        return self._stream
