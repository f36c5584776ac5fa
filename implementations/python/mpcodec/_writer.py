"""Push-style byte sink used by the encoder.

A tag byte and its fixed-width payload (at most 8 bytes) are assembled in
a reusable 9-byte scratch buffer and handed to the stream in one
``write`` call.  Everything is big-endian.
"""

from __future__ import annotations

import struct
from typing import Any

from ._constants import SCRATCH_SIZE

_U8 = struct.Struct(">BB")
_U16 = struct.Struct(">BH")
_U32 = struct.Struct(">BI")
_U64 = struct.Struct(">BQ")
_F32 = struct.Struct(">Bf")
_F64 = struct.Struct(">Bd")


class ByteWriter:
    """Wraps any object with a ``write`` method.

    The stream only ever sees a memoryview of the scratch buffer for the
    duration of the call, which is all the ``io`` write contract allows
    it to keep.
    """

    def __init__(self, stream: Any = None) -> None:
        self._scratch = bytearray(SCRATCH_SIZE)
        self._view = memoryview(self._scratch)
        self.reset(stream)

    def reset(self, stream: Any) -> None:
        self._stream = stream

    @property
    def stream(self) -> Any:
        return self._stream

    def write_byte(self, c: int) -> None:
        self._scratch[0] = c
        self.write(self._view[:1])

    def write(self, data: Any) -> None:
        if self._stream is None:
            raise ValueError("writer has no output attached")
        view = memoryview(data)
        # Raw streams may accept fewer bytes than offered.
        while view:
            n = self._stream.write(view)
            if n is None or n >= len(view):
                return
            if n <= 0:
                raise OSError("short write: stream accepted no bytes")
            view = view[n:]

    # ── tag + fixed-width payload ─────────────────────────────

    def write1(self, code: int, n: int) -> None:
        _U8.pack_into(self._scratch, 0, code, n)
        self.write(self._view[:2])

    def write2(self, code: int, n: int) -> None:
        _U16.pack_into(self._scratch, 0, code, n)
        self.write(self._view[:3])

    def write4(self, code: int, n: int) -> None:
        _U32.pack_into(self._scratch, 0, code, n)
        self.write(self._view[:5])

    def write8(self, code: int, n: int) -> None:
        _U64.pack_into(self._scratch, 0, code, n)
        self.write(self._view[:9])

    def write_f32(self, code: int, x: float) -> None:
        _F32.pack_into(self._scratch, 0, code, x)
        self.write(self._view[:5])

    def write_f64(self, code: int, x: float) -> None:
        _F64.pack_into(self._scratch, 0, code, x)
        self.write(self._view[:9])
