"""Process-wide free-lists of reusable encoders and decoders.

Purely an allocation saver: a fresh instance per call behaves the same.
Acquire and release are serialized by a lock; the instances themselves
are still single-threaded and belong to whoever checked them out.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, TypeVar

from ._constants import MAX_DEPTH, POOL_MAX_IDLE
from ._decoder import Decoder
from ._encoder import Encoder

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FreeList(Generic[T]):
    def __init__(self, factory: Callable[[], T], max_idle: int = POOL_MAX_IDLE) -> None:
        self._factory = factory
        self._max_idle = max_idle
        self._items: List[T] = []
        self._lock = threading.Lock()

    def get(self) -> T:
        with self._lock:
            if self._items:
                return self._items.pop()
        logger.debug("pool: creating fresh %s", getattr(self._factory, "__name__", "instance"))
        return self._factory()

    def put(self, item: T) -> None:
        with self._lock:
            if len(self._items) < self._max_idle:
                self._items.append(item)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


_encoders: FreeList[Encoder] = FreeList(Encoder)
_decoders: FreeList[Decoder] = FreeList(Decoder)


def get_encoder() -> Encoder:
    """Check out an encoder.  ``reset`` it to an output before use."""
    return _encoders.get()


def put_encoder(enc: Encoder) -> None:
    """Return an encoder; its output is detached and options restored."""
    enc.reset(None)
    enc.max_depth = MAX_DEPTH
    enc.sort_keys = True
    _encoders.put(enc)


def get_decoder() -> Decoder:
    """Check out a decoder.  ``reset`` it to an input before use."""
    return _decoders.get()


def put_decoder(dec: Decoder) -> None:
    """Return a decoder; its input is detached and options restored."""
    dec.reset(None)
    dec.max_depth = MAX_DEPTH
    _decoders.put(dec)
