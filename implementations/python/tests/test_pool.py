"""Pooled encoder/decoder instances."""

from __future__ import annotations

import io
import os
import sys
import threading
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mpcodec import (
    Decoder,
    Encoder,
    get_decoder,
    get_encoder,
    marshal,
    put_decoder,
    put_encoder,
    unmarshal,
)
from mpcodec._pool import FreeList


class TestPool(unittest.TestCase):
    def test_encoder_returned_detached(self):
        enc = get_encoder()
        self.assertIsInstance(enc, Encoder)
        enc.reset(io.BytesIO())
        enc.sort_keys = False
        put_encoder(enc)
        self.assertIsNone(enc.writer)
        self.assertTrue(enc.sort_keys)

    def test_decoder_returned_detached(self):
        dec = get_decoder()
        self.assertIsInstance(dec, Decoder)
        dec.reset(b"\x80")
        self.assertEqual(dec.decode(), {})
        put_decoder(dec)
        self.assertIsNone(dec.reader)

    def test_instance_reused(self):
        enc = get_encoder()
        put_encoder(enc)
        self.assertIs(get_encoder(), enc)

    def test_idle_decoder_holds_no_payload(self):
        big = "z" * 3_000_000
        self.assertEqual(unmarshal(marshal({"s": big})), {"s": big})
        dec = get_decoder()
        try:
            self.assertEqual(len(dec._r._buf), 0)
        finally:
            put_decoder(dec)

    def test_free_list_caps_idle(self):
        fl = FreeList(object, max_idle=2)
        items = [fl.get() for _ in range(4)]
        for it in items:
            fl.put(it)
        self.assertEqual(len(fl), 2)

    def test_concurrent_one_shot_calls(self):
        errors = []

        def worker(i):
            try:
                for j in range(200):
                    doc = {"i": i, "j": j, "s": "x" * (j % 40)}
                    if unmarshal(marshal(doc)) != doc:
                        errors.append((i, j))
            except Exception as e:  # surfaced through the errors list
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])


if __name__ == "__main__":
    unittest.main()
