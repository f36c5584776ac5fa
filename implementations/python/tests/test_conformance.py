"""mpcodec conformance test suite.

Runs every vector in conformance/vectors.json: encode vectors compare the
produced hex, decode vectors compare the decoded tree (rendered as
canonical JSON so that 1 and 1.0 stay distinct) or the error code.

Usage:
    python tests/test_conformance.py [--vectors-dir DIR]
    python -m pytest tests/test_conformance.py -v
    MPCODEC_VECTORS_DIR=../../conformance python tests/test_conformance.py
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import unittest
from typing import Any, Dict, List, Optional, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mpcodec import CodecError, marshal, unmarshal

# ── Locate conformance data ───────────────────────────────────

_VECTORS_DIR: Optional[str] = os.environ.get("MPCODEC_VECTORS_DIR", None)


def _find_vectors_dir() -> str:
    if _VECTORS_DIR:
        return _VECTORS_DIR
    candidates = [
        os.path.join(os.path.dirname(__file__), "..", "..", "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "..", "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "..", "conformance"),
    ]
    for d in candidates:
        if os.path.isfile(os.path.join(d, "vectors.json")):
            return d
    raise FileNotFoundError(
        "Cannot find conformance vectors. Set MPCODEC_VECTORS_DIR or --vectors-dir."
    )


def _load_vectors() -> List[dict]:
    d = _find_vectors_dir()
    with open(os.path.join(d, "vectors.json"), "r", encoding="utf-8") as f:
        return json.load(f)["vectors"]


def _canon(value: Any) -> str:
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def _run_vector(vec: dict) -> Dict[str, Any]:
    """Execute one vector.  Returns {"hex": ...}, {"value": ...} or {"err": ...}."""
    mode = vec["mode"]
    try:
        if mode == "encode":
            return {"hex": marshal(vec["value"]).hex()}
        elif mode == "decode":
            return {"value": unmarshal(bytes.fromhex(vec["input_hex"]))}
        else:
            return {"err": "UNKNOWN_MODE"}
    except CodecError as e:
        return {"err": e.code}


def _matches(got: Dict[str, Any], exp: Dict[str, Any]) -> bool:
    if "value" in exp:
        return "value" in got and _canon(got["value"]) == _canon(exp["value"])
    return got == exp


# ── unittest integration ──────────────────────────────────────

class ConformanceTests(unittest.TestCase):
    """Dynamically generated: one test method per vector."""
    pass


def _make_test(vec: dict):
    def test_fn(self: unittest.TestCase) -> None:
        got = _run_vector(vec)
        self.assertTrue(_matches(got, vec["expect"]),
                        "{}: got {} expected {}".format(vec["test_id"], got, vec["expect"]))
    return test_fn


# Attach test methods at import time.
try:
    for _vec in _load_vectors():
        _tid = _vec["test_id"]
        _fn = _make_test(_vec)
        _fn.__name__ = "test_{}".format(_tid)
        _fn.__qualname__ = "ConformanceTests.test_{}".format(_tid)
        setattr(ConformanceTests, "test_{}".format(_tid), _fn)
except FileNotFoundError:
    pass


class TestVectorFileFound(unittest.TestCase):
    def test_vectors_present(self):
        self.assertGreater(len(_load_vectors()), 0)


# ── Standalone CLI runner ─────────────────────────────────────

def main() -> None:
    global _VECTORS_DIR

    parser = argparse.ArgumentParser(description="mpcodec conformance runner")
    parser.add_argument("--vectors-dir", default=None,
                        help="Directory holding vectors.json")
    args, _remaining = parser.parse_known_args()

    if args.vectors_dir:
        _VECTORS_DIR = args.vectors_dir
        os.environ["MPCODEC_VECTORS_DIR"] = args.vectors_dir

    passed = 0
    failures: List[Tuple[str, dict, dict]] = []

    for vec in _load_vectors():
        got = _run_vector(vec)
        if _matches(got, vec["expect"]):
            passed += 1
        else:
            failures.append((vec["test_id"], got, vec["expect"]))

    total = passed + len(failures)
    print("CONFORMANCE: {}/{} PASS".format(passed, total))
    for tid, got, exp in failures:
        print("  FAIL {}: got={} expected={}".format(tid, got, exp))

    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
