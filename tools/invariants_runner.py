#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Codec invariants (property tests) over random value trees.
#
# This runner:
# - generates random dynamic values (nil/bool/int/float/str/array/map)
# - checks round-trip: decode(encode(V)) == V
# - checks canonical encoding: equal maps with shuffled insertion order
#   encode to identical bytes, and encoding twice is stable
# - checks narrowest fit: the first byte of every integer/string/array/map
#   encoding is the smallest legal tag family
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, math, random
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

import mpcodec
from mpcodec import _constants as codes

SEED = int(os.environ.get("MPCODEC_SEED", "1337"))
TRIALS = int(os.environ.get("MPCODEC_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("MPCODEC_GEN_MAX_DEPTH", "6"))
MAX_KEYS = int(os.environ.get("MPCODEC_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("MPCODEC_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("MPCODEC_GEN_MAX_STR", "40"))

random.seed(SEED)

# Interesting integers: every size-class edge and its neighbours.
INT_EDGES = [0, 1, 127, 128, 255, 256, 65535, 65536, 2**32 - 1, 2**32,
             2**63 - 1, 2**64 - 1, -1, -32, -33, -128, -129, -32768, -32769,
             -(2**31), -(2**31) - 1, -(2**63)]


def rand_utf8_string() -> str:
    out = []
    n = random.choice([random.randint(0, MAX_STR), random.randint(0, 300)])
    for _ in range(n):
        r = random.random()
        if r < 0.70:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.85:
            out.append(chr(random.randint(0xA0, 0xFF)))
        elif r < 0.95:
            out.append(chr(random.randint(0x0100, 0xD7FF)))  # exclude surrogates
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)


def rand_int() -> int:
    if random.random() < 0.5:
        return random.choice(INT_EDGES)
    return random.randint(-(2**63), 2**64 - 1) >> random.randint(0, 63)


def rand_float() -> float:
    r = random.random()
    if r < 0.1:
        return random.choice([0.0, -0.0, float("inf"), float("-inf"), 0.1, 1e308])
    return random.uniform(-1e6, 1e6)


def gen_scalar() -> Any:
    r = random.random()
    if r < 0.10:
        return None
    if r < 0.20:
        return random.random() < 0.5
    if r < 0.55:
        return rand_int()
    if r < 0.70:
        return rand_float()
    return rand_utf8_string()


def gen_value(depth: int) -> Any:
    if depth >= MAX_GEN_DEPTH:
        return gen_scalar()
    r = random.random()
    if r < 0.30:
        keys = list(dict.fromkeys(rand_utf8_string() for _ in range(random.randint(0, MAX_KEYS))))
        return {k: gen_value(depth + 1) for k in keys}
    if r < 0.55:
        return [gen_value(depth + 1) for _ in range(random.randint(0, MAX_LIST))]
    return gen_scalar()


def same(a: Any, b: Any) -> bool:
    """Structural equality that keeps bool/int/float apart and treats NaN == NaN."""
    if type(a) is not type(b):
        return False
    if isinstance(a, float):
        return (math.isnan(a) and math.isnan(b)) or (a == b and math.copysign(1, a) == math.copysign(1, b))
    if isinstance(a, list):
        return len(a) == len(b) and all(same(x, y) for x, y in zip(a, b))
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(same(a[k], b[k]) for k in a)
    return a == b


def shuffled(v: Any) -> Any:
    if isinstance(v, dict):
        items = list(v.items())
        random.shuffle(items)
        return {k: shuffled(x) for k, x in items}
    if isinstance(v, list):
        return [shuffled(x) for x in v]
    return v


def expected_first_byte(v: Any) -> List[int]:
    """Tag(s) the narrowest-fit rules allow for v's first byte."""
    if isinstance(v, bool) or v is None or isinstance(v, float):
        return []
    if isinstance(v, int):
        if 0 <= v <= 127:
            return [v]
        if -32 <= v < 0:
            return [v & 0xFF]
        if v > 0:
            return [codes.UINT8 if v <= 0xFF else codes.UINT16 if v <= 0xFFFF
                    else codes.UINT32 if v <= 0xFFFFFFFF else codes.UINT64]
        return [codes.INT8 if v >= -128 else codes.INT16 if v >= -32768
                else codes.INT32 if v >= -(2**31) else codes.INT64]
    if isinstance(v, str):
        n = len(v.encode("utf-8"))
        return [codes.FIXSTR_LOW | n if n < 32 else codes.STR8 if n < 256
                else codes.STR16 if n <= 0xFFFF else codes.STR32]
    n = len(v)
    if isinstance(v, list):
        return [codes.FIXARRAY_LOW | n if n < 16 else codes.ARRAY16 if n <= 0xFFFF else codes.ARRAY32]
    return [codes.FIXMAP_LOW | n if n < 16 else codes.MAP16 if n <= 0xFFFF else codes.MAP32]


def walk(v: Any):
    yield v
    if isinstance(v, list):
        for x in v:
            yield from walk(x)
    elif isinstance(v, dict):
        for x in v.values():
            yield from walk(x)


def fail(label: str, context: Dict[str, Any]) -> int:
    print("INVARIANT FAIL:", label)
    print("CTX:", json.dumps(context, ensure_ascii=False, default=repr)[:2000])
    return 1


def main() -> int:
    for t in range(TRIALS):
        v = gen_value(0)
        root = v if isinstance(v, dict) else {"root": v}

        # (1) Encoding is stable
        b1 = mpcodec.marshal(root)
        if b1 != mpcodec.marshal(root):
            return fail("encode stability", {"trial": t})

        # (2) Round-trip
        back = mpcodec.unmarshal(b1)
        if not same(back, root):
            return fail("round-trip", {"trial": t, "hex": b1.hex()})

        # (3) Canonical: insertion order does not change the bytes
        if mpcodec.marshal(shuffled(root)) != b1:
            return fail("canonical map order", {"trial": t})

        # (4) Narrowest fit for every node
        for node in walk(root):
            want = expected_first_byte(node)
            if want and mpcodec.marshal(node)[0] not in want:
                return fail("narrowest fit", {"trial": t, "node": node})

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
