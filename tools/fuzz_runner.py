#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Decoder robustness fuzzing.
#
# Generates three fuzz categories:
#   A) valid encodings with random byte flips / truncations
#   B) random byte strings behind a map header
#   C) hostile length prefixes (str32/array32/map32 claiming ~4 GiB)
#
# Every input must either decode or raise CodecError.  Any other
# exception prints a minimal repro payload and exits non-zero.

import os, sys, random, time
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "implementations", "python"))

import mpcodec
from mpcodec import CodecError

SEED = int(os.environ.get("MPCODEC_SEED", "4242"))
ROUNDS = int(os.environ.get("MPCODEC_FUZZ_ROUNDS", "5000"))
# Hostile lengths must fail fast; anything slower means the decoder
# tried to allocate or read the declared size up front.
SLOW_SECONDS = float(os.environ.get("MPCODEC_FUZZ_SLOW_SECONDS", "2.0"))

random.seed(SEED)


def rand_ascii(nmax: int) -> str:
    n = random.randint(0, nmax)
    return "".join(chr(random.randint(0x20, 0x7E)) for _ in range(n))


def rand_tree() -> Any:
    def gen(depth: int):
        r = random.random()
        if depth > 4 or r < 0.35:
            return random.choice([None, True, False, random.randint(-(2**40), 2**40),
                                  random.random(), rand_ascii(40)])
        if r < 0.7:
            return {rand_ascii(8): gen(depth + 1) for _ in range(random.randint(0, 5))}
        return [gen(depth + 1) for _ in range(random.randint(0, 5))]
    v = gen(0)
    return v if isinstance(v, dict) else {"root": v}


def mutate(b: bytes) -> bytes:
    buf = bytearray(b)
    r = random.random()
    if r < 0.4 and buf:
        for _ in range(random.randint(1, 3)):
            buf[random.randrange(len(buf))] = random.getrandbits(8)
    elif r < 0.7 and buf:
        del buf[random.randrange(len(buf)):]
    else:
        pos = random.randint(0, len(buf))
        buf[pos:pos] = bytes(random.getrandbits(8) for _ in range(random.randint(1, 4)))
    return bytes(buf)


def hostile() -> bytes:
    prefix = random.choice([
        b"\x81\xa1a\xdb",  # str32 value
        b"\x81\xa1a\xdd",  # array32 value
        b"\xdf",           # map32 root
        b"\x81\xdb",       # str32 key
    ])
    return prefix + b"\xff\xff\xff" + bytes([random.getrandbits(8)]) + rand_ascii(6).encode()


def check(label: str, data: bytes, ctx: Dict[str, Any]) -> None:
    start = time.monotonic()
    try:
        mpcodec.unmarshal(data)
    except CodecError:
        pass
    except Exception as e:
        print("CRASH:", label, type(e).__name__, e)
        print("CTX:", ctx, "input_hex:", data.hex()[:4000])
        raise SystemExit(1)
    elapsed = time.monotonic() - start
    if elapsed > SLOW_SECONDS:
        print("SLOW:", label, "{:.2f}s".format(elapsed), "input_hex:", data.hex()[:200])
        raise SystemExit(1)


def main() -> int:
    for i in range(ROUNDS):
        r = random.random()

        # A) mutated valid encodings
        if r < 0.5:
            check("A mutated", mutate(mpcodec.marshal(rand_tree())), {"round": i})
            continue

        # B) random bytes behind a map header
        if r < 0.9:
            body = bytes(random.getrandbits(8) for _ in range(random.randint(0, 64)))
            check("B random", bytes([0x80 | random.randint(0, 15)]) + body, {"round": i})
            continue

        # C) hostile declared lengths
        check("C hostile", hostile(), {"round": i})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no crashes)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
