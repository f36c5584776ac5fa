"""mpcodec command-line interface.

Usage:
    echo '{"M": true}' | python3 -m mpcodec encode [--format hex|spaced|base64]
    echo '81a14dc3' | python3 -m mpcodec decode
    python3 -m mpcodec encode --input doc.json
    python3 -m mpcodec demo
    python3 -m mpcodec repl
    python3 -m mpcodec version
"""

from __future__ import annotations

import argparse
import base64
import logging
import os
import sys
from typing import Any, List, Optional, TextIO

from . import CodecError, __version__, marshal, unmarshal
from ._json_adapter import json_to_value, value_to_json

logger = logging.getLogger(__name__)

FORMATS = ("hex", "spaced", "base64")

# Documents shown by `demo`.
DEMO_ENCODE = [
    {"N": 0},
    {"N": 0.1},
    {"N": 0, "M": False},
    {"N": [0, 1], "M": False},
    {"N": {"M": "0"}},
    {"N": {"M": [0, 1]}},
    {"N": {"0": "123"}},
]

DEMO_DECODE = [
    "81a14ecb3fb999999999999a",
    "81a14dc2",
    "82a14e00a14dc2",
    "82a14e920001a14dc2",
    "81a14e81a14da130",
    "81a14d920001",
    "81a14e81a130a3313233",
]

REPL_MENU = """
>>>
Support the following function:
encode | encode JSON to MessagePack format
decode | decode MessagePack to JSON format
exit   | stop program
Ctrl+C | stop program"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpcodec",
        description="mpcodec: MessagePack encode/decode for JSON-like documents",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("MPCODEC_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $MPCODEC_LOG_LEVEL or WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    # ── encode ──
    enc_p = sub.add_parser("encode", help="Encode a JSON object to MessagePack")
    enc_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read JSON from FILE instead of stdin")
    enc_p.add_argument("--format", "-f", choices=FORMATS, default="hex",
                       help="Output format (default: hex)")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode a MessagePack hex string to JSON")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read hex from FILE instead of stdin")
    dec_p.add_argument("--indent", type=int, default=None,
                       help="Pretty-print JSON with this indent")

    # ── demo / repl / version ──
    sub.add_parser("demo", help="Print built-in encode/decode examples")
    sub.add_parser("repl", help="Interactive encode/decode loop")
    sub.add_parser("version", help="Print version and exit")

    return parser


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _read_input(filepath: Optional[str]) -> str:
    if filepath:
        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()
    if sys.stdin.isatty():
        print("mpcodec: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.read()


def format_bytes(b: bytes, fmt: str = "hex") -> str:
    if fmt == "spaced":
        return " ".join("{:02x}".format(x) for x in b)
    if fmt == "base64":
        return base64.b64encode(b).decode("ascii")
    return b.hex()


def parse_hex(text: str) -> bytes:
    """Accept "81a14dc3", "81 a1 4d c3" or a "0x"-prefixed form."""
    cleaned = "".join(text.split())
    if cleaned[:2].lower() == "0x":
        cleaned = cleaned[2:]
    try:
        return bytes.fromhex(cleaned)
    except ValueError:
        raise ValueError("not a hex string: {!r}".format(text.strip()[:40]))


def encode_json_text(text: str) -> bytes:
    return marshal(json_to_value(text))


def decode_hex_text(text: str, indent: Any = None) -> str:
    return value_to_json(unmarshal(parse_hex(text)), indent=indent)


# ── Commands ──────────────────────────────────────────────────

def _cmd_encode(args: argparse.Namespace) -> None:
    b = encode_json_text(_read_input(args.input))
    print(format_bytes(b, args.format))


def _cmd_decode(args: argparse.Namespace) -> None:
    print(decode_hex_text(_read_input(args.input), indent=args.indent))


def _cmd_demo(out: TextIO) -> None:
    print("Encode Example:", file=out)
    for i, doc in enumerate(DEMO_ENCODE, 1):
        b = marshal(doc)
        print("{}.{} {} {}".format(i, value_to_json(doc), b.hex(),
                                    format_bytes(b, "spaced")), file=out)

    print("\nDecode Example:", file=out)
    for i, hx in enumerate(DEMO_DECODE, 1):
        print("{}.{} {}".format(i, hx, decode_hex_text(hx)), file=out)


def repl(stdin: TextIO, out: TextIO) -> None:
    """Line-driven loop: a command line, then a payload line."""
    print(REPL_MENU, file=out)
    while True:
        print("Input the function: ", end="", file=out, flush=True)
        line = stdin.readline()
        if not line:
            return
        cmd = line.strip()
        if cmd == "exit":
            return
        if cmd == "encode":
            print("Enter JSON format(support bool/int/float/map/array/string): ",
                  end="", file=out, flush=True)
            payload = stdin.readline()
            try:
                doc = json_to_value(payload)
                print(value_to_json(doc, indent=2), file=out)
                b = marshal(doc)
                print(format_bytes(b), file=out)
                print(format_bytes(b, "spaced"), file=out)
            except CodecError as e:
                print("error [{}]: {}".format(e.code, e), file=out)
        elif cmd == "decode":
            print("Enter Msgpack Hex String Format: ", end="", file=out, flush=True)
            payload = stdin.readline()
            try:
                print(decode_hex_text(payload), file=out)
            except CodecError as e:
                print("error [{}]: {}".format(e.code, e), file=out)
            except ValueError as e:
                print("error: {}".format(e), file=out)
        elif cmd:
            print("Unsupported command: {}".format(cmd), file=out)
        print(REPL_MENU, file=out)


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"mpcodec {__version__}")
        return

    try:
        if args.command == "encode":
            _cmd_encode(args)
        elif args.command == "decode":
            _cmd_decode(args)
        elif args.command == "demo":
            _cmd_demo(sys.stdout)
        elif args.command == "repl":
            repl(sys.stdin, sys.stdout)
    except CodecError as e:
        print(f"mpcodec: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        print(f"mpcodec: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        logger.debug("interrupted")
        sys.exit(0)


if __name__ == "__main__":
    main()
