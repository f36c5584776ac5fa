"""JSON bridge for the command-line harness.

Converts JSON text into the dynamic value model and back.  The codec
itself never needs JSON; this exists so people can type documents at a
terminal and read decoded maps.

Type mapping:
    JSON object  → dict   (root must be an object)
    JSON array   → list
    JSON string  → str
    JSON true/false → bool
    JSON integer → int    (range-checked: -2**63 .. 2**64-1)
    JSON float   → float
    JSON null    → None
    NaN/Infinity → ERR_JSON (not JSON)

Going the other way, a decoded string that carried non-UTF-8 wire bytes
cannot be shown as JSON text and is rejected with ERR_UTF8.
"""

from __future__ import annotations

import json
from typing import Any, Dict

from ._constants import INT64_MIN, UINT64_MAX
from ._errors import ERR_JSON, ERR_UNSUPPORTED, ERR_UTF8, CodecError


def _reject_constant(token: str) -> Any:
    raise CodecError(ERR_JSON, "JSON constant not allowed: {}".format(token))


def _intercept_int(s: str) -> int:
    """Called by json.loads for integer-shaped number tokens."""
    val = int(s)
    if val < INT64_MIN or val > UINT64_MAX:
        raise CodecError(ERR_UNSUPPORTED, "integer overflow: {}".format(s))
    return val


# ── JSON text → value tree ────────────────────────────────────

def json_to_value(text: Any) -> Dict[str, Any]:
    """Parse a JSON document whose root is an object."""
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError:
            raise CodecError(ERR_UTF8, "invalid UTF-8 in JSON input")

    try:
        obj = json.loads(
            text,
            parse_int=_intercept_int,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise CodecError(ERR_JSON, "JSON parse error: {}".format(e))
    except RecursionError:
        raise CodecError(ERR_JSON, "JSON nesting too deep")

    if not isinstance(obj, dict):
        raise CodecError(ERR_JSON, "JSON root must be an object, got {}".format(
            type(obj).__name__))
    return obj


# ── value tree → JSON text ────────────────────────────────────

def _ensure_utf8(x: Any) -> None:
    """Walk the tree and reject strings carrying escaped non-UTF-8 bytes."""
    if isinstance(x, str):
        try:
            x.encode("utf-8")
        except UnicodeEncodeError:
            raise CodecError(ERR_UTF8, "string holds bytes that are not UTF-8")
    elif isinstance(x, dict):
        for k, v in x.items():
            _ensure_utf8(k)
            _ensure_utf8(v)
    elif isinstance(x, list):
        for v in x:
            _ensure_utf8(v)


def value_to_json(value: Any, *, indent: Any = None) -> str:
    """Render a decoded value tree as JSON text."""
    try:
        _ensure_utf8(value)
        return json.dumps(value, ensure_ascii=False, allow_nan=False, indent=indent)
    except (TypeError, ValueError) as e:
        raise CodecError(ERR_JSON, "cannot render as JSON: {}".format(e))
    except RecursionError:
        raise CodecError(ERR_JSON, "value nesting too deep to render")
