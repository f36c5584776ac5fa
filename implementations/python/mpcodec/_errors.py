"""mpcodec error codes and the exception class.

Every failure the codec itself detects is raised as ``CodecError`` with a
``.code`` drawn from the ERR_* strings below.  Failures of the wrapped
stream (``OSError`` and friends) are not wrapped; they reach the caller
as raised by the transport.
"""

from __future__ import annotations

from typing import Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly, and what tests compare against.

ERR_EOF: str = "ERR_EOF"                  # fewer bytes than demanded
ERR_UNKNOWN_TAG: str = "ERR_UNKNOWN_TAG"  # byte outside the supported set
ERR_LENGTH_CODE: str = "ERR_LENGTH_CODE"  # bad tag where a length was due
ERR_UNSUPPORTED: str = "ERR_UNSUPPORTED"  # encoder got an unsupported kind
ERR_KEY_TYPE: str = "ERR_KEY_TYPE"        # map key not in the string family
ERR_UTF8: str = "ERR_UTF8"                # text that cannot be carried
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"  # nesting exceeds max_depth
ERR_JSON: str = "ERR_JSON"                # JSON bridge parse/render failure


class CodecError(Exception):
    """Exception for MessagePack encode/decode errors.

    ``code`` is one of the ERR_* strings above.  ``tag`` is the offending
    tag byte when there is one, and ``hint`` names what was being decoded
    at the time ("decoding map length", "decoding bool", ...).
    """

    def __init__(self, code: str, msg: str = "", *,
                 tag: Optional[int] = None,
                 hint: Optional[str] = None) -> None:
        super().__init__(msg or _default_message(code, tag, hint))
        self.code = code
        self.tag = tag
        self.hint = hint


def _default_message(code: str, tag: Optional[int], hint: Optional[str]) -> str:
    parts = ["msgpack:"]
    if tag is not None:
        parts.append("code=0x{:02x}".format(tag))
    if hint:
        parts.append(hint)
    if len(parts) == 1:
        parts.append(code)
    return " ".join(parts)


def unexpected_code(tag: int, hint: str) -> CodecError:
    """Build the error for a tag that cannot start the expected value."""
    return CodecError(
        ERR_LENGTH_CODE,
        "msgpack: unexpected code=0x{:02x} {}".format(tag, hint),
        tag=tag,
        hint=hint,
    )
