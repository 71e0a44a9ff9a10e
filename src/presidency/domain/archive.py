"""Glyph rendering for presidency archives.

A payload is serialised to canonical JSON, deflated, base64 encoded and
finally every base64 character is replaced by an ornamental glyph.  The
transform is deterministic and one way; archives keep the JSON snapshot
alongside the glyphs when the data itself is needed again.
"""

from __future__ import annotations

import base64
import json
import zlib
from typing import Any

from .errors import SerializationFailure

GLYPHS: str = "⍟✦✧✵✶✷✸✹✺✼✽✾★☼☯☸❂❃❁✿☙♆♔♕♖♗♘♙"


def canonical_json(payload: Any) -> bytes:
    """Serialise ``payload`` with sorted keys and compact separators."""

    try:
        text = json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise SerializationFailure(f"archive payload is not JSON serialisable: {exc}") from exc
    return text.encode("utf-8")


def to_glyphs(text: str, alphabet: str = GLYPHS) -> str:
    """Map each character onto ``alphabet`` by code point."""

    size = len(alphabet)
    return "".join(alphabet[ord(ch) % size] for ch in text)


def encode_archive(payload: Any) -> str:
    """Render ``payload`` as a glyph string."""

    compressed = zlib.compress(canonical_json(payload))
    return to_glyphs(base64.b64encode(compressed).decode("ascii"))
