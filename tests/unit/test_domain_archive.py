"""Unit tests for archive glyph rendering."""

from __future__ import annotations

import base64
import json
import zlib

import pytest

from presidency.domain import archive
from presidency.domain.errors import SerializationFailure

PAYLOAD = {
    "sessionId": "abc",
    "stats": {"approval": 40, "stability": 60, "chaos": 5, "laws": 1},
    "timeline": [{"type": "law", "description": "Enforced law: emergency_rule"}],
}


def test_alphabet_has_no_duplicates():
    assert len(set(archive.GLYPHS)) == len(archive.GLYPHS)


def test_encoding_is_deterministic():
    results = {archive.encode_archive(PAYLOAD) for _ in range(5)}

    assert len(results) == 1


def test_key_order_does_not_matter():
    reordered = {"timeline": PAYLOAD["timeline"], "stats": PAYLOAD["stats"], "sessionId": "abc"}

    assert archive.encode_archive(reordered) == archive.encode_archive(PAYLOAD)


def test_one_glyph_per_base64_character():
    glyphs = archive.encode_archive(PAYLOAD)
    compact = json.dumps(PAYLOAD, sort_keys=True, separators=(",", ":")).encode()
    encoded = base64.b64encode(zlib.compress(compact)).decode()

    assert len(glyphs) == len(encoded)
    assert set(glyphs) <= set(archive.GLYPHS)
    assert glyphs[0] == archive.GLYPHS[ord(encoded[0]) % len(archive.GLYPHS)]


def test_different_payloads_differ():
    other = dict(PAYLOAD, sessionId="xyz")

    assert archive.encode_archive(other) != archive.encode_archive(PAYLOAD)


def test_to_glyphs_maps_by_code_point():
    assert archive.to_glyphs("AB", "xyz") == "zx"  # 65 % 3 == 2, 66 % 3 == 0


@pytest.mark.parametrize("payload", [{"when": object()}, {"ratio": float("nan")}, {1j: 1}])
def test_unserialisable_payload_raises(payload):
    with pytest.raises(SerializationFailure):
        archive.encode_archive(payload)
