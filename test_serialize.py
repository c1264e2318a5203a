#!/usr/bin/env python3
"""
Tests for the serialize subsystem.
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent / "src"))

from ingest import ExtractedFile
from serialize import serialize_files, deserialize_files, payload_stats, SerializeError


TRICKY_FILES = [
    ExtractedFile(path="src/App.tsx", content='const s = "quoted \\"inner\\"";\nexport default s;\n'),
    ExtractedFile(path="src/i18n/ja.json", content='{"hello": "こんにちは", "emoji": "🚀"}'),
    ExtractedFile(path="public/index.html", content="<div>\ttab\r\nline</div> "),
    ExtractedFile(path="empty.css", content=""),
]


def test_round_trip_preserves_pairs_and_order():
    text = serialize_files(TRICKY_FILES)
    assert deserialize_files(text) == [(f.path, f.content) for f in TRICKY_FILES]


def test_output_is_deterministic():
    assert serialize_files(TRICKY_FILES) == serialize_files(list(TRICKY_FILES))


def test_output_shape():
    text = serialize_files([ExtractedFile(path="a.js", content="x")])
    assert json.loads(text) == [{"path": "a.js", "content": "x"}]
    # Pretty printed, non-ASCII kept verbatim
    assert text.startswith("[\n  {")
    assert "世界" in serialize_files([ExtractedFile(path="a.js", content="世界")])


def test_no_dedup_or_filtering():
    files = [
        ExtractedFile(path="a.js", content="1"),
        ExtractedFile(path="a.js", content="1"),
        ExtractedFile(path="node_modules/x.js", content="2"),
    ]
    assert len(deserialize_files(serialize_files(files))) == 3


def test_empty_sequence():
    assert serialize_files([]) == "[]"
    assert deserialize_files("[]") == []


@pytest.mark.parametrize("text", [
    "not json",
    '{"path": "a", "content": "b"}',
    '[{"path": "a"}]',
    '[{"path": 1, "content": "b"}]',
])
def test_deserialize_rejects_malformed_payload(text):
    with pytest.raises(SerializeError):
        deserialize_files(text)


def test_payload_stats():
    stats = payload_stats([
        ExtractedFile(path="a.js", content="one\ntwo"),
        ExtractedFile(path="b.js", content=""),
    ])
    assert stats == {"files": 2, "chars": 7, "lines": 2}
