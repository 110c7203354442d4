"""Tests for the android_res marker scanners."""

from __future__ import annotations

from resusage.tokenizers import tokenize_unknown_binary, tokenize_unknown_text


def test_binary_scanner_drops_extensions() -> None:
    content = (
        b"\x00\x01PK\x03file:///android_res/raw/intro.html\x00\xff"
        b"junk android_res/drawable/logo.png\n"
    )

    assert list(tokenize_unknown_binary(content)) == ["raw/intro", "drawable/logo"]


def test_binary_scanner_handles_marker_at_end() -> None:
    assert list(tokenize_unknown_binary(b"xx android_res/")) == []
    assert list(tokenize_unknown_binary(b"xx android_res/raw/tail")) == ["raw/tail"]
    assert list(tokenize_unknown_binary(b"no markers here")) == []


def test_text_scanner_matches_binary_scanner() -> None:
    text = 'load("file:///android_res/raw/data.json"); show(android_res/drawable/hero);'

    assert list(tokenize_unknown_text(text)) == ["raw/data", "drawable/hero"]
    assert list(tokenize_unknown_binary(text.encode("utf-8"))) == ["raw/data", "drawable/hero"]
