"""Marker scanners for binary blobs and text files of unknown structure.

Both look for the ``android_res/`` prefix used by ``file:///android_res/...``
URLs and capture the ``<folder>/<name>`` run that follows it, stopping at the
first character that is neither an identifier character nor a slash. The
extension is therefore dropped: ``android_res/raw/intro.html`` yields
``raw/intro``.
"""

from __future__ import annotations

from typing import Iterator

from .code import is_identifier_part

ANDROID_RES = "android_res/"
_ANDROID_RES_BYTES = ANDROID_RES.encode("utf-8")


def _is_url_byte(value: int) -> bool:
    return value == 0x2F or (value < 0x80 and is_identifier_part(chr(value)))


def tokenize_unknown_binary(content: bytes) -> Iterator[str]:
    """Yield ``folder/name`` spans that follow each ``android_res/`` marker in ``content``."""
    length = len(content)
    index = content.find(_ANDROID_RES_BYTES)
    while index != -1:
        begin = index + len(_ANDROID_RES_BYTES)
        end = begin
        while end < length and _is_url_byte(content[end]):
            end += 1
        if end > begin:
            yield content[begin:end].decode("ascii")
        index = content.find(_ANDROID_RES_BYTES, max(end, begin))


def tokenize_unknown_text(text: str) -> Iterator[str]:
    """Text counterpart of :func:`tokenize_unknown_binary`."""
    length = len(text)
    index = text.find(ANDROID_RES)
    while index != -1:
        begin = index + len(ANDROID_RES)
        end = begin
        while end < length and (text[end] == "/" or is_identifier_part(text[end])):
            end += 1
        if end > begin:
            yield text[begin:end]
        index = text.find(ANDROID_RES, max(end, begin))


__all__ = ["ANDROID_RES", "tokenize_unknown_binary", "tokenize_unknown_text"]
