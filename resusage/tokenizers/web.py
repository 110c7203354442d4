"""Tokenizers that find resource references inside HTML, CSS and JavaScript."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional


class WebTokenKind(Enum):
    HTML_ATTRIBUTE = auto()
    JS_STRING = auto()
    CSS_URL = auto()


@dataclass(frozen=True)
class WebToken:
    """A value worth resolving: an attribute value, a string literal or a ``url(...)``."""

    kind: WebTokenKind
    value: str
    tag: Optional[str] = None
    attribute: Optional[str] = None


class _Html(Enum):
    TEXT = auto()
    SLASH = auto()
    IN_TAG = auto()
    BEFORE_ATTRIBUTE = auto()
    ATTRIBUTE_NAME = auto()
    ATTRIBUTE_BEFORE_EQUALS = auto()
    ATTRIBUTE_AFTER_EQUALS = auto()
    ATTRIBUTE_VALUE_NONE = auto()
    ATTRIBUTE_VALUE_SINGLE = auto()
    ATTRIBUTE_VALUE_DOUBLE = auto()
    CLOSE_TAG = auto()
    ENDING_TAG = auto()


class _Js(Enum):
    INIT = auto()
    SLASH = auto()
    STRING_DOUBLE = auto()
    STRING_DOUBLE_ESCAPED = auto()
    STRING_SINGLE = auto()
    STRING_SINGLE_ESCAPED = auto()


class _Css(Enum):
    INIT = auto()
    SLASH = auto()


def tokenize_html(html: str) -> Iterator[WebToken]:
    """Yield attribute values, plus tokens from embedded ``<script>`` and ``<style>`` bodies.

    Comments, CDATA sections and the XML prologue are skipped. Text content
    is ignored; a page loaded with a base URL of ``file:///android_res/...``
    references resources through attributes such as ``src`` and ``href``.
    """
    length = len(html)
    state = _Html.TEXT
    offset = 0
    prev = -1
    tag_start = 0
    value_start = 0
    attribute_start = 0
    tag: Optional[str] = None
    attribute: Optional[str] = None

    while offset < length:
        if offset == prev:
            offset += 1
            if offset == length:
                break
        prev = offset
        char = html[offset]

        if state is _Html.TEXT:
            if char == "<":
                state = _Html.SLASH
            offset += 1

        elif state is _Html.SLASH:
            if char == "!":
                terminator = None
                if html.startswith("!--", offset):
                    terminator, skip = "-->", 3
                elif html.startswith("![CDATA[", offset):
                    terminator, skip = "]]>", 8
                if terminator is not None:
                    end = html.find(terminator, offset + skip)
                    if end == -1:
                        break
                    state = _Html.TEXT
                    offset = end + len(terminator)
                    continue
            elif char == "/":
                state = _Html.CLOSE_TAG
                offset += 1
                continue
            elif char == "?":
                end = html.find(">", offset + 1)
                if end == -1:
                    break
                state = _Html.TEXT
                offset = end + 1
                continue
            elif char == ">":
                state = _Html.TEXT
                offset += 1
                continue
            state = _Html.IN_TAG
            tag_start = offset
            offset += 1

        elif state is _Html.CLOSE_TAG:
            if char == ">":
                state = _Html.TEXT
            offset += 1

        elif state is _Html.IN_TAG:
            if char.isspace():
                tag = html[tag_start:offset].strip()
                state = _Html.BEFORE_ATTRIBUTE
            elif char == ">":
                tag = html[tag_start:offset].strip()
                body_end = yield from _embedded_body(html, offset, tag)
                state = _Html.TEXT
                if body_end is not None:
                    offset = body_end
                    continue
            elif char == "/":
                tag = html[tag_start:offset].strip()
                state = _Html.ENDING_TAG
            offset += 1

        elif state is _Html.ENDING_TAG:
            # Self-closing tag: it has no body to delegate.
            if char == ">":
                state = _Html.TEXT
            offset += 1

        elif state is _Html.BEFORE_ATTRIBUTE:
            if char == ">":
                body_end = yield from _embedded_body(html, offset, tag)
                state = _Html.TEXT
                if body_end is not None:
                    offset = body_end
                    continue
            elif char == "/":
                state = _Html.ENDING_TAG
            elif not char.isspace():
                state = _Html.ATTRIBUTE_NAME
                attribute_start = offset
            offset += 1

        elif state is _Html.ATTRIBUTE_NAME:
            if char == ">":
                body_end = yield from _embedded_body(html, offset, tag)
                state = _Html.TEXT
                if body_end is not None:
                    offset = body_end
                    continue
            elif char == "=":
                attribute = html[attribute_start:offset]
                state = _Html.ATTRIBUTE_AFTER_EQUALS
            elif char.isspace():
                attribute = html[attribute_start:offset]
                state = _Html.ATTRIBUTE_BEFORE_EQUALS
            offset += 1

        elif state is _Html.ATTRIBUTE_BEFORE_EQUALS:
            if char == "=":
                state = _Html.ATTRIBUTE_AFTER_EQUALS
            elif char == ">":
                body_end = yield from _embedded_body(html, offset, tag)
                state = _Html.TEXT
                if body_end is not None:
                    offset = body_end
                    continue
            elif not char.isspace():
                # Valueless (boolean) attribute followed by another attribute
                state = _Html.ATTRIBUTE_NAME
                attribute_start = offset
            offset += 1

        elif state is _Html.ATTRIBUTE_AFTER_EQUALS:
            if char == "'":
                state = _Html.ATTRIBUTE_VALUE_SINGLE
                value_start = offset + 1
            elif char == '"':
                state = _Html.ATTRIBUTE_VALUE_DOUBLE
                value_start = offset + 1
            elif not char.isspace():
                state = _Html.ATTRIBUTE_VALUE_NONE
                value_start = offset
            offset += 1

        elif state in (_Html.ATTRIBUTE_VALUE_SINGLE, _Html.ATTRIBUTE_VALUE_DOUBLE):
            quote = "'" if state is _Html.ATTRIBUTE_VALUE_SINGLE else '"'
            if char == quote:
                yield WebToken(WebTokenKind.HTML_ATTRIBUTE, html[value_start:offset], tag, attribute)
                state = _Html.BEFORE_ATTRIBUTE
            offset += 1

        elif state is _Html.ATTRIBUTE_VALUE_NONE:
            if char == ">":
                yield WebToken(WebTokenKind.HTML_ATTRIBUTE, html[value_start:offset], tag, attribute)
                body_end = yield from _embedded_body(html, offset, tag)
                state = _Html.TEXT
                if body_end is not None:
                    offset = body_end
                    continue
            elif char.isspace():
                yield WebToken(WebTokenKind.HTML_ATTRIBUTE, html[value_start:offset], tag, attribute)
                state = _Html.BEFORE_ATTRIBUTE
            offset += 1


def _embedded_body(html: str, offset: int, tag: Optional[str]) -> Iterator[WebToken]:
    """Tokenize the body of a ``<script>`` or ``<style>`` tag closed at ``offset``.

    Returns the offset of the closing tag so the caller resumes there, or None
    when the tag has no embedded body.
    """
    if tag is None:
        return None
    lowered = tag.lower()
    if lowered == "script":
        tokenizer = tokenize_js
    elif lowered == "style":
        tokenizer = tokenize_css
    else:
        return None
    close = f"</{lowered}>"
    end = html.lower().find(close, offset + 1)
    if end == -1:
        return None
    yield from tokenizer(html[offset + 1 : end])
    return end


def tokenize_js(js: str) -> Iterator[WebToken]:
    """Yield the content of every closed string literal; comments are skipped."""
    length = len(js)
    state = _Js.INIT
    offset = 0
    prev = -1
    string_start = 0

    while offset < length:
        if offset == prev:
            offset += 1
            if offset == length:
                break
        prev = offset
        char = js[offset]

        if state is _Js.INIT:
            if char == "/":
                state = _Js.SLASH
            elif char == '"':
                string_start = offset + 1
                state = _Js.STRING_DOUBLE
            elif char == "'":
                string_start = offset + 1
                state = _Js.STRING_SINGLE
            offset += 1

        elif state is _Js.SLASH:
            state = _Js.INIT
            if char == "*":
                end = js.find("*/", offset + 1)
                if end == -1:
                    break
                offset = end + 2
                continue
            if char == "/":
                end = js.find("\n", offset + 1)
                if end == -1:
                    break
                offset = end + 1
                continue
            if char == '"':
                string_start = offset + 1
                state = _Js.STRING_DOUBLE
            elif char == "'":
                string_start = offset + 1
                state = _Js.STRING_SINGLE
            offset += 1

        elif state in (_Js.STRING_DOUBLE, _Js.STRING_SINGLE):
            quote = '"' if state is _Js.STRING_DOUBLE else "'"
            if char == quote:
                yield WebToken(WebTokenKind.JS_STRING, js[string_start:offset])
                state = _Js.INIT
            elif char == "\\":
                state = (
                    _Js.STRING_DOUBLE_ESCAPED
                    if state is _Js.STRING_DOUBLE
                    else _Js.STRING_SINGLE_ESCAPED
                )
            offset += 1

        elif state is _Js.STRING_DOUBLE_ESCAPED:
            state = _Js.STRING_DOUBLE
            offset += 1

        elif state is _Js.STRING_SINGLE_ESCAPED:
            state = _Js.STRING_SINGLE
            offset += 1


def tokenize_css(css: str) -> Iterator[WebToken]:
    """Yield the target of every ``url(...)`` token, unquoted; comments are skipped."""
    length = len(css)
    state = _Css.INIT
    offset = 0
    prev = -1

    while offset < length:
        if offset == prev:
            offset += 1
            if offset == length:
                break
        prev = offset
        char = css[offset]

        if state is _Css.INIT:
            if char == "/":
                state = _Css.SLASH
            elif (
                char == "u"
                and offset > 0
                and css.startswith("url(", offset)
                and (css[offset - 1].isspace() or css[offset - 1] in ":,(")
            ):
                end = css.find(")", offset)
                if end == -1:
                    break
                start = offset + 4
                while start < end and css[start].isspace():
                    start += 1
                stop = end
                while stop > start and css[stop - 1].isspace():
                    stop -= 1
                if stop - start >= 2 and css[start] in "\"'" and css[stop - 1] == css[start]:
                    start += 1
                    stop -= 1
                url = css[start:stop].strip()
                if url:
                    yield WebToken(WebTokenKind.CSS_URL, url)
                offset = end + 1
                continue
            offset += 1

        elif state is _Css.SLASH:
            state = _Css.INIT
            if char == "*":
                end = css.find("*/", offset + 1)
                if end == -1:
                    break
                offset = end + 2
                continue
            offset += 1


__all__ = ["WebToken", "WebTokenKind", "tokenize_css", "tokenize_html", "tokenize_js"]
