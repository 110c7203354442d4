"""Lexical scanners used to find resource references in non-XML content."""

from .code import CodeReference, tokenize_code
from .unknown import tokenize_unknown_binary, tokenize_unknown_text
from .web import WebToken, WebTokenKind, tokenize_css, tokenize_html, tokenize_js

__all__ = [
    "CodeReference",
    "WebToken",
    "WebTokenKind",
    "tokenize_code",
    "tokenize_css",
    "tokenize_html",
    "tokenize_js",
    "tokenize_unknown_binary",
    "tokenize_unknown_text",
]
