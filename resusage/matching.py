"""Wildcard matching for keep/discard directives."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .logging import get_logger

_LOGGER = get_logger("matching")


def is_glob(pattern: str) -> bool:
    """Return True when ``pattern`` contains a ``*`` or ``?`` wildcard."""
    return "*" in pattern or "?" in pattern


def glob_to_regexp(glob: str) -> str:
    """Translate a ``*``/``?`` glob into an anchored regular expression.

    ``*`` (and ``**``) match any run of characters, ``?`` matches a single
    character; everything else is matched literally.
    """
    parts = ["^"]
    index = 0
    length = len(glob)
    while index < length:
        char = glob[index]
        if char == "*":
            if index + 1 < length and glob[index + 1] == "*":
                index += 1
            parts.append(".*?")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        index += 1
    parts.append("$")
    return "".join(parts)


@dataclass(frozen=True)
class GlobMatcher:
    """Full-string matcher compiled from a glob; matches nothing if compilation failed."""

    pattern: str
    _regex: Optional[re.Pattern[str]]

    def matches(self, candidate: str) -> bool:
        if self._regex is None:
            return False
        return self._regex.match(candidate) is not None


def compile_glob(pattern: str) -> GlobMatcher:
    """Compile ``pattern`` into a :class:`GlobMatcher`."""
    try:
        regex: Optional[re.Pattern[str]] = re.compile(glob_to_regexp(pattern), re.DOTALL)
    except re.error as exc:
        _LOGGER.debug("Ignoring glob %r that failed to compile: %s", pattern, exc)
        regex = None
    return GlobMatcher(pattern=pattern, _regex=regex)


__all__ = ["GlobMatcher", "compile_glob", "glob_to_regexp", "is_glob"]
