"""Scanner for ``R.<type>.<name>`` references in Java and Kotlin source."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional, Tuple

from ..resources.types import ResourceType


@dataclass(frozen=True)
class CodeReference:
    type: ResourceType
    name: str


class _Code(Enum):
    INIT = auto()
    LINE_COMMENT = auto()
    BLOCK_COMMENT = auto()
    STRING = auto()
    CHARACTER = auto()


def is_identifier_start(char: str) -> bool:
    return char.isalpha() or char in "_$"


def is_identifier_part(char: str) -> bool:
    return char.isalnum() or char in "_$"


def tokenize_code(source: str) -> Iterator[CodeReference]:
    """Yield every ``R.<type>.<name>`` access outside comments, strings and char literals.

    Kotlin shares enough syntax with Java for this purpose; nested block
    comments are not tracked.
    """
    length = len(source)
    state = _Code.INIT
    offset = 0
    prev = -1

    while offset < length:
        if offset == prev:
            offset += 1
            if offset == length:
                break
        prev = offset
        char = source[offset]
        following = source[offset + 1] if offset + 1 < length else ""

        if state is _Code.INIT:
            if char == "/" and following == "*":
                state = _Code.BLOCK_COMMENT
                offset += 2
            elif char == "/" and following == "/":
                state = _Code.LINE_COMMENT
                offset += 2
            elif char == '"':
                state = _Code.STRING
                offset += 1
            elif char == "'":
                state = _Code.CHARACTER
                offset += 1
            elif char == "R" and following == "." and (
                offset == 0 or not is_identifier_part(source[offset - 1])
            ):
                reference, offset = _read_field_access(source, offset)
                if reference is not None:
                    yield reference
            elif is_identifier_part(char):
                while offset < length and is_identifier_part(source[offset]):
                    offset += 1
            else:
                offset += 1

        elif state is _Code.LINE_COMMENT:
            if char == "\n":
                state = _Code.INIT
            offset += 1

        elif state is _Code.BLOCK_COMMENT:
            if char == "*" and following == "/":
                state = _Code.INIT
                offset += 2
            else:
                offset += 1

        elif state in (_Code.STRING, _Code.CHARACTER):
            quote = '"' if state is _Code.STRING else "'"
            if char == "\\":
                offset += 2
            else:
                if char == quote:
                    state = _Code.INIT
                offset += 1


def _read_field_access(source: str, offset: int) -> Tuple[Optional[CodeReference], int]:
    """Parse ``R.<type>.<name>`` at ``offset``; returns the reference and the resume offset."""
    length = len(source)
    type_start = offset + 2
    index = type_start
    if index >= length or not is_identifier_start(source[index]):
        return None, type_start
    while index < length and is_identifier_part(source[index]):
        index += 1
    if index >= length or source[index] != ".":
        return None, index

    rtype = ResourceType.from_class_name(source[type_start:index])
    if rtype is None:
        return None, index

    name_start = index + 1
    index = name_start
    while index < length and is_identifier_part(source[index]):
        index += 1
    if index == name_start:
        return None, index
    return CodeReference(rtype, source[name_start:index]), index


__all__ = ["CodeReference", "is_identifier_part", "is_identifier_start", "tokenize_code"]
