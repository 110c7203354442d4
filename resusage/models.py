"""Core data models shared across resusage components."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .resources.types import ResourceFolderType, ResourceType

RESOURCE_DECLARED = 1 << 1
RESOURCE_PUBLIC = 1 << 2
RESOURCE_KEEP = 1 << 3
RESOURCE_DISCARD = 1 << 4
RESOURCE_REACHABLE = 1 << 5

_FLAG_LETTERS = (
    ("D", RESOURCE_DECLARED),
    ("R", RESOURCE_REACHABLE),
    ("P", RESOURCE_PUBLIC),
    ("K", RESOURCE_KEEP),
    ("X", RESOURCE_DISCARD),
)


def _flag_property(mask: int, doc: str) -> property:
    def getter(self: "Resource") -> bool:
        return bool(self.flags & mask)

    def setter(self: "Resource", on: bool) -> None:
        self.flags = (self.flags | mask) if on else (self.flags & ~mask)

    return property(getter, setter, doc=doc)


@dataclass(eq=False)
class Resource:
    """A declared or referenced resource; identity is the ``(type, name)`` pair."""

    type: ResourceType
    name: str
    value: Optional[int] = None
    flags: int = 0
    references: List["Resource"] = field(default_factory=list)
    declarations: List[Path] = field(default_factory=list)

    declared = _flag_property(
        RESOURCE_DECLARED,
        "Whether a declaration was seen; references alone create undeclared resources.",
    )
    public = _flag_property(RESOURCE_PUBLIC, "Whether the resource is marked public.")
    keep = _flag_property(RESOURCE_KEEP, "Whether the resource is a root regardless of references.")
    discard = _flag_property(
        RESOURCE_DISCARD, "Whether the resource is removed regardless of references."
    )
    reachable = _flag_property(RESOURCE_REACHABLE, "Whether the resource is reachable from a root.")

    @property
    def url(self) -> str:
        return f"@{self.type}/{self.name}"

    @property
    def r_field(self) -> str:
        return f"R.{self.type}.{self.name}"

    def add_reference(self, resource: Optional["Resource"]) -> None:
        """Record an edge to ``resource``; duplicates and None are ignored."""
        if resource is None or resource in self.references:
            return
        self.references.append(resource)

    def add_location(self, path: Path) -> None:
        self.declarations.append(Path(path))

    def flag_string(self) -> str:
        """Describe the flags as ``E`` (empty), ``U`` (declared+reachable) or letters from DRPKX."""
        if self.flags == 0:
            return "E"
        if self.flags == RESOURCE_DECLARED | RESOURCE_REACHABLE:
            return "U"
        return "".join(letter for letter, mask in _FLAG_LETTERS if self.flags & mask)

    @staticmethod
    def flags_from_string(text: str) -> int:
        """Reverse :meth:`flag_string`."""
        flags = 0
        for letter in text:
            if letter == "E":
                return 0
            if letter == "U":
                flags |= RESOURCE_DECLARED | RESOURCE_REACHABLE
                continue
            for candidate, mask in _FLAG_LETTERS:
                if candidate == letter:
                    flags |= mask
                    break
            else:
                raise ValueError(f"Unknown resource flag {letter!r} in {text!r}")
        return flags

    def sort_key(self) -> tuple[int, str]:
        return (self.type.ordinal, self.name)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Resource):
            return NotImplemented
        return self.type is other.type and self.name == other.name

    def __hash__(self) -> int:
        return hash((self.type, self.name))

    def __lt__(self, other: "Resource") -> bool:
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        value = self.value if self.value is not None else -1
        return f"{self.type}:{self.name}:{value}"

    def __repr__(self) -> str:
        return f"Resource({self.type}:{self.name}, flags={self.flag_string()})"


FILE_KIND_MANIFEST = "manifest"
FILE_KIND_RESOURCE = "resource"
FILE_KIND_SOURCE = "source"


@dataclass
class ProjectFile:
    """A file the analysis consumes, relative to the project root."""

    path: str
    kind: str
    size: int
    hash: str
    folder_type: Optional[ResourceFolderType] = None


@dataclass
class ProjectManifest:
    """Files of an Android-style project grouped by how they are analysed."""

    root: str
    files: List[ProjectFile]

    def of_kind(self, kind: str) -> List[ProjectFile]:
        return [entry for entry in self.files if entry.kind == kind]

    def fingerprint(self) -> str:
        """Digest of every path and content hash; changes whenever an input changes."""
        digest = hashlib.sha256()
        for entry in sorted(self.files, key=lambda item: item.path):
            digest.update(f"{entry.path}\0{entry.hash}\n".encode("utf-8"))
        return digest.hexdigest()


__all__ = [
    "FILE_KIND_MANIFEST",
    "FILE_KIND_RESOURCE",
    "FILE_KIND_SOURCE",
    "ProjectFile",
    "ProjectManifest",
    "RESOURCE_DECLARED",
    "RESOURCE_DISCARD",
    "RESOURCE_KEEP",
    "RESOURCE_PUBLIC",
    "RESOURCE_REACHABLE",
    "Resource",
]
