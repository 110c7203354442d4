"""Registry of every resource seen during one analysis run."""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Optional, Set
from urllib.parse import quote, unquote

from ..logging import get_logger
from ..matching import compile_glob, is_glob
from ..models import Resource
from ..resources.types import ResourceFolderType, ResourceType
from ..resources.urls import ResourceUrl, resource_name_to_field_name
from ..tokenizers.unknown import ANDROID_RES

_LOGGER = get_logger("store")

_ENTRY_PATTERN = re.compile(r"([^,()\[\];^]+)\(([A-Z]*)(?:,([0-9a-fA-F]+))?\)")
_TYPE_PATTERN = re.compile(r"([a-z_]+)\[([^\]]*)\]")
# Left as-is in serialized directive tokens; everything else, including ; and , is percent-encoded.
_DIRECTIVE_SAFE = "@?/*+:$!"


class ResourceConflictError(RuntimeError):
    """Raised when a resource is given two different numeric ids."""


class ResourceStore:
    """Owns all resources of a run, indexed by insertion order, type/name and id.

    Keep and discard directives are only recorded while files are visited; they
    may contain globs, so :meth:`process_tools_attributes` applies them once the
    whole name space is known.
    """

    def __init__(self) -> None:
        self._resources: List[Resource] = []
        self._type_to_name: Dict[ResourceType, Dict[str, Resource]] = {}
        self._value_to_resource: Dict[int, Resource] = {}
        self._keep_resources: Set[str] = set()
        self._keep_attributes: List[str] = []
        self._discard_attributes: List[str] = []
        # Guess resources built dynamically from the string pool; tools:shrinkMode="strict" turns it off.
        self.safe_mode = True

    # ------------------------------------------------------------------
    # Registry

    @property
    def resources(self) -> List[Resource]:
        return list(self._resources)

    @property
    def keep_attributes(self) -> List[str]:
        return list(self._keep_attributes)

    @property
    def discard_attributes(self) -> List[str]:
        return list(self._discard_attributes)

    @property
    def whitelist(self) -> Set[str]:
        return set(self._keep_resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._resources)

    def get_or_create(
        self, rtype: ResourceType, name: str, value: Optional[int] = None
    ) -> Resource:
        """Return the resource for ``(rtype, name)``, creating it on first use."""
        key = resource_name_to_field_name(name)
        names = self._type_to_name.setdefault(rtype, {})
        stored = names.get(key)
        if stored is None:
            stored = Resource(rtype, key, value)
            self._resources.append(stored)
            names[key] = stored
            if value is not None:
                self._value_to_resource[value] = stored
            return stored

        if value is not None:
            if stored.value is None:
                stored.value = value
                self._value_to_resource[value] = stored
            elif stored.value != value:
                raise ResourceConflictError(
                    f"{stored.url} already has id 0x{stored.value:x}, refusing 0x{value:x}"
                )
        return stored

    def add_resource(self, resource: Resource) -> Resource:
        """Register an externally built resource, returning the stored instance."""
        stored = self.get_or_create(resource.type, resource.name, resource.value)
        if stored is not resource:
            stored.flags |= resource.flags
        return stored

    def lookup(self, rtype: ResourceType, name: str) -> Optional[Resource]:
        names = self._type_to_name.get(rtype)
        if not names:
            return None
        return names.get(resource_name_to_field_name(name))

    def lookup_by_value(self, value: int) -> Optional[Resource]:
        return self._value_to_resource.get(value)

    def lookup_by_url(self, url: str) -> Optional[Resource]:
        """Return the resource named by ``@type/name`` or ``?type/name``; never creates."""
        parsed = ResourceUrl.parse(url)
        if parsed is None or parsed.is_framework:
            return None
        return self.lookup(parsed.type, parsed.name)

    def lookup_by_file_path(self, url: str) -> Optional[Resource]:
        """Map a path such as ``file:///android_res/drawable/bar.png`` to its resource."""
        name_slash = url.rfind("/")
        if name_slash == -1:
            return None

        # A full resource URL: .../android_res/<folder>/<name>.<ext>
        android_res = url.find(ANDROID_RES)
        if android_res != -1:
            folder_start = android_res + len(ANDROID_RES)
            slash = url.find("/", folder_start)
            if slash != -1:
                folder_type = ResourceFolderType.from_folder_name(url[folder_start:slash])
                if folder_type is not None:
                    related = folder_type.related_types()
                    if related:
                        return self.lookup(related[0], _base_name(url, slash + 1))

        # Some other relative path such as drawable/name.ext: look from the end.
        type_slash = url.rfind("/", 0, name_slash)
        rtype = ResourceType.from_xml_value(url[type_slash + 1 : name_slash])
        if rtype is not None:
            return self.lookup(rtype, _base_name(url, name_slash + 1))
        return None

    def resources_of_type(self, rtype: ResourceType) -> List[Resource]:
        return list(self._type_to_name.get(rtype, {}).values())

    def add_to_whitelist(self, resource: Optional[Resource]) -> bool:
        """Exempt ``resource`` from renaming; returns True when newly added."""
        if resource is None or not resource.name:
            return False
        if resource.name in self._keep_resources:
            return False
        self._keep_resources.add(resource.name)
        return True

    # ------------------------------------------------------------------
    # Keep / discard directives

    def record_keep_tool_attribute(self, value: str) -> None:
        """Record a ``tools:keep`` value (a comma separated list of URLs or globs)."""
        self._keep_attributes.extend(_split_directive(value))

    def record_discard_tool_attribute(self, value: str) -> None:
        """Record a ``tools:discard`` value (a comma separated list of URLs or globs)."""
        self._discard_attributes.extend(_split_directive(value))

    def process_tools_attributes(self) -> None:
        """Apply recorded keep then discard directives; discard wins on overlap."""
        for directive in self._keep_attributes:
            for resource in self.resources_for_directive(directive):
                resource.reachable = True
                self.add_to_whitelist(resource)
        for directive in self._discard_attributes:
            for resource in self.resources_for_directive(directive):
                resource.reachable = False
                resource.discard = True

    def resources_for_directive(self, directive: str) -> List[Resource]:
        """Resolve a single directive token (``@type/name``, ``type/name`` or a glob)."""
        matches: List[Resource] = []
        for token in _split_directive(directive):
            url = ResourceUrl.parse(token if token[0] in "@?" else f"@{token}")
            if url is None or url.is_framework:
                _LOGGER.debug("Ignoring directive token %r", token)
                continue
            if not is_glob(url.name):
                resource = self.lookup(url.type, url.name)
                if resource is not None:
                    matches.append(resource)
                continue
            matcher = compile_glob(resource_name_to_field_name(url.name))
            matches.extend(
                resource
                for resource in self.resources_of_type(url.type)
                if matcher.matches(resource.name)
            )
        return matches

    # ------------------------------------------------------------------
    # Reports

    def dump_config(self) -> str:
        lines = []
        for resource in sorted(self._resources):
            actions = []
            if not resource.reachable:
                actions.append("remove")
            if resource.name in self._keep_resources:
                actions.append("no_obfuscate")
            lines.append(f"{resource.type}/{resource.name}#{','.join(actions)}\n")
        return "".join(lines)

    def dump_keep_resources(self) -> str:
        return ",".join(sorted(self._keep_resources))

    def dump_references(self) -> str:
        lines = sorted(
            f"{resource} => [{', '.join(str(ref) for ref in resource.references)}]"
            for resource in self._resources
            if resource.references
        )
        return "Resource Reference Graph:\n" + "\n".join(lines)

    def dump_resource_model(self) -> str:
        lines = []
        for resource in sorted(self._resources):
            lines.append(f"{resource.url} : reachable={str(resource.reachable).lower()}\n")
            lines.extend(f"    {referenced.url}\n" for referenced in resource.references)
        return "".join(lines)

    # ------------------------------------------------------------------
    # Serialization

    def serialize(self, include_values: bool = True) -> str:
        """Return a compact, single-line encoding of the store.

        Layout: ``type[name(FLAGS[,hexvalue]),...],...;id^ref^ref,...;keep;discard;``.
        Names cannot contain ``, ( ) ; ^ [ ]`` which makes them safe separators.
        Directive tokens are percent-encoded.
        """
        ordered = [
            resource
            for rtype in ResourceType
            for resource in self._type_to_name.get(rtype, {}).values()
        ]
        if not ordered:
            return ""
        ids = {id(resource): index for index, resource in enumerate(ordered)}

        groups = []
        for rtype in ResourceType:
            names = self._type_to_name.get(rtype)
            if not names:
                continue
            entries = []
            for resource in names.values():
                entry = f"{resource.name}({resource.flag_string()}"
                if include_values and resource.value is not None:
                    entry += f",{resource.value:x}"
                entries.append(entry + ")")
            groups.append(f"{rtype}[{','.join(entries)}]")

        edges = []
        for resource in ordered:
            if resource.references:
                chain = [f"{ids[id(resource)]:x}"]
                chain.extend(f"{ids[id(ref)]:x}" for ref in resource.references)
                edges.append("^".join(chain))

        return ";".join(
            [
                ",".join(groups),
                ",".join(edges),
                ",".join(_encode_directive(token) for token in self._keep_attributes),
                ",".join(_encode_directive(token) for token in self._discard_attributes),
                "",
            ]
        )

    @classmethod
    def deserialize(cls, text: str) -> "ResourceStore":
        """Reverse :meth:`serialize`; recorded directives are restored but not applied."""
        store = cls()
        if not text:
            return store
        sections = text.split(";")
        while len(sections) < 4:
            sections.append("")
        table, graph, keep, discard = sections[:4]

        ordered: List[Resource] = []
        for type_match in _TYPE_PATTERN.finditer(table):
            rtype = _type_from_serialized_name(type_match.group(1))
            for entry in _ENTRY_PATTERN.finditer(type_match.group(2)):
                name, flag_text, value_text = entry.groups()
                value = int(value_text, 16) if value_text else None
                resource = store.get_or_create(rtype, name, value)
                resource.flags = Resource.flags_from_string(flag_text)
                ordered.append(resource)

        for chain in filter(None, graph.split(",")):
            ids = [int(part, 16) for part in chain.split("^")]
            source = ordered[ids[0]]
            for ref in ids[1:]:
                source.add_reference(ordered[ref])

        store._keep_attributes.extend(unquote(token) for token in keep.split(",") if token)
        store._discard_attributes.extend(unquote(token) for token in discard.split(",") if token)
        return store

    def merge(self, other: "ResourceStore") -> None:
        """Fold ``other`` into this store: resources, flags, locations, edges and directives."""
        for directive in other._discard_attributes:
            if directive not in self._discard_attributes:
                self._discard_attributes.append(directive)
        for directive in other._keep_attributes:
            if directive not in self._keep_attributes:
                self._keep_attributes.append(directive)

        # Create everything first so edges below can point into this graph.
        for resource in other._resources:
            existing = self.get_or_create(resource.type, resource.name, resource.value)
            existing.flags |= resource.flags
            for location in resource.declarations:
                if location not in existing.declarations:
                    existing.add_location(location)
        for resource in other._resources:
            existing = self.lookup(resource.type, resource.name)
            if existing is None:
                continue
            for referenced in resource.references:
                existing.add_reference(self.lookup(referenced.type, referenced.name))


def _split_directive(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _encode_directive(token: str) -> str:
    return quote(token, safe=_DIRECTIVE_SAFE)


def _base_name(url: str, start: int) -> str:
    dot = url.find(".", start)
    return url[start:dot] if dot != -1 else url[start:]


def _type_from_serialized_name(name: str) -> ResourceType:
    # PUBLIC is excluded from the URL lookup but can still appear in a dump.
    for rtype in ResourceType:
        if rtype.value == name:
            return rtype
    raise ValueError(f"Unknown resource type {name!r} in serialized model")


__all__ = ["ANDROID_RES", "ResourceConflictError", "ResourceStore"]
