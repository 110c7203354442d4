"""Resource usage model: records declarations and references, then finds unused resources.

Documents are fed one at a time through :meth:`ResourceUsageModel.visit_xml_document`,
:meth:`ResourceUsageModel.visit_binary_resource` and the ``tokenize_*`` entry
points. Keep and discard directives found along the way are only recorded;
call :meth:`ResourceUsageModel.resolve_directives` once every document has been
visited, then :meth:`ResourceUsageModel.find_unused`.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Optional

from .analysis import find_unused_resources, mark_reachable
from .logging import get_logger
from .models import Resource
from .resources.types import ResourceFolderType, ResourceType
from .resources.urls import (
    PREFIX_BINDING_EXPR,
    PREFIX_RESOURCE_REF,
    PREFIX_THEME_REF,
    PREFIX_TWOWAY_BINDING_EXPR,
    ResourceUrl,
    file_name_to_resource_name,
    has_image_extension,
)
from .stores.resource_store import ResourceStore
from .tokenizers.code import is_identifier_part, tokenize_code
from .tokenizers.unknown import ANDROID_RES, tokenize_unknown_binary, tokenize_unknown_text
from .tokenizers.web import WebToken, WebTokenKind, tokenize_css, tokenize_html, tokenize_js

ANDROID_URI = "http://schemas.android.com/apk/res/android"
TOOLS_URI = "http://schemas.android.com/tools"
AAPT_URI = "http://schemas.android.com/aapt"

ATTR_KEEP = "keep"
ATTR_DISCARD = "discard"
ATTR_SHRINK_MODE = "shrinkMode"
VALUE_STRICT = "strict"
VALUE_SAFE = "safe"

CONSTRAINT_REFERENCED_IDS = "constraint_referenced_ids"
FRAGMENT_TAGS = frozenset({"fragment", "androidx.fragment.app.FragmentContainerView"})
ANALYTICS_FILE = "analytics.xml"

_ANDROID_STYLE_PREFIXES = ("@android:style/", "android:")
_BINDING_URL_EXTRA_CHARS = "_./+"

_LOGGER = get_logger("usage")


def split_name(name: str) -> tuple[Optional[str], str]:
    """Split a Clark-notation ``{uri}local`` name into ``(uri, local)``."""
    if name.startswith("{"):
        uri, _, local = name[1:].partition("}")
        return uri, local
    return None, name


def is_analytics_file(path: Path) -> bool:
    """Return True for Google Analytics configuration files, read only by the library."""
    return Path(path).name == ANALYTICS_FILE


def _is_ignored_file_name(name: str) -> bool:
    return name.startswith(".") or name.endswith("~") or name == "Thumbs.db"


class ResourceUsageModel:
    """Builds the resource reference graph for one analysis run."""

    def __init__(
        self,
        store: ResourceStore | None = None,
        *,
        ignore_tools_attributes: bool = False,
    ) -> None:
        self.store = store or ResourceStore()
        self.ignore_tools_attributes = ignore_tools_attributes
        self._next_inlined_suffix = 1
        self._current_path: Optional[Path] = None

    # ------------------------------------------------------------------
    # Registry access

    @property
    def resources(self) -> List[Resource]:
        return self.store.resources

    @property
    def safe_mode(self) -> bool:
        return self.store.safe_mode

    def get_resource(self, rtype: ResourceType, name: str) -> Optional[Resource]:
        return self.store.lookup(rtype, name)

    def get_resource_by_value(self, value: int) -> Optional[Resource]:
        return self.store.lookup_by_value(value)

    def get_resource_from_url(self, url: str) -> Optional[Resource]:
        """Return (creating if needed) the resource a URL names; framework URLs give None."""
        parsed = ResourceUrl.parse(url)
        if parsed is None or parsed.is_framework:
            return None
        return self.store.get_or_create(parsed.type, parsed.name)

    def get_resource_from_file_path(self, path: str) -> Optional[Resource]:
        return self.store.lookup_by_file_path(path)

    def add_resource(
        self, rtype: ResourceType, name: str, value: Optional[int] = None
    ) -> Resource:
        return self.store.get_or_create(rtype, name, value)

    def add_declared_resource(
        self,
        rtype: ResourceType,
        name: str,
        value: Optional[int] = None,
        *,
        declared: bool = True,
    ) -> Resource:
        resource = self.store.get_or_create(rtype, name, value)
        if declared:
            resource.declared = True
        return resource

    def declare_resource(self, rtype: ResourceType, name: str) -> Resource:
        resource = self.add_declared_resource(rtype, name)
        if self._current_path is not None and self._current_path not in resource.declarations:
            resource.add_location(self._current_path)
        return resource

    def add_to_whitelist(self, resource: Optional[Resource]) -> bool:
        return self.store.add_to_whitelist(resource)

    # ------------------------------------------------------------------
    # Directives

    def record_directive(self, name: str, value: str) -> None:
        """Record a ``keep``, ``discard`` or ``shrinkMode`` directive for later resolution."""
        if name == ATTR_KEEP:
            self.store.record_keep_tool_attribute(value)
        elif name == ATTR_DISCARD:
            self.store.record_discard_tool_attribute(value)
        elif name == ATTR_SHRINK_MODE:
            self.record_shrink_mode_attribute(value)

    def record_tools_attribute(self, key: str, value: str) -> None:
        """Record a ``tools:`` attribute given by its Clark-notation key."""
        uri, local = split_name(key)
        if uri == TOOLS_URI:
            self.record_directive(local, value)

    def record_shrink_mode_attribute(self, value: str) -> None:
        if value == VALUE_STRICT:
            self.store.safe_mode = False
        elif value == VALUE_SAFE:
            self.store.safe_mode = True

    def resolve_directives(self) -> None:
        """Apply every recorded keep and discard directive; run once, after all visits."""
        self.store.process_tools_attributes()

    process_tools_attributes = resolve_directives

    # ------------------------------------------------------------------
    # Documents

    def visit_xml_document(
        self,
        path: Path,
        folder_type: Optional[ResourceFolderType],
        root: ET.Element,
        text: Optional[str] = None,
    ) -> None:
        """Record a parsed XML document; a missing folder type means a manifest.

        ``text`` is the raw document, scanned for ``android_res/`` URLs in
        ``res/xml`` files; it is read from ``path`` when not supplied.
        """
        path = Path(path)
        self._current_path = path
        try:
            if folder_type is None:
                self.record_manifest_usages(root)
                return

            declaring: Optional[Resource] = None
            if folder_type is not ResourceFolderType.VALUES:
                rtype = folder_type.related_types()[0]
                declaring = self.declare_resource(rtype, file_name_to_resource_name(path.name))
            elif is_analytics_file(path):
                return

            self._next_inlined_suffix = 1
            self.record_resource_references(folder_type, root, declaring)

            if folder_type is ResourceFolderType.XML:
                if text is None:
                    text = self._read_text(path)
                self.tokenize_unknown_text(text)
        finally:
            self._current_path = None

    def visit_binary_resource(
        self,
        folder_type: Optional[ResourceFolderType],
        path: Path,
        content: Optional[bytes] = None,
    ) -> None:
        """Record a non-XML resource file, scanning bundled web content and unknown raw files."""
        path = Path(path)
        declaring: Optional[Resource] = None
        if folder_type is not None and folder_type is not ResourceFolderType.VALUES:
            if _is_ignored_file_name(path.name):
                return
            rtype = folder_type.related_types()[0]
            self._current_path = path
            try:
                declaring = self.declare_resource(rtype, file_name_to_resource_name(path.name))
            finally:
                self._current_path = None

        if folder_type is not ResourceFolderType.RAW:
            return

        suffix = path.suffix.lower()
        if suffix in (".html", ".htm", ".css", ".js"):
            if content is None:
                text = self._read_text(path)
            else:
                text = content.decode("utf-8", errors="replace")
            if suffix == ".css":
                self.tokenize_css(declaring, text)
            elif suffix == ".js":
                self.tokenize_js(declaring, text)
            else:
                self.tokenize_html(declaring, text)
        elif not has_image_extension(path.name):
            if content is None:
                content = self._read_bytes(path)
            self.tokenize_unknown_binary(declaring, content)

    def record_manifest_usages(self, node: ET.Element) -> None:
        """Mark every resource a manifest names in attributes or text as reachable."""
        for element in node.iter():
            if not isinstance(element.tag, str):
                continue
            for value in element.attrib.values():
                mark_reachable(self.get_resource_from_url(value))
            if element.text and element.text.strip():
                mark_reachable(self.get_resource_from_url(element.text.strip()))
            for child in element:
                if child.tail and child.tail.strip():
                    mark_reachable(self.get_resource_from_url(child.tail.strip()))

    # ------------------------------------------------------------------
    # Tree walk

    def record_resource_references(
        self,
        folder_type: ResourceFolderType,
        node: ET.Element,
        declaring: Optional[Resource],
    ) -> None:
        """Record declarations and references below ``node``, the document's root element."""
        root_tag = split_name(node.tag)[1] if isinstance(node.tag, str) else ""
        self._walk(folder_type, node, declaring, None, root_tag)

    def _walk(
        self,
        folder_type: ResourceFolderType,
        element: ET.Element,
        declaring: Optional[Resource],
        parent: Optional[ET.Element],
        root_tag: str,
    ) -> None:
        if not isinstance(element.tag, str):
            # Comments and processing instructions
            return
        uri, tag = split_name(element.tag)

        if uri == AAPT_URI and tag == "attr" and declaring is not None:
            self._record_inlined_resources(element, declaring)

        if declaring is not None:
            self._record_attribute_references(element, tag, declaring, root_tag)
            if tag == "rawPathResId":
                # Wear app descriptor: the text names a raw resource.
                raw_name = "".join(
                    [element.text or ""] + [child.tail or "" for child in element]
                ).strip()
                if raw_name:
                    declaring.add_reference(self.store.lookup(ResourceType.RAW, raw_name))
        else:
            for name in (ATTR_KEEP, ATTR_DISCARD, ATTR_SHRINK_MODE):
                value = element.get(f"{{{TOOLS_URI}}}{name}")
                if value is not None:
                    self.record_directive(name, value)

        if folder_type is ResourceFolderType.VALUES:
            definition: Optional[Resource] = None
            rtype = ResourceType.from_xml_tag(tag, element.get("type"))
            if rtype is not None:
                name = element.get("name", "")
                if not name:
                    return
                if rtype is ResourceType.PUBLIC:
                    public_type = ResourceType.from_xml_value(element.get("type", ""))
                    if public_type is not None:
                        definition = self.declare_resource(public_type, name)
                        definition.public = True
                else:
                    definition = self.declare_resource(rtype, name)
            if definition is not None:
                declaring = definition

            if rtype is ResourceType.STRING:
                # Markup inside a string body is formatting, not resource declarations.
                self._record_text(element.text, declaring)
                for child in element:
                    self._record_text(child.tail, declaring)
                return

            if tag == "style" and definition is not None:
                self._record_parent_styles(element, definition)

            if tag == "item" and definition is None and parent is not None:
                if split_name(parent.tag)[1] == "style":
                    attr_name = element.get("name", "")
                    if attr_name and not attr_name.startswith("android:"):
                        style = self.store.lookup(ResourceType.STYLE, parent.get("name", ""))
                        if style is not None:
                            declaring = style
                            style.add_reference(
                                self.store.get_or_create(ResourceType.ATTR, attr_name)
                            )

        self._record_text(element.text, declaring)
        for child in element:
            self._walk(folder_type, child, declaring, element, root_tag)
            self._record_text(child.tail, declaring)

    def _record_inlined_resources(self, element: ET.Element, declaring: Resource) -> None:
        # <aapt:attr> children become synthetic resources named <decl>_<n>.
        for child in element:
            if not isinstance(child.tag, str):
                continue
            name = f"{declaring.name}_{self._next_inlined_suffix}"
            self._next_inlined_suffix += 1
            declaring.add_reference(self.store.get_or_create(declaring.type, name))

    def _record_attribute_references(
        self, element: ET.Element, tag: str, declaring: Resource, root_tag: str
    ) -> None:
        for key, value in element.attrib.items():
            uri, local = split_name(key)
            if uri == TOOLS_URI:
                self.record_directive(local, value)
                if self.ignore_tools_attributes:
                    continue

            if not value.startswith((PREFIX_RESOURCE_REF, PREFIX_THEME_REF)):
                if local == CONSTRAINT_REFERENCED_IDS:
                    for id_name in value.split(","):
                        id_name = id_name.strip()
                        if id_name:
                            mark_reachable(self.store.get_or_create(ResourceType.ID, id_name))
                continue

            url = ResourceUrl.parse(value)
            if url is not None:
                if url.is_framework:
                    continue
                if not url.create:
                    declaring.add_reference(self.store.get_or_create(url.type, url.name))
                    continue
                is_id = local == "id"
                if is_id and (
                    root_tag == "layout" or (tag == "action" and root_tag == "navigation")
                ):
                    # Bound by data binding or read by the navigation runtime.
                    mark_reachable(self.store.get_or_create(url.type, url.name))
                    continue
                resource = self.declare_resource(url.type, url.name)
                if not is_id or uri != ANDROID_URI:
                    declaring.add_reference(resource)
                elif tag in FRAGMENT_TAGS:
                    # Fragment ids are used implicitly to restore state.
                    mark_reachable(resource)
            elif value.startswith((PREFIX_BINDING_EXPR, PREFIX_TWOWAY_BINDING_EXPR)):
                for resource in self._binding_expression_references(value):
                    declaring.add_reference(resource)

    def _binding_expression_references(self, value: str) -> Iterable[Resource]:
        """Yield resources named as ``@type/name`` or ``R.type.name`` in a binding expression."""
        length = len(value)
        start = (
            len(PREFIX_TWOWAY_BINDING_EXPR)
            if value.startswith(PREFIX_TWOWAY_BINDING_EXPR)
            else len(PREFIX_BINDING_EXPR)
        )

        index = value.find("@", start)
        while index != -1:
            end = index + 1
            while end < length and (
                is_identifier_part(value[end]) or value[end] in _BINDING_URL_EXTRA_CHARS
            ):
                end += 1
            url = ResourceUrl.parse(value[index:end])
            if url is not None and not url.is_framework:
                if url.create:
                    yield self.declare_resource(url.type, url.name)
                else:
                    yield self.store.get_or_create(url.type, url.name)
            index = value.find("@", end)

        index = value.find("R.", start)
        while index != -1:
            end = index + 2
            if is_identifier_part(value[index - 1]):
                # BR.name and friends
                index = value.find("R.", end)
                continue
            while end < length and (is_identifier_part(value[end]) or value[end] == "."):
                end += 1
            tokens = value[index + 2 : end].split(".")
            if len(tokens) == 2 and tokens[1]:
                rtype = ResourceType.from_class_name(tokens[0])
                if rtype is not None:
                    yield self.store.get_or_create(rtype, tokens[1])
            index = value.find("R.", end)

    def _record_parent_styles(self, element: ET.Element, definition: Resource) -> None:
        parent = element.get("parent")
        if parent is not None:
            if not parent or parent.startswith(_ANDROID_STYLE_PREFIXES):
                return
            if not parent.startswith("@style/"):
                parent = f"@{parent}" if parent.startswith("style/") else f"@style/{parent}"
            definition.add_reference(self.get_resource_from_url(parent))
            return

        # Implicit parents: Theme_Dark_Small extends Theme_Dark which extends Theme.
        name = definition.name
        while "_" in name:
            name = name.rsplit("_", 1)[0]
            if name:
                definition.add_reference(self.store.get_or_create(ResourceType.STYLE, name))

    def _record_text(self, text: Optional[str], declaring: Optional[Resource]) -> None:
        if declaring is None or not text:
            return
        stripped = text.strip()
        if stripped.startswith((PREFIX_RESOURCE_REF, PREFIX_THEME_REF)):
            declaring.add_reference(self.get_resource_from_url(stripped))

    # ------------------------------------------------------------------
    # Scanners

    def tokenize_html(self, declaring: Optional[Resource], html: str) -> None:
        for token in tokenize_html(html):
            self._record_web_token(declaring, token)

    def tokenize_css(self, declaring: Optional[Resource], css: str) -> None:
        for token in tokenize_css(css):
            self._record_web_token(declaring, token)

    def tokenize_js(self, declaring: Optional[Resource], js: str) -> None:
        for token in tokenize_js(js):
            self._record_web_token(declaring, token)

    def tokenize_java_code(self, source: str) -> None:
        """Mark every ``R.type.name`` used from Java source as reachable."""
        for reference in tokenize_code(source):
            mark_reachable(self.store.get_or_create(reference.type, reference.name))

    def tokenize_kotlin_code(self, source: str) -> None:
        self.tokenize_java_code(source)

    def tokenize_unknown_binary(self, declaring: Optional[Resource], content: bytes) -> None:
        for span in tokenize_unknown_binary(content):
            self._record_reference(declaring, self._resource_from_marker_span(span))

    def tokenize_unknown_binary_file(self, declaring: Optional[Resource], path: Path) -> None:
        self.tokenize_unknown_binary(declaring, self._read_bytes(Path(path)))

    def tokenize_unknown_text(self, text: str) -> None:
        for span in tokenize_unknown_text(text):
            mark_reachable(self._resource_from_marker_span(span))

    def _resource_from_marker_span(self, span: str) -> Optional[Resource]:
        # android_res/drawable-hdpi/bg resolves by folder; android_res/raw/intro by URL.
        resource = self.store.lookup_by_file_path(ANDROID_RES + span)
        if resource is None:
            resource = self.get_resource_from_url(PREFIX_RESOURCE_REF + span)
        return resource

    def _record_web_token(self, declaring: Optional[Resource], token: WebToken) -> None:
        if token.kind is WebTokenKind.JS_STRING:
            self.on_unresolved_string_literal(token.value)
            return
        if token.kind is WebTokenKind.HTML_ATTRIBUTE and token.attribute not in ("href", "src"):
            return
        if not self._referenced_url(declaring, token.value):
            self.on_unresolved_string_literal(token.value)

    def _referenced_url(self, declaring: Optional[Resource], url: str) -> bool:
        resource = self.store.lookup_by_file_path(url)
        if resource is None and "/" not in url:
            # Bare file names usually point into res/raw
            resource = self.store.lookup(ResourceType.RAW, file_name_to_resource_name(url))
        if resource is None:
            return False
        self._record_reference(declaring, resource)
        return True

    @staticmethod
    def _record_reference(declaring: Optional[Resource], resource: Optional[Resource]) -> None:
        if resource is None:
            return
        if declaring is not None:
            declaring.add_reference(resource)
        else:
            mark_reachable(resource)

    # ------------------------------------------------------------------
    # Hooks

    def on_unresolved_string_literal(self, value: str) -> None:
        """Called with string literals and URLs that did not resolve to a resource.

        Subclasses implementing safe-mode guessing can match ``value`` against
        resource names here; the default does nothing.
        """

    def on_root_resources_found(self, roots: List[Resource]) -> None:
        """Called with the roots before the reachability traversal; may mark more roots."""

    # ------------------------------------------------------------------
    # Results

    def find_unused(self) -> List[Resource]:
        return find_unused_resources(self.store.resources, on_roots=self.on_root_resources_found)

    def dump_config(self) -> str:
        return self.store.dump_config()

    def dump_keep_resources(self) -> str:
        return self.store.dump_keep_resources()

    def dump_references(self) -> str:
        return self.store.dump_references()

    def dump_resource_model(self) -> str:
        return self.store.dump_resource_model()

    def serialize(self, include_values: bool = True) -> str:
        return self.store.serialize(include_values)

    @classmethod
    def deserialize(cls, text: str) -> "ResourceUsageModel":
        return cls(ResourceStore.deserialize(text))

    def merge(self, other: "ResourceUsageModel") -> None:
        self.store.merge(other.store)

    # ------------------------------------------------------------------
    # File helpers

    @staticmethod
    def _read_text(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            _LOGGER.debug("Unable to read %s: %s", path, exc)
            return ""

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            _LOGGER.debug("Unable to read %s: %s", path, exc)
            return b""


__all__ = [
    "AAPT_URI",
    "ANDROID_URI",
    "ResourceUsageModel",
    "TOOLS_URI",
    "is_analytics_file",
    "split_name",
]
