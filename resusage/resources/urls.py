"""Resource URL parsing and resource name helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .types import ResourceType

PREFIX_RESOURCE_REF = "@"
PREFIX_THEME_REF = "?"
PREFIX_BINDING_EXPR = "@{"
PREFIX_TWOWAY_BINDING_EXPR = "@={"
ANDROID_NS_NAME = "android"

_DOT_9PNG = ".9.png"
_IMAGE_EXTENSIONS = (".png", _DOT_9PNG, ".gif", ".jpeg", ".jpg", ".bmp", ".webp")
_FIELD_SEPARATORS = str.maketrans({".": "_", "-": "_", ":": "_"})


@dataclass(frozen=True)
class ResourceUrl:
    """A parsed ``@type/name`` or ``?type/name`` reference."""

    type: ResourceType
    name: str
    namespace: Optional[str] = None
    theme: bool = False
    create: bool = False

    @property
    def is_framework(self) -> bool:
        return self.namespace == ANDROID_NS_NAME

    @classmethod
    def parse(cls, url: Optional[str]) -> Optional["ResourceUrl"]:
        """Return the parsed URL, or None when ``url`` is not a resource reference."""
        if not url:
            return None
        url = url.strip()
        if len(url) < 2 or url[0] not in (PREFIX_RESOURCE_REF, PREFIX_THEME_REF):
            return None

        theme = url[0] == PREFIX_THEME_REF
        start = 1
        create = False
        if url[start] == "+":
            if theme:
                return None
            create = True
            start += 1
        if start < len(url) and url[start] == "*":
            # Private framework reference, e.g. @*android:string/foo
            start += 1

        slash = url.find("/", start)
        if slash == -1:
            if not theme:
                # @null, @empty and anything else without a type
                return None
            namespace, name = _split_namespace(url[start:])
            if not name:
                return None
            return cls(ResourceType.ATTR, name, namespace=namespace, theme=True)

        namespace, type_name = _split_namespace(url[start:slash])
        rtype = ResourceType.from_xml_value(type_name)
        if rtype is None:
            return None

        name = url[slash + 1 :]
        if ":" in name:
            # @id/android:foo form
            name_namespace, name = _split_namespace(name)
            namespace = namespace or name_namespace
        if not name or "/" in name or any(char.isspace() for char in name):
            return None
        if create and rtype is not ResourceType.ID:
            return None
        return cls(rtype, name, namespace=namespace, theme=theme, create=create)

    def __str__(self) -> str:
        prefix = PREFIX_THEME_REF if self.theme else PREFIX_RESOURCE_REF
        if self.create:
            prefix += "+"
        namespace = f"{self.namespace}:" if self.namespace else ""
        return f"{prefix}{namespace}{self.type}/{self.name}"


def _split_namespace(value: str) -> tuple[Optional[str], str]:
    colon = value.find(":")
    if colon == -1:
        return None, value
    return value[:colon] or None, value[colon + 1 :]


def resource_name_to_field_name(name: str) -> str:
    """Return the canonical lookup key for a raw resource name (``a.b-c`` -> ``a_b_c``)."""
    return name.translate(_FIELD_SEPARATORS)


def file_name_to_resource_name(file_name: str) -> str:
    """Strip the file extension (``.9.png`` aware) to get a resource name."""
    last_extension = file_name.rfind(".")
    if last_extension <= 0:
        return file_name
    if file_name.endswith(_DOT_9PNG) and len(file_name) > len(_DOT_9PNG):
        return file_name[: -len(_DOT_9PNG)]
    return file_name[:last_extension]


def has_image_extension(path: str) -> bool:
    """Return True when ``path`` names a bitmap format understood by the platform."""
    return path.lower().endswith(_IMAGE_EXTENSIONS)


__all__ = [
    "ANDROID_NS_NAME",
    "PREFIX_BINDING_EXPR",
    "PREFIX_RESOURCE_REF",
    "PREFIX_THEME_REF",
    "PREFIX_TWOWAY_BINDING_EXPR",
    "ResourceUrl",
    "file_name_to_resource_name",
    "has_image_extension",
    "resource_name_to_field_name",
]
