"""Resource types, resource folder kinds and the relationships between them."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional


class ResourceType(Enum):
    """Kinds of resources an application can declare, in report order."""

    ANIM = "anim"
    ANIMATOR = "animator"
    ARRAY = "array"
    ATTR = "attr"
    BOOL = "bool"
    COLOR = "color"
    DIMEN = "dimen"
    DRAWABLE = "drawable"
    FONT = "font"
    FRACTION = "fraction"
    ID = "id"
    INTEGER = "integer"
    INTERPOLATOR = "interpolator"
    LAYOUT = "layout"
    MACRO = "macro"
    MENU = "menu"
    MIPMAP = "mipmap"
    NAVIGATION = "navigation"
    PLURALS = "plurals"
    RAW = "raw"
    STRING = "string"
    STYLE = "style"
    STYLEABLE = "styleable"
    TRANSITION = "transition"
    XML = "xml"
    # Synthetic: produced by <public> declarations, never referenced directly.
    PUBLIC = "public"

    def __str__(self) -> str:
        return self.value

    @property
    def ordinal(self) -> int:
        return _ORDINALS[self]

    @classmethod
    def from_class_name(cls, name: str) -> Optional["ResourceType"]:
        """Return the type for an ``R.<name>`` inner class name."""
        return _BY_CLASS_NAME.get(name)

    @classmethod
    def from_xml_value(cls, name: str) -> Optional["ResourceType"]:
        """Return the type named in a resource URL such as ``@drawable/x``."""
        return _BY_XML_VALUE.get(name)

    @classmethod
    def from_xml_tag(cls, tag: str, type_attribute: Optional[str] = None) -> Optional["ResourceType"]:
        """Return the type declared by a values-file element.

        ``<item>`` elements carry their type in a ``type`` attribute; pass its
        value as ``type_attribute``.
        """
        if tag == "item":
            if not type_attribute:
                return None
            return cls.from_xml_value(type_attribute)
        return _BY_XML_TAG.get(tag)


_ORDINALS: Dict[ResourceType, int] = {rtype: index for index, rtype in enumerate(ResourceType)}

_BY_CLASS_NAME: Dict[str, ResourceType] = {
    rtype.value: rtype for rtype in ResourceType if rtype is not ResourceType.PUBLIC
}

_BY_XML_VALUE: Dict[str, ResourceType] = {
    rtype.value: rtype
    for rtype in ResourceType
    if rtype not in (ResourceType.PUBLIC, ResourceType.STYLEABLE)
}

_BY_XML_TAG: Dict[str, ResourceType] = {
    "attr": ResourceType.ATTR,
    "bool": ResourceType.BOOL,
    "color": ResourceType.COLOR,
    "declare-styleable": ResourceType.STYLEABLE,
    "dimen": ResourceType.DIMEN,
    "drawable": ResourceType.DRAWABLE,
    "fraction": ResourceType.FRACTION,
    "integer": ResourceType.INTEGER,
    "array": ResourceType.ARRAY,
    "integer-array": ResourceType.ARRAY,
    "string-array": ResourceType.ARRAY,
    "plurals": ResourceType.PLURALS,
    "string": ResourceType.STRING,
    "style": ResourceType.STYLE,
    "macro": ResourceType.MACRO,
    "public": ResourceType.PUBLIC,
}


class ResourceFolderType(Enum):
    """Kinds of folders under a ``res/`` directory."""

    ANIM = "anim"
    ANIMATOR = "animator"
    COLOR = "color"
    DRAWABLE = "drawable"
    FONT = "font"
    INTERPOLATOR = "interpolator"
    LAYOUT = "layout"
    MENU = "menu"
    MIPMAP = "mipmap"
    NAVIGATION = "navigation"
    RAW = "raw"
    TRANSITION = "transition"
    VALUES = "values"
    XML = "xml"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_folder_name(cls, folder_name: str) -> Optional["ResourceFolderType"]:
        """Return the folder kind for a possibly qualified name like ``drawable-hdpi``."""
        base = folder_name.split("-", 1)[0]
        for folder_type in cls:
            if folder_type.value == base:
                return folder_type
        return None

    def related_types(self) -> List[ResourceType]:
        """Return the resource types a file in this folder can define, primary first."""
        return list(_FOLDER_TYPES[self])


_FOLDER_TYPES: Dict[ResourceFolderType, tuple[ResourceType, ...]] = {
    ResourceFolderType.ANIM: (ResourceType.ANIM,),
    ResourceFolderType.ANIMATOR: (ResourceType.ANIMATOR,),
    ResourceFolderType.COLOR: (ResourceType.COLOR,),
    ResourceFolderType.DRAWABLE: (ResourceType.DRAWABLE,),
    ResourceFolderType.FONT: (ResourceType.FONT,),
    ResourceFolderType.INTERPOLATOR: (ResourceType.INTERPOLATOR,),
    ResourceFolderType.LAYOUT: (ResourceType.LAYOUT,),
    ResourceFolderType.MENU: (ResourceType.MENU,),
    ResourceFolderType.MIPMAP: (ResourceType.MIPMAP,),
    ResourceFolderType.NAVIGATION: (ResourceType.NAVIGATION,),
    ResourceFolderType.RAW: (ResourceType.RAW,),
    ResourceFolderType.TRANSITION: (ResourceType.TRANSITION,),
    ResourceFolderType.VALUES: (
        ResourceType.ARRAY,
        ResourceType.ATTR,
        ResourceType.BOOL,
        ResourceType.COLOR,
        ResourceType.DIMEN,
        ResourceType.FRACTION,
        ResourceType.ID,
        ResourceType.INTEGER,
        ResourceType.MACRO,
        ResourceType.PLURALS,
        ResourceType.PUBLIC,
        ResourceType.STRING,
        ResourceType.STYLE,
        ResourceType.STYLEABLE,
    ),
    ResourceFolderType.XML: (ResourceType.XML,),
}


__all__ = ["ResourceFolderType", "ResourceType"]
