"""Resource types, folder kinds and URL helpers."""

from __future__ import annotations

from .types import ResourceFolderType, ResourceType
from .urls import (
    ResourceUrl,
    file_name_to_resource_name,
    has_image_extension,
    resource_name_to_field_name,
)

__all__ = [
    "ResourceFolderType",
    "ResourceType",
    "ResourceUrl",
    "file_name_to_resource_name",
    "has_image_extension",
    "resource_name_to_field_name",
]
