"""Resource usage analysis for Android-style projects."""

from .models import Resource
from .resources.types import ResourceFolderType, ResourceType
from .stores.resource_store import ResourceConflictError, ResourceStore
from .usage import ResourceUsageModel

__version__ = "0.1.0"

__all__ = [
    "Resource",
    "ResourceConflictError",
    "ResourceFolderType",
    "ResourceStore",
    "ResourceType",
    "ResourceUsageModel",
]
