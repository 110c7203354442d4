"""Resource registry and persistence helpers."""

from .model_cache import ModelCache
from .resource_store import ANDROID_RES, ResourceConflictError, ResourceStore

__all__ = ["ANDROID_RES", "ModelCache", "ResourceConflictError", "ResourceStore"]
