"""Reachability analysis over a populated resource graph."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .logging import get_logger
from .models import Resource
from .resources.types import ResourceType

_LOGGER = get_logger("analysis")

# Configuration keys read reflectively by Google Play services and Firebase.
SERVICE_KEYS = frozenset(
    {
        "gcm_defaultSenderId",
        "google_app_id",
        "google_api_key",
        "google_storage_bucket",
        "ga_trackingID",
        "default_web_client_id",
        "firebase_database_url",
        "google_crash_reporting_api_key",
    }
)

_UNTRACKED_TYPES = (ResourceType.ATTR, ResourceType.STYLEABLE)


def is_service_key(name: str) -> bool:
    return name in SERVICE_KEYS


def find_roots(resources: Iterable[Resource]) -> List[Resource]:
    """Return resources that are reachable or kept and not discarded."""
    return [
        resource
        for resource in resources
        if (resource.reachable or resource.keep) and not resource.discard
    ]


def mark_reachable(resource: Optional[Resource]) -> bool:
    """Mark ``resource`` reachable; returns True when it was not reachable before."""
    if resource is None:
        return False
    was_reachable = resource.reachable
    resource.reachable = True
    return not was_reachable


def find_unused_resources(
    resources: Sequence[Resource],
    on_roots: Optional[Callable[[List[Resource]], None]] = None,
) -> List[Resource]:
    """Mark everything reachable from the roots and return the declared leftovers.

    ``on_roots`` receives the root list before the traversal starts, which
    lets callers add extra roots (for example guesses made in safe mode) by
    marking them reachable.

    Attributes and styleables are never reported since style attribute usage
    is not traced; neither are service keys or resources that were only
    referenced and never declared.
    """
    roots = find_roots(resources)
    if on_roots is not None:
        on_roots(roots)
        roots = find_roots(resources)

    seen: Dict[int, Resource] = {}
    for root in roots:
        _visit(root, seen)
    _LOGGER.debug("%d roots reached %d resources", len(roots), len(seen))

    return [
        resource
        for resource in resources
        if not resource.reachable
        and resource.declared
        and resource.type not in _UNTRACKED_TYPES
        and not is_service_key(resource.name)
    ]


def _visit(root: Resource, seen: Dict[int, Resource]) -> None:
    stack = [root]
    while stack:
        resource = stack.pop()
        if id(resource) in seen or resource.discard:
            continue
        seen[id(resource)] = resource
        resource.reachable = True
        # Reverse keeps the depth-first order of a recursive walk.
        stack.extend(reversed(resource.references))


__all__ = [
    "SERVICE_KEYS",
    "find_roots",
    "find_unused_resources",
    "is_service_key",
    "mark_reachable",
]
