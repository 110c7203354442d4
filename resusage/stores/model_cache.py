"""Persistent cache for serialized resource usage models."""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..logging import get_logger
from ..resources.types import ResourceType
from .resource_store import ResourceStore

_CACHE_VERSION = 2

_LOGGER = get_logger("cache")


class ModelCache:
    """Stores serialized models keyed by project root and manifest fingerprint."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def get(self, key: str, *, fingerprint: str) -> Optional[ResourceStore]:
        """Return a fresh store rebuilt from the cached model, or None on a miss."""
        entry = self._entries.get(key)
        if not entry:
            return None
        if entry.get("fingerprint") != fingerprint:
            return None
        model = entry.get("model")
        if not isinstance(model, str):
            return None
        try:
            store = ResourceStore.deserialize(model)
            _restore_locations(store, entry.get("locations"))
        except (ValueError, IndexError) as exc:
            _LOGGER.debug("Discarding unreadable cached model for %s: %s", key, exc)
            return None
        store.safe_mode = bool(entry.get("safe_mode", True))
        return store

    def store(self, key: str, *, fingerprint: str, model: ResourceStore) -> None:
        self._entries[key] = {
            "fingerprint": fingerprint,
            "model": model.serialize(),
            "locations": _locations_of(model),
            "safe_mode": model.safe_mode,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> None:
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        if removed:
            for key in removed:
                self._entries.pop(key, None)
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            _LOGGER.debug("Ignoring unreadable model cache %s: %s", path, exc)
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str)
            and isinstance(raw, dict)
            and "fingerprint" in raw
            and "model" in raw
        }
        self._dirty = False


def _locations_of(model: ResourceStore) -> Dict[str, List[str]]:
    # The compact model string carries no file paths.
    return {
        f"{resource.type}/{resource.name}": [str(path) for path in resource.declarations]
        for resource in model
        if resource.declarations
    }


def _restore_locations(store: ResourceStore, payload: object) -> None:
    if not isinstance(payload, dict):
        return
    for key, paths in payload.items():
        type_name, _, name = str(key).partition("/")
        resource = store.lookup(ResourceType(type_name), name)
        if resource is None or not isinstance(paths, list):
            continue
        for path in paths:
            resource.add_location(Path(str(path)))


__all__ = ["ModelCache"]
