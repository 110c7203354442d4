"""Project scanning: finds manifests, resource files and sources to analyse."""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import get_logger
from .models import (
    FILE_KIND_MANIFEST,
    FILE_KIND_RESOURCE,
    FILE_KIND_SOURCE,
    ProjectFile,
    ProjectManifest,
)
from .resources.types import ResourceFolderType

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".gradle",
    ".idea",
    ".resusage",
    "build",
    "node_modules",
    "__pycache__",
}

_EXCLUDED_FILES = {
    ".DS_Store",
    "Thumbs.db",
}

MANIFEST_FILENAME = "AndroidManifest.xml"
RES_DIRNAME = "res"
_SOURCE_SUFFIXES = (".java", ".kt")

_CACHE_DIRNAME = ".resusage"
_CACHE_FILENAME = "manifest_cache.json"
_CACHE_VERSION = 1

_LOGGER = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .resusage.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _parse_config_excludes(path: Path) -> List[IgnoreRule]:
    try:
        config = load_config(path)
    except ConfigError as exc:
        _LOGGER.debug("Ignoring exclude_paths from unreadable %s: %s", path, exc)
        return []

    rules: List[IgnoreRule] = []
    for pattern in config.exclude_paths:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _load_ignore_rules(root: Path, exclude_paths: Optional[Sequence[str]]) -> List[IgnoreRule]:
    rules = _parse_gitignore(root / ".gitignore")
    if exclude_paths is None:
        rules.extend(_parse_config_excludes(root / CONFIG_FILENAME))
    else:
        rules.extend(
            rule for rule in (_build_ignore_rule(item) for item in exclude_paths) if rule
        )
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _load_hash_cache(root: Path) -> Dict[str, Dict[str, object]]:
    cache_path = root / _CACHE_DIRNAME / _CACHE_FILENAME
    try:
        payload = json.loads(cache_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError):
        return {}

    if not isinstance(payload, dict) or payload.get("version") != _CACHE_VERSION:
        return {}

    files = payload.get("files")
    if not isinstance(files, dict):
        return {}

    valid: Dict[str, Dict[str, object]] = {}
    for rel_path, entry in files.items():
        if not isinstance(rel_path, str) or not isinstance(entry, dict):
            continue
        size = entry.get("size")
        mtime_ns = entry.get("mtime_ns")
        file_hash = entry.get("hash")
        if isinstance(size, int) and isinstance(mtime_ns, int) and isinstance(file_hash, str):
            valid[rel_path] = {"size": size, "mtime_ns": mtime_ns, "hash": file_hash}
    return valid


def _store_hash_cache(root: Path, entries: Dict[str, Dict[str, object]]) -> None:
    cache_dir = root / _CACHE_DIRNAME
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
        payload = {"version": _CACHE_VERSION, "files": entries}
        (cache_dir / _CACHE_FILENAME).write_text(
            json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8"
        )
    except OSError as exc:
        _LOGGER.debug("Unable to write hash cache under %s: %s", cache_dir, exc)


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            if filename in _EXCLUDED_FILES:
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


def classify(path: Path) -> tuple[Optional[str], Optional[ResourceFolderType]]:
    """Return the file kind and, for resources, the kind of folder holding it."""
    if path.name == MANIFEST_FILENAME:
        return FILE_KIND_MANIFEST, None
    if path.parent.parent.name == RES_DIRNAME:
        folder_type = ResourceFolderType.from_folder_name(path.parent.name)
        if folder_type is not None:
            return FILE_KIND_RESOURCE, folder_type
    if path.suffix in _SOURCE_SUFFIXES:
        return FILE_KIND_SOURCE, None
    return None, None


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ProjectScanner:
    """Walks an Android-style project and lists the files the analysis reads."""

    def scan(
        self, root: str | Path, *, exclude_paths: Optional[Sequence[str]] = None
    ) -> ProjectManifest:
        """Return the manifests, resources and sources found under ``root``.

        ``exclude_paths`` overrides the patterns read from ``.resusage.yml``;
        ``.gitignore`` rules always apply.
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        rules = _load_ignore_rules(root_path, exclude_paths)
        cache = _load_hash_cache(root_path)
        cache_entries: Dict[str, Dict[str, object]] = {}

        files: List[ProjectFile] = []
        for path in _iter_files(root_path, rules):
            kind, folder_type = classify(path)
            if kind is None:
                continue
            rel_path = path.relative_to(root_path).as_posix()
            stat_result = path.stat()
            size = stat_result.st_size
            mtime_ns = stat_result.st_mtime_ns

            cached = cache.get(rel_path)
            if cached and cached.get("size") == size and cached.get("mtime_ns") == mtime_ns:
                file_hash = str(cached["hash"])
            else:
                file_hash = _hash_file(path)

            files.append(
                ProjectFile(
                    path=rel_path,
                    kind=kind,
                    size=size,
                    hash=file_hash,
                    folder_type=folder_type,
                )
            )
            cache_entries[rel_path] = {"size": size, "mtime_ns": mtime_ns, "hash": file_hash}

        _store_hash_cache(root_path, cache_entries)
        _LOGGER.debug("Scanned %s: %d relevant files", root_path, len(files))
        return ProjectManifest(root=str(root_path), files=files)


__all__ = ["IgnoreRule", "MANIFEST_FILENAME", "ProjectScanner", "classify"]
