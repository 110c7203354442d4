"""Configuration loading for resusage (.resusage.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".resusage.yml"

_SHRINK_MODES = {"safe", "strict"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ResUsageConfig:
    """Represents the settings defined in .resusage.yml."""

    root: Path
    shrink_mode: Optional[str] = None
    ignore_tools_attributes: bool = False
    keep: List[str] = field(default_factory=list)
    discard: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)
    cache: bool = True


def load_config(config_path: Path) -> ResUsageConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ResUsageConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    shrink_mode = _as_str(data.get("shrink_mode"))
    if shrink_mode is not None:
        shrink_mode = shrink_mode.strip().lower()
        if shrink_mode not in _SHRINK_MODES:
            raise ConfigError(
                f"shrink_mode must be one of {', '.join(sorted(_SHRINK_MODES))}, got {shrink_mode!r}"
            )

    ignore_tools = _as_bool(data.get("ignore_tools_attributes"))
    cache = _as_bool(data.get("cache"))

    return ResUsageConfig(
        root=root,
        shrink_mode=shrink_mode,
        ignore_tools_attributes=bool(ignore_tools),
        keep=_as_str_list(data.get("keep")),
        discard=_as_str_list(data.get("discard")),
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        cache=True if cache is None else cache,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "ResUsageConfig", "load_config"]
