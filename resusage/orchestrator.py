"""End-to-end analysis runs over an Android-style project."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config import ResUsageConfig, load_config
from .logging import get_logger
from .models import (
    FILE_KIND_MANIFEST,
    FILE_KIND_RESOURCE,
    FILE_KIND_SOURCE,
    ProjectFile,
    ProjectManifest,
    Resource,
)
from .project_scanner import ProjectScanner
from .resources.types import ResourceFolderType
from .stores import ModelCache
from .usage import ResourceUsageModel

MODEL_CACHE_PATH = Path(".resusage") / "model_cache.json"


@dataclass
class AnalysisReport:
    """Outcome of one analysis run."""

    root: Path
    unused: List[Resource]
    safe_mode: bool
    resource_count: int
    config_report: str = ""
    references: str = ""
    resource_model: str = ""
    keep_resources: str = ""
    from_cache: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "root": str(self.root),
            "safe_mode": self.safe_mode,
            "resource_count": self.resource_count,
            "unused": [
                {
                    "type": str(resource.type),
                    "name": resource.name,
                    "url": resource.url,
                    "locations": [_display_path(path, self.root) for path in resource.declarations],
                }
                for resource in self.unused
            ],
        }


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


class Orchestrator:
    """Scans a project, builds the usage model and reports unused resources."""

    def __init__(
        self,
        scanner: ProjectScanner | None = None,
        model_factory: Optional[Callable[..., ResourceUsageModel]] = None,
    ) -> None:
        self.scanner = scanner or ProjectScanner()
        self.model_factory = model_factory or ResourceUsageModel
        self.logger = get_logger("orchestrator")

    def run_analysis(self, path: str | Path, *, use_cache: Optional[bool] = None) -> AnalysisReport:
        """Analyse the project at ``path``.

        ``use_cache`` overrides the ``cache`` setting of ``.resusage.yml``.
        Raises ``FileNotFoundError``/``NotADirectoryError`` for a bad path and
        ``ConfigError`` for an unreadable configuration file.
        """
        root = Path(path).expanduser().resolve()
        self.logger.info("Starting analysis of %s", root)
        config = load_config(root)
        manifest = self.scanner.scan(root, exclude_paths=config.exclude_paths)
        self.logger.debug("Scanner discovered %d files", len(manifest.files))

        caching = config.cache if use_cache is None else use_cache
        cache = self._load_model_cache(root) if caching else None
        cache_key = str(root)
        fingerprint = f"{manifest.fingerprint()}:{int(config.ignore_tools_attributes)}"

        model: Optional[ResourceUsageModel] = None
        from_cache = False
        if cache is not None:
            cached = cache.get(cache_key, fingerprint=fingerprint)
            if cached is not None:
                self.logger.debug("Using cached resource model for %s", root)
                model = self.model_factory(
                    cached, ignore_tools_attributes=config.ignore_tools_attributes
                )
                from_cache = True

        if model is None:
            model = self.model_factory(ignore_tools_attributes=config.ignore_tools_attributes)
            self._build_model(model, root, manifest)
            if cache is not None:
                cache.store(cache_key, fingerprint=fingerprint, model=model.store)
                cache.prune([cache_key])
                cache.persist()

        self._apply_config(model, config)
        model.resolve_directives()
        unused = model.find_unused()
        self.logger.info(
            "Found %d unused of %d resources (%s mode)",
            len(unused),
            len(model.resources),
            "safe" if model.safe_mode else "strict",
        )

        return AnalysisReport(
            root=root,
            unused=unused,
            safe_mode=model.safe_mode,
            resource_count=len(model.resources),
            config_report=model.dump_config(),
            references=model.dump_references(),
            resource_model=model.dump_resource_model(),
            keep_resources=model.dump_keep_resources(),
            from_cache=from_cache,
        )

    def _build_model(
        self, model: ResourceUsageModel, root: Path, manifest: ProjectManifest
    ) -> None:
        # Declarations first so references from manifests and code find them.
        for entry in manifest.of_kind(FILE_KIND_RESOURCE):
            self._visit_resource(model, root / entry.path, entry)
        for entry in manifest.of_kind(FILE_KIND_MANIFEST):
            path = root / entry.path
            document = self._parse_xml(path)
            if document is not None:
                model.visit_xml_document(path, None, document)
        for entry in manifest.of_kind(FILE_KIND_SOURCE):
            path = root / entry.path
            source = self._read_text(path)
            if path.suffix == ".kt":
                model.tokenize_kotlin_code(source)
            else:
                model.tokenize_java_code(source)

    def _visit_resource(self, model: ResourceUsageModel, path: Path, entry: ProjectFile) -> None:
        folder_type = entry.folder_type
        # Raw XML (res/raw/keep.xml) is walked too so its tools: directives are recorded.
        if path.suffix.lower() != ".xml":
            model.visit_binary_resource(folder_type, path)
            return
        document = self._parse_xml(path)
        if document is None:
            if folder_type is not ResourceFolderType.VALUES:
                model.visit_binary_resource(folder_type, path)
            return
        model.visit_xml_document(path, folder_type, document, text=self._read_text(path))

    def _parse_xml(self, path: Path) -> Optional[ET.Element]:
        try:
            return ET.fromstring(path.read_bytes())
        except ET.ParseError as exc:
            self.logger.warning("Skipping malformed XML %s: %s", path, exc)
        except OSError as exc:
            self.logger.warning("Unable to read %s: %s", path, exc)
        return None

    def _read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            self.logger.warning("Unable to read %s: %s", path, exc)
            return ""

    @staticmethod
    def _apply_config(model: ResourceUsageModel, config: ResUsageConfig) -> None:
        for value in config.keep:
            model.record_directive("keep", value)
        for value in config.discard:
            model.record_directive("discard", value)
        if config.shrink_mode is not None:
            model.record_shrink_mode_attribute(config.shrink_mode)

    @staticmethod
    def _load_model_cache(root: Path) -> ModelCache:
        return ModelCache(root / MODEL_CACHE_PATH)


__all__ = ["AnalysisReport", "Orchestrator"]
