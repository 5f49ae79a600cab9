"""
Candidate Catalogs

Providers that enumerate the installations of a module by name. The
resolver never merges sources on its own: callers compose a loaded-in-process
catalog and an installed-on-disk catalog explicitly with ChainedCatalog.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Protocol

import yaml
from pydantic import ValidationError

from extlink.core.models import ModuleCandidate

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "module.yaml"


class Catalog(Protocol):
    def find(self, name: str) -> List[ModuleCandidate]:
        ...


class LoadedModuleCatalog:
    """Modules that are already active in the running process."""

    def __init__(self):
        self._modules: Dict[str, List[ModuleCandidate]] = {}

    def register(self, name: str, version: str, base_path: str) -> ModuleCandidate:
        candidate = ModuleCandidate(
            name=name,
            version=version,
            base_path=str(base_path),
            is_loaded=True
        )
        self._modules.setdefault(name.casefold(), []).append(candidate)
        return candidate

    def unregister(self, name: str) -> None:
        self._modules.pop(name.casefold(), None)

    def find(self, name: str) -> List[ModuleCandidate]:
        return list(self._modules.get(name.casefold(), []))


class InstalledModuleCatalog:
    """
    Modules installed under one or more search roots.

    Supported layouts:
    - <root>/<Name>/<version>/module.yaml
    - <root>/<Name>/module.yaml (version taken from the manifest)
    """

    def __init__(self, search_paths: Iterable[str]):
        self.search_paths = [Path(p) for p in search_paths]

    def find(self, name: str) -> List[ModuleCandidate]:
        candidates = []
        for root in self.search_paths:
            try:
                module_dir = _find_child_dir(root, name)
                if module_dir is None:
                    continue
                candidates.extend(self._scan_module_dir(module_dir))
            except OSError as e:
                logger.warning(f"Skipping unreadable module directory under {root}: {e}")
        return candidates

    def _scan_module_dir(self, module_dir: Path) -> Iterator[ModuleCandidate]:
        flat_manifest = module_dir / MANIFEST_FILENAME
        if flat_manifest.is_file():
            candidate = _load_candidate(flat_manifest, module_dir.name, default_version=None)
            if candidate:
                yield candidate

        for version_dir in sorted(p for p in module_dir.iterdir() if p.is_dir()):
            manifest = version_dir / MANIFEST_FILENAME
            if not manifest.is_file():
                continue
            candidate = _load_candidate(manifest, module_dir.name, default_version=version_dir.name)
            if candidate:
                yield candidate


class ChainedCatalog:
    """Concatenate the results of several catalogs, in order."""

    def __init__(self, *catalogs: Catalog):
        self.catalogs = list(catalogs)

    def find(self, name: str) -> List[ModuleCandidate]:
        result = []
        for catalog in self.catalogs:
            result.extend(catalog.find(name))
        return result


def load_manifest(manifest_path: Path) -> dict:
    """
    Read a module manifest.

    Args:
        manifest_path: Path to a module.yaml file

    Returns:
        The manifest mapping

    Raises:
        ValueError: If the file cannot be read or is not a YAML mapping
    """
    try:
        with open(manifest_path, 'r', encoding='utf-8') as f:
            # BaseLoader keeps scalars as text so "1.10" is not read as 1.1
            data = yaml.load(f, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {manifest_path}: {e}")
    except OSError as e:
        raise ValueError(f"Cannot read manifest {manifest_path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest {manifest_path} is not a mapping")
    return data


def _load_candidate(
    manifest_path: Path,
    name: str,
    default_version: Optional[str]
) -> Optional[ModuleCandidate]:
    try:
        manifest = load_manifest(manifest_path)
    except ValueError as e:
        logger.warning(f"Skipping module manifest: {e}")
        return None

    declared_name = manifest.get("name")
    if declared_name and str(declared_name).casefold() != name.casefold():
        logger.warning(
            f"Skipping {manifest_path}: declares module '{declared_name}', expected '{name}'"
        )
        return None

    version = manifest.get("version", default_version)
    if version is None:
        logger.warning(f"Skipping {manifest_path}: no version declared")
        return None

    base_path = manifest_path.parent.resolve()
    try:
        return ModuleCandidate(
            name=name,
            version=str(version),
            base_path=str(base_path),
            is_loaded=False
        )
    except ValidationError as e:
        logger.warning(f"Skipping {manifest_path}: {e.errors()[0]['msg']}")
        return None


def _find_child_dir(root: Path, name: str) -> Optional[Path]:
    """Case-insensitive lookup of a module directory under a search root."""
    exact = root / name
    if exact.is_dir():
        return exact
    if not root.is_dir():
        return None
    folded = name.casefold()
    for child in sorted(root.iterdir()):
        if child.is_dir() and child.name.casefold() == folded:
            return child
    return None
