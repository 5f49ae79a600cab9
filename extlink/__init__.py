"""
extlink - Extension Module Link Registry

Resolves which installed version of an extension module is activated against
which installed version of its host, and records that decision as a link file
the host can read at startup.
"""

from extlink.core.models import (
    ModuleCandidate,
    LinkRecord,
    ResolvedExtension,
)
from extlink.core.errors import (
    RegistryError,
    HostNotFoundError,
    ExtensionNotFoundError,
    InvalidCandidateError,
    AlreadyEnabledError,
    NotEnabledError,
    LinkStoreError,
)
from extlink.core.registry import ExtensionModuleRegistry
from extlink.catalog import Catalog, LoadedModuleCatalog, InstalledModuleCatalog, ChainedCatalog
from extlink.link_store import LinkStore, registry_root_for
from extlink.resolver import resolve
from extlink.config import RegistrySettings, load_settings, build_registry

__all__ = [
    # Models
    "ModuleCandidate",
    "LinkRecord",
    "ResolvedExtension",
    # Errors
    "RegistryError",
    "HostNotFoundError",
    "ExtensionNotFoundError",
    "InvalidCandidateError",
    "AlreadyEnabledError",
    "NotEnabledError",
    "LinkStoreError",
    # Core
    "ExtensionModuleRegistry",
    "Catalog",
    "LoadedModuleCatalog",
    "InstalledModuleCatalog",
    "ChainedCatalog",
    "LinkStore",
    # Functions
    "resolve",
    "registry_root_for",
    "load_settings",
    "build_registry",
    # Config
    "RegistrySettings",
]
