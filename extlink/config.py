"""
Configuration

Settings come from the environment, optionally seeded from a .env file.
build_registry() composes the catalogs the registry operations run against.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from extlink.catalog import (
    MANIFEST_FILENAME,
    ChainedCatalog,
    InstalledModuleCatalog,
    LoadedModuleCatalog,
    load_manifest,
)
from extlink.core.registry import ExtensionModuleRegistry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class RegistrySettings(BaseModel):
    """Where to find the host and its extensions."""
    host_name: str = Field("Host", description="Module name of the host application")
    module_paths: List[str] = Field(default_factory=lambda: [os.getcwd()], description="Module search roots")
    host_path: Optional[str] = Field(None, description="Base path of the host copy running this process")
    log_level: str = Field("INFO", description="Logging level name")


def load_settings(env_file: Optional[str] = None) -> RegistrySettings:
    """
    Build settings from the environment.

    Args:
        env_file: Optional .env file; defaults to python-dotenv's lookup

    Returns:
        RegistrySettings populated from EXTLINK_* and LOG_LEVEL
    """
    load_dotenv(env_file)

    values = {}
    if os.getenv("EXTLINK_HOST"):
        values["host_name"] = os.environ["EXTLINK_HOST"]
    module_path = os.getenv("EXTLINK_MODULE_PATH")
    if module_path:
        values["module_paths"] = [p for p in module_path.split(os.pathsep) if p]
    if os.getenv("EXTLINK_HOST_PATH"):
        values["host_path"] = os.environ["EXTLINK_HOST_PATH"]
    values["log_level"] = os.getenv("LOG_LEVEL", "INFO").upper()

    return RegistrySettings(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )


def build_registry(settings: RegistrySettings) -> ExtensionModuleRegistry:
    """
    Compose the host and extension catalogs.

    The host copy named by host_path counts as loaded in this process and is
    preferred over other installed copies of the host.
    """
    installed = InstalledModuleCatalog(settings.module_paths)
    loaded = LoadedModuleCatalog()

    if settings.host_path:
        manifest_path = Path(settings.host_path) / MANIFEST_FILENAME
        try:
            manifest = load_manifest(manifest_path)
            loaded.register(settings.host_name, manifest["version"], str(Path(settings.host_path).resolve()))
        except (ValueError, KeyError) as e:
            logger.warning(f"Ignoring EXTLINK_HOST_PATH {settings.host_path}: {e!r}")

    return ExtensionModuleRegistry(
        host_name=settings.host_name,
        host_catalog=ChainedCatalog(loaded, installed),
        extension_catalog=installed
    )
