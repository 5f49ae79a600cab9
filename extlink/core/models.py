"""
Extension Registry Models

Defines the candidates produced by catalogs, the persisted link records and
the result of resolving an extension against a host installation.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_VERSION_RE = re.compile(r"^\d+(\.\d+){0,3}$")


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Turn a dotted numeric version into a comparable tuple.

    Args:
        version: Version string such as '1.2' or '2.0.1.7'

    Returns:
        Tuple of integer components

    Raises:
        ValueError: If the string is not 1 to 4 dot separated integers
    """
    text = version.strip()
    if not _VERSION_RE.match(text):
        raise ValueError(f"Invalid module version: '{version}'")
    return tuple(int(part) for part in text.split("."))


def validate_module_name(name: str) -> str:
    """Check that a module name is usable as a link file name."""
    if not name or not name.strip():
        raise ValueError("Module name must not be empty")
    if name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise ValueError(f"Invalid module name: '{name}'")
    return name


# --- Catalog Section ---

class ModuleCandidate(BaseModel):
    """One discoverable installation of a module."""
    name: str = Field(..., description="Module name, e.g. 'Foo'")
    version: str = Field(..., description="Exact dotted version of this installation")
    base_path: str = Field(..., description="Directory the installation lives in")
    is_loaded: bool = Field(False, description="Already active in the running process")

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        parse_version(value)
        return value.strip()

    @property
    def version_key(self) -> Tuple[int, ...]:
        return parse_version(self.version)


# --- Link Section ---

class LinkRecord(BaseModel):
    """
    Persisted evidence that an extension is enabled.

    Only Path and Version are stored in the document; the name always comes
    from the link file name.
    """
    name: str = Field(..., exclude=True, description="Extension name (link file base name)")
    version: str = Field(..., alias="Version", description="Exact version that was enabled")
    path: str = Field(..., alias="Path", description="Base path of the enabled installation")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_display(self) -> dict:
        return {"Name": self.name, "Version": self.version, "Path": self.path}


@dataclass
class ResolvedExtension:
    """Outcome of resolving an extension against a host installation."""
    host: ModuleCandidate
    extension: ModuleCandidate
    registry_root: Path
    link_path: Path

    def to_record(self) -> LinkRecord:
        return LinkRecord(
            name=self.extension.name,
            version=self.extension.version,
            path=self.extension.base_path,
        )
