"""
Extension Module Registry

Resolves which installed extension should be activated against which host
installation and records that decision as a link file under the host's
registry root. Get reads the records back without resolving the extension.
"""

import logging
from pathlib import Path
from typing import List, Optional

from extlink.catalog import Catalog
from extlink.core.errors import (
    AlreadyEnabledError,
    ExtensionNotFoundError,
    ExtensionPathMissingError,
    HostNotFoundError,
    HostPathMissingError,
    LinkExistsError,
    LinkNotFoundError,
    LinkStoreError,
    NotEnabledError,
)
from extlink.core.models import LinkRecord, ModuleCandidate, ResolvedExtension, validate_module_name
from extlink.link_store import LinkStore, registry_root_for
from extlink.resolver import filter_candidates, resolve

logger = logging.getLogger(__name__)


def _describe(name: str, pattern: Optional[str]) -> str:
    return f"'{name}' version '{pattern}'" if pattern else f"'{name}'"


class ExtensionModuleRegistry:
    """
    Enable, disable and list extension modules for a host application.

    Args:
        host_name: Module name of the host application
        host_catalog: Catalog that enumerates host installations
        extension_catalog: Catalog that enumerates extension installations
    """

    def __init__(self, host_name: str, host_catalog: Catalog, extension_catalog: Catalog):
        self.host_name = validate_module_name(host_name)
        self.host_catalog = host_catalog
        self.extension_catalog = extension_catalog

    # --- Resolution ---

    def resolve_host(self, host_version: Optional[str] = None) -> ModuleCandidate:
        host = resolve(self.host_catalog.find(self.host_name), host_version)
        if host is None:
            raise HostNotFoundError(f"Host module {_describe(self.host_name, host_version)} not found")
        if not Path(host.base_path).is_dir():
            raise HostPathMissingError(
                f"Host module '{host.name}' {host.version} base path does not exist: {host.base_path}",
                host.base_path
            )
        return host

    def resolve_extension(self, name: str, module_version: Optional[str] = None) -> ModuleCandidate:
        validate_module_name(name)
        extension = resolve(self.extension_catalog.find(name), module_version)
        if extension is None:
            raise ExtensionNotFoundError(f"Extension module {_describe(name, module_version)} not found")
        if not Path(extension.base_path).is_dir():
            raise ExtensionPathMissingError(
                f"Extension module '{extension.name}' {extension.version} base path does not exist: "
                f"{extension.base_path}",
                extension.base_path
            )
        return extension

    def resolve_extension_module(
        self,
        name: str,
        module_version: Optional[str] = None,
        host_version: Optional[str] = None
    ) -> ResolvedExtension:
        """
        Resolve host and extension candidates without touching the registry.

        Args:
            name: Extension module name
            module_version: Optional version literal or wildcard for the extension
            host_version: Optional version literal or wildcard for the host

        Returns:
            ResolvedExtension with both candidates, the registry root and the
            link file path

        Raises:
            HostNotFoundError: If no usable host installation is found
            ExtensionNotFoundError: If no usable extension installation is found
        """
        host = self.resolve_host(host_version)
        extension = self.resolve_extension(name, module_version)
        store = LinkStore(registry_root_for(host.base_path))
        return ResolvedExtension(
            host=host,
            extension=extension,
            registry_root=store.root,
            link_path=store.link_path(extension.name)
        )

    def list_candidates(self, name: str, module_version: Optional[str] = None) -> List[ModuleCandidate]:
        """Candidates for an extension in the order the resolver considers them."""
        validate_module_name(name)
        return filter_candidates(self.extension_catalog.find(name), module_version)

    # --- Registry operations ---

    def get_extension_module(
        self,
        name: Optional[str] = None,
        host_version: Optional[str] = None
    ) -> List[LinkRecord]:
        """
        List enabled extensions recorded for the host installation.

        Args:
            name: Only return the record with this name (case-insensitive)
            host_version: Optional host version pattern; selects which host
                installation's registry root is read

        Returns:
            Link records, empty when nothing matches
        """
        host = self.resolve_host(host_version)
        store = LinkStore(registry_root_for(host.base_path))

        records = []
        for record_name, record in store.read_all():
            if name is not None and record_name.casefold() != name.casefold():
                continue
            records.append(record)
        return records

    def enable_extension_module(
        self,
        name: str,
        module_version: Optional[str] = None,
        host_version: Optional[str] = None
    ) -> LinkRecord:
        """
        Record the resolved extension as enabled for the resolved host.

        Raises:
            HostNotFoundError / ExtensionNotFoundError: If resolution fails
            AlreadyEnabledError: If a link record already exists; the
                existing record is left untouched
            LinkStoreError: On filesystem failure
        """
        resolved = self.resolve_extension_module(name, module_version, host_version)
        store = LinkStore(resolved.registry_root)
        record = resolved.to_record()

        # Pre-check gives a clear error early; write() still refuses to
        # overwrite if another process links the file in between.
        if store.exists(record.name):
            raise AlreadyEnabledError(
                f"Extension module '{record.name}' is already enabled for host {resolved.host.version}"
            )

        store.ensure_root()
        try:
            store.write(record)
        except LinkExistsError as e:
            raise AlreadyEnabledError(
                f"Extension module '{record.name}' is already enabled for host {resolved.host.version}"
            ) from e

        logger.info(
            f"Enabled extension module '{record.name}' {record.version} ({record.path}) "
            f"for {resolved.host.name} {resolved.host.version}"
        )
        return record

    def disable_extension_module(
        self,
        name: str,
        module_version: Optional[str] = None,
        host_version: Optional[str] = None
    ) -> LinkRecord:
        """
        Remove the link record of an enabled extension.

        The extension is resolved first so that a name which does not map to
        any installation is rejected before anything is removed.

        Raises:
            HostNotFoundError / ExtensionNotFoundError: If resolution fails
            NotEnabledError: If no link record exists for the extension
            LinkStoreError: On filesystem failure
        """
        resolved = self.resolve_extension_module(name, module_version, host_version)
        store = LinkStore(resolved.registry_root)
        extension_name = resolved.extension.name

        not_enabled = f"Extension module '{extension_name}' is not enabled for host {resolved.host.version}"
        try:
            record = store.read(extension_name)
        except LinkNotFoundError as e:
            raise NotEnabledError(not_enabled) from e
        except LinkStoreError as e:
            # An unreadable record can still be removed
            logger.warning(f"Removing unreadable link record: {e}")
            record = resolved.to_record()

        try:
            store.delete(extension_name)
        except LinkNotFoundError as e:
            raise NotEnabledError(not_enabled) from e

        logger.info(
            f"Disabled extension module '{record.name}' {record.version} "
            f"for {resolved.host.name} {resolved.host.version}"
        )
        return record
