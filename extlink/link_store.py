"""
Link Store - Durable Record of Enabled Extensions

Each enabled extension is a small JSON document named '<Name>.extlnk' inside
the registry root ('<host base path>/EXT'). The file name is authoritative for
the extension name; the document only carries Path and Version.
"""

import errno
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional, Tuple

from pydantic import ValidationError

from extlink.core.errors import LinkExistsError, LinkNotFoundError, LinkStoreError
from extlink.core.models import LinkRecord, validate_module_name

logger = logging.getLogger(__name__)

REGISTRY_DIRNAME = "EXT"
LINK_SUFFIX = ".extlnk"

# os.link failures that mean "no hard links on this filesystem"
_NO_HARDLINK_ERRNOS = {errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP, errno.ENOSYS}


def registry_root_for(host_base_path: str) -> Path:
    """Location of the registry root for a host installation."""
    return Path(host_base_path) / REGISTRY_DIRNAME


class LinkStore:
    """Directory of link records, one file per extension name."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def link_path(self, name: str) -> Path:
        validate_module_name(name)
        return self.root / f"{name}{LINK_SUFFIX}"

    def ensure_root(self) -> None:
        """Create the registry root if it does not exist yet."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LinkStoreError(f"Cannot create registry root {self.root}: {e}") from e

    def find_link(self, name: str) -> Optional[Path]:
        """
        Path of the existing link file for a name, ignoring case.

        Names that differ only in case share one record, also on
        case-sensitive filesystems.
        """
        path = self.link_path(name)
        if path.is_file():
            return path
        if not self.root.is_dir():
            return None

        folded = name.casefold()
        for candidate in sorted(self.root.glob(f"*{LINK_SUFFIX}")):
            if candidate.name[:-len(LINK_SUFFIX)].casefold() == folded and candidate.is_file():
                return candidate
        return None

    def exists(self, name: str) -> bool:
        return self.find_link(name) is not None

    def read(self, name: str) -> LinkRecord:
        """
        Load the link record for one extension.

        Raises:
            LinkNotFoundError: If no link file exists for the name
            LinkStoreError: If the file cannot be read or parsed
        """
        path = self.find_link(name)
        if path is None:
            raise LinkNotFoundError(f"No link record for '{name}' in {self.root}")
        return _load_record(path, path.name[:-len(LINK_SUFFIX)])

    def read_all(self) -> Iterator[Tuple[str, LinkRecord]]:
        """
        Yield (name, record) for every link file in the registry root.

        Order follows the directory listing. Unreadable link files are logged
        and skipped.
        """
        if not self.root.is_dir():
            return

        for path in self.root.glob(f"*{LINK_SUFFIX}"):
            if not path.is_file():
                continue
            name = path.name[:-len(LINK_SUFFIX)]
            try:
                yield name, _load_record(path, name)
            except LinkStoreError as e:
                logger.warning(f"Skipping link file: {e}")

    def write(self, record: LinkRecord) -> Path:
        """
        Persist a new link record.

        The document is written to a temporary file first and then hard
        linked into place. Linking fails when the target exists, so a record
        is never overwritten and never left half written. On filesystems
        without hard links the file is created exclusively instead and
        removed again if writing it fails.

        Raises:
            LinkExistsError: If a record for the name (in any case) is already present
            LinkStoreError: On any other filesystem failure
        """
        target = self.link_path(record.name)
        payload = json.dumps(record.to_document(), indent=2)
        exists_message = f"Link record for '{record.name}' already exists"

        existing = self.find_link(record.name)
        if existing is not None:
            raise LinkExistsError(f"{exists_message}: {existing}")

        try:
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{record.name}.", suffix=".tmp")
        except OSError as e:
            raise LinkStoreError(f"Cannot write to registry root {self.root}: {e}") from e

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            # mkstemp creates 0600; the host may read records as another user
            os.chmod(tmp, 0o666 & ~_current_umask())
            os.link(tmp, target)
        except FileExistsError:
            raise LinkExistsError(f"{exists_message}: {target}") from None
        except OSError as e:
            if e.errno not in _NO_HARDLINK_ERRNOS:
                raise LinkStoreError(f"Cannot write link record {target}: {e}") from e
            logger.debug(f"Hard links unavailable in {self.root} ({e}), using exclusive create")
            _write_exclusive(target, payload, exists_message)
        finally:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass

        return target

    def delete(self, name: str) -> None:
        """
        Remove the link record for one extension.

        Raises:
            LinkNotFoundError: If no link file exists for the name
            LinkStoreError: If the file cannot be removed
        """
        path = self.find_link(name)
        if path is None:
            raise LinkNotFoundError(f"No link record for '{name}' in {self.root}")
        try:
            path.unlink()
        except FileNotFoundError:
            raise LinkNotFoundError(f"No link record for '{name}' in {self.root}") from None
        except OSError as e:
            raise LinkStoreError(f"Cannot remove link record {path}: {e}") from e


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _write_exclusive(target: Path, payload: str, exists_message: str) -> None:
    """Create target with mode 'x' and remove it again if the write fails."""
    try:
        f = open(target, 'x', encoding='utf-8')
    except FileExistsError:
        raise LinkExistsError(f"{exists_message}: {target}") from None
    except OSError as e:
        raise LinkStoreError(f"Cannot write link record {target}: {e}") from e

    try:
        with f:
            f.write(payload)
    except OSError as e:
        try:
            os.unlink(target)
        except FileNotFoundError:
            pass
        raise LinkStoreError(f"Cannot write link record {target}: {e}") from e


def _load_record(path: Path, name: str) -> LinkRecord:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise LinkStoreError(f"Cannot read link record {path}: {e}") from e

    if not isinstance(data, dict):
        raise LinkStoreError(f"Link record {path} is not a JSON object")

    try:
        return LinkRecord.model_validate({**data, "name": name})
    except ValidationError as e:
        raise LinkStoreError(f"Invalid link record {path}: {e}") from e
