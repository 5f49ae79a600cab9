import sys
import os

# Add the project root directory to sys.path to allow imports from 'extlink'
# This mimics setting PYTHONPATH=. when running from the project root
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from extlink.catalog import ChainedCatalog, InstalledModuleCatalog, LoadedModuleCatalog
from extlink.core.registry import ExtensionModuleRegistry


def install_module(root, name, version, manifest=None):
    """Create <root>/<name>/<version>/module.yaml and return the version directory."""
    version_dir = root / name / version
    version_dir.mkdir(parents=True, exist_ok=True)
    text = manifest if manifest is not None else f'name: {name}\nversion: "{version}"\n'
    (version_dir / "module.yaml").write_text(text)
    return version_dir


@pytest.fixture
def modules_root(tmp_path):
    root = tmp_path / "modules"
    root.mkdir()
    return root


@pytest.fixture
def host_dir(modules_root):
    return install_module(modules_root, "Host", "3.0")


@pytest.fixture
def registry(modules_root, host_dir):
    installed = InstalledModuleCatalog([str(modules_root)])
    return ExtensionModuleRegistry(
        host_name="Host",
        host_catalog=ChainedCatalog(LoadedModuleCatalog(), installed),
        extension_catalog=installed
    )
