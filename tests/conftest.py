"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

# Insert local src directory at the beginning of sys.path
# This ensures that the local metadiff package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of metadiff modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("metadiff"):
        del sys.modules[module_name]


ManifestWriter = Callable[..., Path]


@pytest.fixture
def write_manifest() -> ManifestWriter:
    """Write a YAML symbol manifest and return its path.

    Usage: ``write_manifest(tmp_path / "a.yaml", [{"full_name": "Foo"}])``
    """

    def _write(
        path: Path,
        types: list[dict[str, Any]],
        *,
        module: str | None = None,
        references: list[str] | None = None,
    ) -> Path:
        doc: dict[str, Any] = {"types": types}
        if module is not None:
            doc["module"] = module
        if references is not None:
            doc["references"] = references
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(doc, sort_keys=False))
        return path

    return _write
