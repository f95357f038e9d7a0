"""Module readers: turn an on-disk module into a SymbolModel.

Readers are selected by file suffix. Built-in registrations:

- ``.dll``, ``.exe``, ``.winmd``: CLR assemblies (dnfile)
- ``.yaml``, ``.yml``, ``.json``: symbol-model manifests
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

import structlog

from metadiff.core.errors import LoadError
from metadiff.symbols.models import SymbolModel
from metadiff.symbols.readers.clr import read_assembly
from metadiff.symbols.readers.manifest import read_manifest

log = structlog.get_logger(__name__)

ModuleReader = Callable[[Path, Sequence[Path]], SymbolModel]

_READERS: dict[str, ModuleReader] = {}


def register_reader(suffixes: Iterable[str], reader: ModuleReader) -> None:
    """Register ``reader`` for each suffix (``".dll"`` or ``"dll"``)."""
    for suffix in suffixes:
        _READERS["." + suffix.lower().lstrip(".")] = reader


def reader_for(path: Path) -> ModuleReader | None:
    return _READERS.get(path.suffix.lower())


def load_module(path: Path, resolution_roots: Sequence[Path]) -> SymbolModel:
    """Load one module using the reader registered for its suffix.

    Args:
        path: Module file.
        resolution_roots: Directories searched for referenced modules.

    Raises:
        LoadError: No reader for the suffix, or the reader failed.
    """
    reader = reader_for(path)
    if reader is None:
        raise LoadError.unsupported_format(str(path))
    model = reader(path, resolution_roots)
    log.debug("module_loaded", path=str(path), module=model.name, types=len(model.types))
    return model


register_reader((".dll", ".exe", ".winmd"), read_assembly)
register_reader((".yaml", ".yml", ".json"), read_manifest)

__all__ = [
    "ModuleReader",
    "load_module",
    "reader_for",
    "register_reader",
]
