"""Core module exports."""

from metadiff.core.errors import (
    ConfigError,
    DuplicateKeyError,
    ErrorCode,
    LoadError,
    MetadiffError,
)
from metadiff.core.logging import (
    clear_run_id,
    configure_logging,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "DuplicateKeyError",
    "ErrorCode",
    "LoadError",
    "MetadiffError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_run_id",
    "set_run_id",
]
