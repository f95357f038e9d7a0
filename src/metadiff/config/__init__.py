"""Config module exports."""

from metadiff.config.loader import load_config
from metadiff.config.models import (
    DiffConfig,
    DiscoveryConfig,
    LoggingConfig,
    MetadiffConfig,
    OutputConfig,
)

__all__ = [
    "load_config",
    "MetadiffConfig",
    "DiffConfig",
    "DiscoveryConfig",
    "LoggingConfig",
    "OutputConfig",
]
