"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Command-line options, then direct kwargs to load_config()
2. Environment variables (METADIFF__SECTION__KEY)
3. Explicit YAML file (--config)
4. Global YAML (~/.config/metadiff/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    METADIFF__<SECTION>__<KEY>=<VALUE>

Examples:
    METADIFF__LOGGING__LEVEL=DEBUG
    METADIFF__DISCOVERY__RECURSIVE=true
    METADIFF__DIFF__MAX_WORKERS=4
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from metadiff.core.formatting import normalize_extension
from metadiff.diff.models import DuplicatePolicy

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        METADIFF__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Diff output goes to stdout; logs go to the outputs below.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DiscoveryConfig(BaseModel):
    """Module discovery in directory mode.

    Env vars:
        METADIFF__DISCOVERY__EXTENSIONS: JSON list, e.g. '["dll", "exe"]'
        METADIFF__DISCOVERY__RECURSIVE: Descend into subdirectories
    """

    extensions: list[str] = Field(
        default_factory=lambda: ["dll"],
        description="File extensions treated as modules.",
    )
    recursive: bool = Field(
        default=False,
        description="Descend into subdirectories. Off by default: only the top level "
        "of each directory is compared.",
    )

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        normalized = [normalize_extension(ext) for ext in v]
        if not normalized or not all(normalized):
            raise ValueError("At least one non-empty extension is required")
        return list(dict.fromkeys(normalized))


class DiffConfig(BaseModel):
    """Diff engine configuration.

    Env vars:
        METADIFF__DIFF__MAX_WORKERS: Parallel module-pair workers
        METADIFF__DIFF__DUPLICATE_KEYS: suffix | error
    """

    max_workers: int = Field(
        default=1,
        description="Module pairs diffed in parallel. Output order is unaffected.",
    )
    duplicate_keys: DuplicatePolicy = Field(
        default="suffix",
        description="What to do when two change records render to the same key: "
        "'suffix' appends an ordinal (#2, #3...), 'error' aborts the module.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class OutputConfig(BaseModel):
    """Console output configuration.

    Env vars:
        METADIFF__OUTPUT__COLOR: Colorize diff output
    """

    color: bool = Field(default=True, description="Colorize diff output.")


class MetadiffConfig(BaseModel):
    """Root configuration for metadiff."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
