"""metadiff CLI - compare the declared API surface of two module builds."""

from pathlib import Path

import click
import structlog
from pydantic import ValidationError

from metadiff import __version__
from metadiff.config import DiffConfig, DiscoveryConfig, MetadiffConfig, load_config
from metadiff.core.errors import ConfigError, DuplicateKeyError, LoadError
from metadiff.core.logging import clear_run_id, configure_logging, set_run_id
from metadiff.diff import diff_directories, diff_modules
from metadiff.report import Reporter

log = structlog.get_logger(__name__)


def _apply_overrides(
    config: MetadiffConfig,
    *,
    extensions: tuple[str, ...],
    recursive: bool | None,
    jobs: int | None,
    duplicates: str | None,
    no_color: bool,
) -> MetadiffConfig:
    """Layer command-line options over the loaded configuration."""
    try:
        discovery = DiscoveryConfig(
            extensions=list(extensions) or config.discovery.extensions,
            recursive=config.discovery.recursive if recursive is None else recursive,
        )
        diff = DiffConfig(
            max_workers=config.diff.max_workers if jobs is None else jobs,
            duplicate_keys=duplicates or config.diff.duplicate_keys,
        )
    except ValidationError as e:
        err = e.errors()[0]
        raise click.BadParameter(err["msg"]) from e
    output = config.output.model_copy(update={"color": config.output.color and not no_color})
    return config.model_copy(update={"discovery": discovery, "diff": diff, "output": output})


@click.command()
@click.version_option(version=__version__, prog_name="metadiff")
@click.argument("original", type=click.Path(exists=True, path_type=Path))
@click.argument("changed", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--ext",
    "extensions",
    multiple=True,
    help="Module file extension in directory mode (repeatable). Default: dll",
)
@click.option(
    "--recursive/--no-recursive",
    default=None,
    help="Descend into subdirectories in directory mode.",
)
@click.option("-j", "--jobs", type=int, default=None, help="Module pairs diffed in parallel.")
@click.option(
    "--duplicates",
    type=click.Choice(["suffix", "error"]),
    default=None,
    help="Handling of change records that render to the same key.",
)
@click.option("--no-color", is_flag=True, help="Disable colored output.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(
    original: Path,
    changed: Path,
    extensions: tuple[str, ...],
    recursive: bool | None,
    jobs: int | None,
    duplicates: str | None,
    no_color: bool,
    config_path: Path | None,
    verbose: bool,
) -> None:
    """Report added, removed and modified types and members between two builds.

    ORIGINAL and CHANGED must both be module files or both be directories.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    set_run_id()
    click.get_current_context().call_on_close(clear_run_id)

    config = _apply_overrides(
        config,
        extensions=extensions,
        recursive=recursive,
        jobs=jobs,
        duplicates=duplicates,
        no_color=no_color,
    )

    original = original.resolve()
    changed = changed.resolve()
    if original.is_dir() != changed.is_dir():
        raise click.UsageError("paths must be either both directories or both files")

    reporter = Reporter(color=config.output.color)

    if not original.is_dir():
        reporter.file_header(original.name)
        try:
            change_set = diff_modules(
                original, changed, duplicate_policy=config.diff.duplicate_keys
            )
        except (LoadError, DuplicateKeyError) as e:
            log.error("diff_failed", error=e.error_name, message=e.message)
            raise click.ClickException(str(e)) from e
        reporter.change_set(change_set)
        return

    result = diff_directories(
        original,
        changed,
        extensions=config.discovery.extensions,
        recursive=config.discovery.recursive,
        max_workers=config.diff.max_workers,
        duplicate_policy=config.diff.duplicate_keys,
        on_result=reporter.pair_result,
    )
    reporter.summary(result.summary)


if __name__ == "__main__":
    cli()
