"""Allow ``python -m metadiff``."""

from metadiff.cli.main import cli

if __name__ == "__main__":
    cli()
