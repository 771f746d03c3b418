"""Entry point for ``python -m catalog_content``."""

from catalog_content.cli import cli

if __name__ == "__main__":
    cli()
