"""Command line interface for the content studio."""

import asyncio
import json
from typing import IO

import click

from catalog_content.core.logging import configure_logging
from catalog_content.layout.classifier import classify, detect_markers, detect_sections
from catalog_content.layout.sections import LAYOUT_VOCABULARY_VERSION


@click.group()
def cli() -> None:
    """Catalog content studio commands."""
    configure_logging()


@cli.command("classify")
@click.argument("source", type=click.File("r"), default="-")
def classify_command(source: IO[str]) -> None:
    """Classify product HTML read from SOURCE (a file path, or - for stdin)."""
    html = source.read()
    result = classify(html)
    markers = detect_markers(html)
    click.echo(
        json.dumps(
            {
                "isNewLayout": result.is_new_layout,
                "contentCount": result.content_count,
                "sections": list(detect_sections(html)),
                "markers": {
                    "sku": markers.has_sku_marker,
                    "container": markers.has_container_marker,
                    "tabContent": markers.has_tab_content_marker,
                    "tabId": markers.has_tab_id_marker,
                    "dataSection": markers.has_data_section_marker,
                },
                "vocabularyVersion": LAYOUT_VOCABULARY_VERSION,
            },
            indent=2,
        )
    )


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("catalog_content.main:app", host=host, port=port, reload=reload)


@cli.command("cleanup-drafts")
def cleanup_drafts() -> None:
    """Delete expired drafts once."""
    from catalog_content.services.draft_cleanup import DraftCleanupService

    deleted = asyncio.run(DraftCleanupService().run_once())
    click.echo(f"Deleted {deleted} expired draft(s)")


@cli.command("refresh-status")
def refresh_status() -> None:
    """Re-check products with drafts or stale statuses."""
    from catalog_content.services.background import BackgroundRefreshProcessor

    result = asyncio.run(BackgroundRefreshProcessor().run())
    click.echo(
        f"Processed {result.processed_count} of {result.total_products} product(s), "
        f"{result.updated_count} changed"
    )


if __name__ == "__main__":
    cli()
