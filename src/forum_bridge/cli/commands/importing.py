"""
Import commands.

One subcommand per supported source system. Every run is re-runnable:
entities already present in the target are skipped.
"""

import click

from forum_bridge.cli.context import BridgeContext
from forum_bridge.cli.decorators import handle_errors, pass_context, requires_config
from forum_bridge.cli.utils import console, echo_info, echo_success, echo_warning
from forum_bridge.reporting.report import render_summary
from forum_bridge.sources.drupal import DrupalImportScript
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)


@click.group(name="import")
def import_group() -> None:
    """Import a forum or CMS into the target platform."""
    pass


@import_group.command(name="drupal")
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=None,
    help="Rows per source page (overrides importer.batch_size)",
)
@click.option(
    "--progress/--no-progress",
    default=None,
    help="Print progress lines (overrides importer.progress)",
)
@pass_context
@requires_config
@handle_errors
def drupal(ctx: BridgeContext, batch_size: int | None, progress: bool | None) -> None:
    """Import users, categories, blog and forum topics and comments from Drupal 7.

    Examples:

        forum-bridge import drupal --config config.yaml

        forum-bridge import drupal --config config.yaml --batch-size 500 --no-progress
    """
    config = ctx.config
    effective_batch_size = batch_size or config.importer.batch_size

    echo_info("Importing Drupal site")
    logger.info("drupal_import_requested", batch_size=effective_batch_size)

    script = DrupalImportScript(
        source=ctx.source_client,
        target=ctx.target_client,
        drupal_config=config.drupal,
        batch_size=effective_batch_size,
        progress=ctx.progress(progress),
        admin=config.importer.admin,
    )
    summary = script.perform()

    click.echo()
    render_summary(summary, console)

    if summary.failed_users:
        echo_warning(f"{len(summary.failed_users)} users could not be imported")
    echo_success(f"Import complete: {summary.total_created:,} entities created")
