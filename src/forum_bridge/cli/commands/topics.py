"""
Topic maintenance commands.

These run against the target alone and can be repeated at any time.
"""

import click

from forum_bridge.cli.context import BridgeContext
from forum_bridge.cli.decorators import handle_errors, pass_context, requires_config
from forum_bridge.cli.utils import echo_success
from forum_bridge.migration.coordinator import throttling_disabled
from forum_bridge.migration.finalizer import PostImportFinalizer


@click.command(name="finalize")
@pass_context
@requires_config
@handle_errors
def finalize(ctx: BridgeContext) -> None:
    """Recompute every topic's bumped-at time from its posts."""
    target = ctx.target_client
    finalizer = PostImportFinalizer(target, ctx.progress())

    with throttling_disabled(target):
        updated = finalizer.update_topic_activity()

    echo_success(f"Updated activity of {updated:,} topics")


@click.command(name="close-inactive")
@click.option(
    "--days",
    type=click.IntRange(min=0),
    default=30,
    show_default=True,
    help="Close topics with no post in this many days",
)
@pass_context
@requires_config
@handle_errors
def close_inactive(ctx: BridgeContext, days: int) -> None:
    """Close open topics that have been inactive for more than DAYS days."""
    target = ctx.target_client
    finalizer = PostImportFinalizer(target, ctx.progress())

    with throttling_disabled(target):
        closed = finalizer.close_inactive_topics(days=days)

    echo_success(f"Closed {closed:,} inactive topics")
