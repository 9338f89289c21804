"""
Import status command.

Shows what a new run would consider already imported.
"""

import click

from forum_bridge.cli.context import BridgeContext
from forum_bridge.cli.decorators import handle_errors, pass_context, requires_config
from forum_bridge.cli.utils import print_table
from forum_bridge.migration.identity_map import EntityKind, IdentityMap


@click.command(name="status")
@pass_context
@requires_config
@handle_errors
def status(ctx: BridgeContext) -> None:
    """Show target entity counts and rehydrated identity map sizes."""
    target = ctx.target_client
    identity_map = IdentityMap.rehydrate(target)

    rows = [
        ["Users", target.count("user"), identity_map.size(EntityKind.USER)],
        ["Categories", target.count("category"), identity_map.size(EntityKind.CATEGORY)],
        ["Topics", target.count("topic"), "-"],
        ["Posts", target.count("post"), identity_map.size(EntityKind.POST)],
    ]
    print_table("Import Status", ["Entity", "In target", "Imported"], rows)
