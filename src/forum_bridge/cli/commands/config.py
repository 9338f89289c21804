"""
Configuration management commands.

This module provides commands for validating configuration files.
"""

import click
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from forum_bridge.cli.context import BridgeContext
from forum_bridge.cli.decorators import handle_errors, pass_context, requires_config
from forum_bridge.cli.utils import echo_error, echo_info, echo_success, print_table
from forum_bridge.client.exceptions import SourceConnectionError
from forum_bridge.config import BridgeConfig
from forum_bridge.database import create_database_engine, validate_database_connection


@click.group(name="config")
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="validate")
@click.option(
    "--check-connectivity",
    is_flag=True,
    help="Test connectivity to the source and target databases",
)
@pass_context
@requires_config
@handle_errors
def validate(ctx: BridgeContext, check_connectivity: bool) -> None:
    """Validate the configuration file.

    Examples:

        # Basic validation
        forum-bridge config validate --config config.yaml

        # Validate and test connectivity
        forum-bridge config validate --config config.yaml --check-connectivity
    """
    echo_info(f"Validating configuration: {ctx.config_path}")

    click.echo()
    _display_config_summary(ctx.config)

    if check_connectivity:
        click.echo()
        echo_info("Testing connectivity...")
        _test_connectivity(ctx.config)

    click.echo()
    echo_success("Configuration is valid!")


def _display_config_summary(config: BridgeConfig) -> None:
    admin = config.importer.admin
    rows = [
        ["Source URL", _mask_password(config.source.url)],
        ["Target URL", _mask_password(config.target.url)],
        ["Batch Size", config.importer.batch_size],
        ["Progress", "on" if config.importer.progress else "off"],
        ["Admin", f"{admin.username} <{admin.email}>" if admin else "none"],
        ["Drupal Vocabulary", config.drupal.category_vocabulary_id],
        ["Blog Category", config.drupal.blog_category],
        ["Log Level", config.logging.level],
        ["Log File", config.logging.file or "none"],
    ]

    print_table("Configuration Summary", ["Setting", "Value"], rows)


def _mask_password(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url


def _test_connectivity(config: BridgeConfig) -> None:
    for label, db_config in (("source", config.source), ("target", config.target)):
        engine = create_database_engine(db_config.url)
        try:
            reachable = validate_database_connection(engine)
        finally:
            engine.dispose()

        if reachable:
            echo_success(f"Connected to {label} database")
        else:
            echo_error(f"Cannot connect to {label} database")
            if label == "source":
                raise SourceConnectionError("Cannot connect to source database")
            raise click.exceptions.Exit(1)
