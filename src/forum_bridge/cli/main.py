"""
Main CLI entry point for Forum Bridge.

This module provides the command-line interface for importing forums and
CMS sites into the target discussion platform.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from forum_bridge import __version__
from forum_bridge.cli.commands import config as config_commands
from forum_bridge.cli.commands import importing as import_commands
from forum_bridge.cli.commands import status as status_commands
from forum_bridge.cli.commands import topics as topic_commands
from forum_bridge.cli.context import BridgeContext
from forum_bridge.utils.logging import configure_logging, get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="forum-bridge")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
    envvar="FORUM_BRIDGE_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Console logging level (overrides logging.level)",
    envvar="FORUM_BRIDGE_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Log file (overrides logging.file)",
    envvar="FORUM_BRIDGE_LOG_FILE",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    log_level: str | None,
    log_file: Path | None,
) -> None:
    """Forum Bridge - Import forums and CMS sites into a discussion platform.

    Imports are re-runnable: anything already imported is skipped, so an
    interrupted run is resumed by running the same command again.

    Examples:

        # Validate configuration
        forum-bridge config validate --config config.yaml

        # Import a Drupal site
        forum-bridge import drupal --config config.yaml

        # Close topics without a post in the last 60 days
        forum-bridge close-inactive --days 60 --config config.yaml

        # Show what has been imported so far
        forum-bridge status --config config.yaml
    """
    # Console only until the configuration supplies the log file
    configure_logging(level=log_level or "WARNING")

    ctx.obj = BridgeContext(
        config_path=config,
        log_level=log_level.upper() if log_level else None,
        log_file=log_file,
    )
    ctx.call_on_close(ctx.obj.cleanup)

    logger.debug(
        "cli_initialized",
        config=str(config) if config else None,
        log_level=log_level,
    )


# Register command groups
cli.add_command(config_commands.config)
cli.add_command(import_commands.import_group)

# Register standalone commands
cli.add_command(topic_commands.finalize)
cli.add_command(topic_commands.close_inactive)
cli.add_command(status_commands.status)


def main() -> int:
    """Main entry point for CLI."""
    try:
        # Non-standalone click returns the exit code of click.exceptions.Exit
        rv = cli(standalone_mode=False)
        return rv if isinstance(rv, int) else 0
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except Exception as e:
        logger.error("unexpected_error", error=str(e), exc_info=True)
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
