"""
CLI context for Forum Bridge.

This module provides the context object that is passed to all CLI commands,
containing configuration and lazily created database clients.
"""

from dataclasses import dataclass, field
from pathlib import Path

from forum_bridge.client.exceptions import ConfigurationError
from forum_bridge.client.source_client import SourceClient
from forum_bridge.client.target_client import ForumTargetClient
from forum_bridge.config import BridgeConfig, load_config_from_yaml
from forum_bridge.database import create_database_engine
from forum_bridge.reporting.progress import ProgressPrinter
from forum_bridge.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@dataclass
class BridgeContext:
    """
    Context object for CLI commands.

    Attributes:
        config_path: Path to configuration file
        log_level: Console log level given on the command line, if any
        log_file: Log file given on the command line, if any
    """

    config_path: Path | None = None
    log_level: str | None = None
    log_file: Path | None = None

    # Lazy-loaded attributes
    _config: BridgeConfig | None = field(default=None, init=False, repr=False)
    _source_client: SourceClient | None = field(default=None, init=False, repr=False)
    _target_client: ForumTargetClient | None = field(default=None, init=False, repr=False)

    @property
    def config(self) -> BridgeConfig:
        """Get or load the configuration, then apply its logging section."""
        if self._config is None:
            if self.config_path is None:
                raise ConfigurationError(
                    "Configuration file path not provided. "
                    "Use --config option or set FORUM_BRIDGE_CONFIG environment variable."
                )

            logger.debug("loading_configuration", config_path=str(self.config_path))
            try:
                self._config = load_config_from_yaml(self.config_path)
            except (FileNotFoundError, ValueError) as e:
                raise ConfigurationError(str(e)) from e

            logging_config = self._config.logging
            configure_logging(
                level=self.log_level or logging_config.level,
                log_format=logging_config.format,
                log_file=str(self.log_file) if self.log_file else logging_config.file,
                file_level=logging_config.file_level,
            )
            logger.debug("configuration_loaded")

        return self._config

    @property
    def source_client(self) -> SourceClient:
        """Get or create the source database client."""
        if self._source_client is None:
            self._source_client = SourceClient.from_config(self.config.source)
        return self._source_client

    @property
    def target_client(self) -> ForumTargetClient:
        """Get or create the target platform client, creating its schema if needed."""
        if self._target_client is None:
            target_config = self.config.target
            engine = create_database_engine(target_config.url, echo=target_config.echo)
            self._target_client = ForumTargetClient(engine, rate_limit=target_config.rate_limit)
            self._target_client.init_schema()
        return self._target_client

    def progress(self, enable: bool | None = None) -> ProgressPrinter:
        if enable is None:
            enable = self.config.importer.progress
        return ProgressPrinter(enable=enable)

    def cleanup(self) -> None:
        """Dispose of database engines."""
        if self._source_client is not None:
            self._source_client.close()
            self._source_client = None

        if self._target_client is not None:
            self._target_client.close()
            self._target_client = None

    def __enter__(self) -> "BridgeContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()
