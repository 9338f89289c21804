"""Source database client for extracting forum/CMS rows.

This client runs arbitrary SQL against the source database and returns
rows as read-only mappings, with support for count queries and
LIMIT/OFFSET pagination.
"""

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from forum_bridge.client.exceptions import SourceConnectionError, SourceError
from forum_bridge.config import SourceConfig
from forum_bridge.database import create_database_engine, validate_database_connection
from forum_bridge.migration.batches import Batch, iter_batches
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)

Row = Mapping[str, Any]


class SourceClient:
    """Client for the source forum/CMS database."""

    def __init__(self, engine: Engine):
        """Initialize source client.

        Args:
            engine: SQLAlchemy engine bound to the source database
        """
        self.engine = engine
        logger.info("source_client_initialized", dialect=engine.dialect.name)

    @classmethod
    def from_config(cls, config: SourceConfig) -> "SourceClient":
        """Create a client and verify the source database is reachable.

        Raises:
            SourceConnectionError: If no connection can be established
        """
        engine = create_database_engine(config.url, echo=config.echo)
        if not validate_database_connection(engine):
            engine.dispose()
            raise SourceConnectionError(
                f"Cannot connect to source database ({engine.url.render_as_string()})"
            )
        return cls(engine)

    def query(self, sql: str, **params: Any) -> list[Row]:
        """Run a query and return every row.

        Args:
            sql: SQL text with ``:name`` placeholders
            **params: Bound parameter values

        Raises:
            SourceError: If the query fails
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(sql), params)
                return [row for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error("source_query_failed", error=str(e))
            raise SourceError(f"Source query failed: {e}") from e

    def count(self, sql: str, **params: Any) -> int:
        """Run an aggregate query and return the first column of its first row."""
        try:
            with self.engine.connect() as conn:
                value = conn.execute(text(sql), params).scalar()
        except SQLAlchemyError as e:
            logger.error("source_count_failed", error=str(e))
            raise SourceError(f"Source count query failed: {e}") from e
        return int(value or 0)

    def fetch_page(self, sql: str, limit: int, offset: int, **params: Any) -> Sequence[Row]:
        """Fetch one page of a query by appending LIMIT/OFFSET to it.

        Row order is whatever ``sql`` specifies.
        """
        paged_sql = f"{sql.rstrip().rstrip(';')} LIMIT :_limit OFFSET :_offset"
        logger.debug("fetching_page", limit=limit, offset=offset)
        return self.query(paged_sql, _limit=limit, _offset=offset, **params)

    def paginate(self, sql: str, batch_size: int, **params: Any) -> Iterator[Batch]:
        """Stream a query in pages of ``batch_size`` rows until a page is empty."""
        return iter_batches(
            lambda limit, offset: self.fetch_page(sql, limit, offset, **params),
            batch_size,
        )

    def close(self) -> None:
        self.engine.dispose()
