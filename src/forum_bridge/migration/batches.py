"""Offset-paginated batch reading.

Source table sizes are not known up front, so rows are pulled one page
at a time. The generator ends on the first empty page; callers never
have to check for it themselves.
"""

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)

PageFetcher = Callable[[int, int], Sequence[Mapping[str, Any]]]


@dataclass(frozen=True)
class Batch:
    """One page of source rows."""

    index: int
    offset: int
    rows: Sequence[Mapping[str, Any]]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)


def iter_batches(fetch_page: PageFetcher, batch_size: int) -> Iterator[Batch]:
    """Yield pages from ``fetch_page(limit, offset)`` until one comes back empty.

    Page ``n`` is requested with ``offset = n * batch_size``. Each page is
    fully materialized by the fetcher and released by the caller before
    the next one is requested.

    Args:
        fetch_page: Callable returning the rows for ``(limit, offset)``
        batch_size: Rows per page

    Raises:
        ValueError: If batch_size is not positive
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    index = 0
    while True:
        offset = index * batch_size
        rows = fetch_page(batch_size, offset)
        if len(rows) == 0:
            logger.debug("batches_exhausted", pages=index, batch_size=batch_size)
            return
        yield Batch(index=index, offset=offset, rows=rows)
        index += 1
