"""Progress lines for import streams.

Each processed row rewrites a single tqdm status line on stdout of the
form ``current / total (percent%)``.
"""

import sys
from typing import IO

from tqdm import tqdm

STATUS_FORMAT = "{n:9d} / {total} ({percentage:5.1f}%)"


def format_status(current: int, total: int) -> str:
    """Render one status line. A zero total reads as 0%."""
    return tqdm.format_meter(current, total, 0, bar_format=STATUS_FORMAT)


class ProgressPrinter:
    """Prints one tqdm status line per stream.

    A stream's line stays open across batches as long as its total is
    unchanged. Disabled printers swallow every call, which keeps tests and
    CI logs quiet.
    """

    def __init__(self, enable: bool = True, file: IO[str] | None = None):
        """Initialize progress printer.

        Args:
            enable: Whether to print anything at all
            file: Stream to write to (stdout when None)
        """
        self.enable = enable
        self.file = file
        self.bar: tqdm | None = None

    def _stream(self) -> IO[str]:
        return self.file or sys.stdout

    def print_status(self, current: int, total: int) -> None:
        """Show ``current`` of ``total`` rows processed."""
        if self.bar is None or self.bar.total != total:
            self.finish_line()
            self.bar = tqdm(
                total=total,
                initial=current,
                file=self._stream(),
                disable=not self.enable,
                bar_format=STATUS_FORMAT,
                mininterval=0,
                miniters=1,
                leave=True,
            )
            return
        self.bar.update(current - self.bar.n)

    def announce(self, message: str) -> None:
        """Print a heading such as 'creating users' on its own line."""
        if not self.enable:
            return
        self.finish_line()
        tqdm.write(message, file=self._stream())

    def finish_line(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None
