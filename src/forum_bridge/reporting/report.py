"""Import run statistics and the end-of-run summary."""

from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.table import Table


@dataclass
class ImportStats:
    """Counters for one entity kind."""

    kind: str
    created: int = 0
    skipped: int = 0
    failed: int = 0
    adopted: int = 0

    @property
    def processed(self) -> int:
        return self.created + self.skipped + self.failed

    def add(self, other: "ImportStats") -> "ImportStats":
        self.created += other.created
        self.skipped += other.skipped
        self.failed += other.failed
        self.adopted += other.adopted
        return self


@dataclass
class ImportSummary:
    """Aggregated results of an import run."""

    users: ImportStats = field(default_factory=lambda: ImportStats("users"))
    categories: ImportStats = field(default_factory=lambda: ImportStats("categories"))
    posts: ImportStats = field(default_factory=lambda: ImportStats("posts"))
    failed_users: list[Any] = field(default_factory=list)
    topics_bumped: int = 0
    admin_created: bool = False

    @property
    def total_created(self) -> int:
        return self.users.created + self.categories.created + self.posts.created

    def to_dict(self) -> dict[str, Any]:
        return {
            stats.kind: {
                "created": stats.created,
                "skipped": stats.skipped,
                "failed": stats.failed,
                "adopted": stats.adopted,
            }
            for stats in (self.users, self.categories, self.posts)
        } | {"failed_users": len(self.failed_users), "topics_bumped": self.topics_bumped}


def render_summary(summary: ImportSummary, console: Console | None = None) -> None:
    """Print the created/skipped/failed table and the failed user list."""
    if console is None:
        console = Console()

    table = Table(title="Import Summary")
    table.add_column("Entity")
    table.add_column("Created", justify="right")
    table.add_column("Adopted", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Failed", justify="right")

    for stats in (summary.users, summary.categories, summary.posts):
        table.add_row(
            stats.kind.title(),
            f"{stats.created:,}",
            f"{stats.adopted:,}",
            f"{stats.skipped:,}",
            f"{stats.failed:,}",
        )

    console.print(table)
    console.print(f"Topics with refreshed activity: {summary.topics_bumped:,}")

    if summary.failed_users:
        failed = Table(title=f"Failed Users ({len(summary.failed_users)})")
        failed.add_column("Import ID")
        failed.add_column("Username")
        failed.add_column("Email")
        for user in summary.failed_users:
            failed.add_row(
                str(getattr(user, "id", "")),
                str(getattr(user, "username", None) or ""),
                str(getattr(user, "email", None) or ""),
            )
        console.print(failed)
