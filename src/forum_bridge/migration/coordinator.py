"""Import run coordination.

``ImportScript`` is the base class of every source-specific import. It
rehydrates the identity map, disables target throttling for the length of
the run, lets the subclass stream its entities through the importers and
finalizes topic activity once all posts are in place.
"""

from collections.abc import Generator, Sequence
from contextlib import contextmanager
from typing import Any

from forum_bridge.client.target_client import ForumTargetClient
from forum_bridge.migration.context import ImportContext
from forum_bridge.migration.finalizer import PostImportFinalizer
from forum_bridge.migration.identity_map import EntityKind, TopicPosition
from forum_bridge.migration.importer import (
    CategoryImporter,
    PostBatchResult,
    PostImporter,
    UserImporter,
)
from forum_bridge.migration.linker import ReplyLinker
from forum_bridge.migration.records import (
    CategoryAttributes,
    CategoryTransform,
    PostTransform,
    Row,
    UserTransform,
)
from forum_bridge.reporting.progress import ProgressPrinter
from forum_bridge.reporting.report import ImportStats, ImportSummary
from forum_bridge.utils.logging import get_logger, log_import_progress

logger = get_logger(__name__)


@contextmanager
def throttling_disabled(target: ForumTargetClient) -> Generator[None, None, None]:
    """Disable target rate limiting for the block and re-enable it on every exit."""
    target.disable_rate_limiting()
    try:
        yield
    finally:
        target.enable_rate_limiting()


class ImportScript:
    """Base class for source-specific import scripts.

    Subclasses implement ``execute`` and call ``create_users``,
    ``create_categories`` and ``create_posts`` from it.

    Usage:
        summary = DrupalImportScript(source, target, drupal_config).perform()
    """

    name = "base"

    def __init__(
        self,
        target: ForumTargetClient,
        progress: ProgressPrinter | None = None,
        batch_size: int = 1000,
    ):
        """Initialize import script.

        Args:
            target: Target platform client
            progress: Status line printer (silent when None)
            batch_size: Rows per source page for batched streams
        """
        self.target = target
        self.batch_size = batch_size
        self.progress = progress or ProgressPrinter(enable=False)
        self.context = ImportContext.rehydrate(target, self.progress)

        self.user_importer = UserImporter(self.context)
        self.category_importer = CategoryImporter(self.context)
        self.post_importer = PostImporter(self.context)
        self.linker = ReplyLinker(self.context.identity_map)
        self.finalizer = PostImportFinalizer(target, self.progress)

        self.summary = ImportSummary(failed_users=self.context.failed_users)

    @property
    def identity_map(self):
        return self.context.identity_map

    def perform(self) -> ImportSummary:
        """Run the whole import and return its summary."""
        logger.info("import_started", script=self.name, batch_size=self.batch_size)

        with throttling_disabled(self.target):
            self.execute()
            self.summary.topics_bumped = self.finalizer.update_topic_activity()

        self.progress.finish_line()
        logger.info("import_finished", script=self.name, **self.summary.to_dict())
        return self.summary

    def execute(self) -> None:
        raise NotImplementedError

    # Identity lookups for transforms

    def user_id_from_imported_user_id(self, import_id: Any) -> int | None:
        return self.identity_map.lookup(EntityKind.USER, import_id)

    def category_id_from_imported_category_id(self, import_id: Any) -> int | None:
        return self.identity_map.lookup(EntityKind.CATEGORY, import_id)

    def post_id_from_imported_post_id(self, import_id: Any) -> int | None:
        return self.identity_map.lookup(EntityKind.POST, import_id)

    def topic_lookup_from_imported_post_id(self, import_id: Any) -> TopicPosition | None:
        return self.linker.topic_lookup(import_id)

    # Entity streams

    def create_users(self, rows: Sequence[Row], transform: UserTransform) -> ImportStats:
        stats = self.user_importer.import_rows(rows, transform)
        self.summary.users.add(stats)
        return stats

    def create_categories(
        self, rows: Sequence[Row], transform: CategoryTransform
    ) -> ImportStats:
        stats = self.category_importer.import_rows(rows, transform)
        self.summary.categories.add(stats)
        return stats

    def create_category(self, attrs: CategoryAttributes, import_id: Any = None) -> int:
        return self.category_importer.create_category(attrs, import_id)

    def create_posts(
        self,
        rows: Sequence[Row],
        transform: PostTransform,
        total: int | None = None,
        offset: int = 0,
    ) -> PostBatchResult:
        result = self.post_importer.import_rows(rows, transform, total=total, offset=offset)
        self.summary.posts.add(ImportStats("posts", created=result.created, skipped=result.skipped))
        log_import_progress(
            logger,
            "posts",
            created=result.created,
            skipped=result.skipped,
            total=total if total is not None else len(rows),
            processed=offset + len(rows),
        )
        return result

    def create_admin(self, email: str, username: str) -> int | None:
        """Create the admin account. A failure is reported and the run continues."""
        try:
            admin_id = self.target.create_admin(
                email=email, username=self.target.suggest_username(username)
            )
        except Exception as e:
            self.progress.announce("Failed to create admin user")
            logger.error("admin_creation_failed", email=email, error=str(e))
            return None

        self.summary.admin_created = True
        return admin_id
