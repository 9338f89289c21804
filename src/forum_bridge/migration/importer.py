"""Entity importers for users, categories and posts.

Each importer consumes a sequence of raw source rows plus a transform,
creates at most one target entity per import id and records the new
mapping in the run's identity map.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

from forum_bridge.client.exceptions import TargetError
from forum_bridge.client.target_client import CreatedPost
from forum_bridge.migration.context import ImportContext
from forum_bridge.migration.identity_map import IMPORT_ID_FIELD, EntityKind
from forum_bridge.migration.records import (
    CategoryAttributes,
    CategoryTransform,
    PostAttributes,
    PostTransform,
    Row,
    UserAttributes,
    UserTransform,
)
from forum_bridge.reporting.report import ImportStats
from forum_bridge.target.models import SYSTEM_USER_ID, TrustLevel
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Created:
    """A new target entity was created."""

    entity_id: int


@dataclass(frozen=True)
class AdoptedExisting:
    """Creation failed but an existing target entity was claimed instead."""

    entity_id: int


@dataclass(frozen=True)
class Failed:
    reason: str


UserCreationResult = Created | AdoptedExisting | Failed


class PostBatchResult(NamedTuple):
    created: int
    skipped: int


class UserImporter:
    """Imports users, falling back to adoption by email when creation fails."""

    def __init__(self, context: ImportContext):
        self.context = context
        self.target = context.target
        self.identity_map = context.identity_map

    def import_rows(self, rows: Sequence[Row], transform: UserTransform) -> ImportStats:
        """Import every row and return the counters.

        Rows already in the identity map are skipped. Rows with a blank
        email are skipped and listed as failed users. Creation failures
        that cannot be resolved by email are counted as failed.
        """
        self.context.progress.announce("creating users")
        stats = ImportStats("users")
        total = len(rows)

        for row in rows:
            attrs = transform(row)

            if self.identity_map.contains(EntityKind.USER, attrs.id):
                stats.skipped += 1
            elif not (attrs.email or "").strip():
                self.context.record_failed_user(attrs)
                stats.skipped += 1
                logger.warning("user_skipped_blank_email", import_id=attrs.id)
            else:
                result = self.create_user(attrs)
                if isinstance(result, Failed):
                    self.context.record_failed_user(attrs)
                    stats.failed += 1
                    logger.warning(
                        "user_creation_failed",
                        import_id=attrs.id,
                        email=attrs.email,
                        error=result.reason,
                    )
                else:
                    self.identity_map.record(EntityKind.USER, attrs.id, result.entity_id)
                    stats.created += 1
                    if isinstance(result, AdoptedExisting):
                        stats.adopted += 1

            self.context.progress.print_status(stats.processed, total)

        self.context.progress.finish_line()
        logger.info(
            "users_imported",
            created=stats.created,
            skipped=stats.skipped,
            failed=len(self.context.failed_users),
        )
        return stats

    def create_user(self, attrs: UserAttributes) -> UserCreationResult:
        """Create one user, or adopt the existing user holding the same email."""
        email = attrs.email.strip().lower()
        name = self.target.suggest_name(attrs.name, email)
        username = self.target.suggest_username(
            (attrs.username if attrs.username and attrs.username.strip() else None)
            or name
            or email
        )
        trust_level = attrs.trust_level if attrs.trust_level is not None else TrustLevel.BASIC

        custom_fields: dict[str, Any] = {IMPORT_ID_FIELD: attrs.id}
        if attrs.username and attrs.username.strip():
            custom_fields["import_username"] = attrs.username

        try:
            user_id = self.target.create_user(
                username=username,
                email=email,
                name=name,
                trust_level=int(trust_level),
                created_at=attrs.created_at,
                custom_fields=custom_fields,
            )
        except TargetError as e:
            return self._adopt_by_email(email, attrs.id, str(e))

        logger.debug("user_created", import_id=attrs.id, user_id=user_id, username=username)
        return Created(user_id)

    def _adopt_by_email(self, email: str, import_id: Any, reason: str) -> UserCreationResult:
        existing_id = self.target.find_user_by_email(email)
        if existing_id is None:
            return Failed(reason)

        self.target.add_custom_field("user", existing_id, IMPORT_ID_FIELD, import_id)
        logger.info("user_adopted_by_email", import_id=import_id, user_id=existing_id)
        return AdoptedExisting(existing_id)


class CategoryImporter:
    """Imports categories. Equal names from the source stay distinct categories."""

    def __init__(self, context: ImportContext):
        self.context = context
        self.target = context.target
        self.identity_map = context.identity_map

    def import_rows(self, rows: Sequence[Row], transform: CategoryTransform) -> ImportStats:
        self.context.progress.announce("creating categories")
        stats = ImportStats("categories")

        for row in rows:
            attrs = transform(row)
            self.context.progress.announce(f"    {attrs.name}")

            if self.identity_map.contains(EntityKind.CATEGORY, attrs.id):
                stats.skipped += 1
                continue

            self.create_category(attrs, attrs.id)
            stats.created += 1

        logger.info("categories_imported", created=stats.created, skipped=stats.skipped)
        return stats

    def create_category(self, attrs: CategoryAttributes, import_id: Any = None) -> int:
        """Return the mapped category for ``import_id``, creating it if needed.

        Without an import id a category is always created and nothing is
        recorded in the identity map.
        """
        if import_id is not None:
            existing = self.identity_map.lookup(EntityKind.CATEGORY, import_id)
            if existing is not None:
                return existing

        category_id = self.target.create_category(
            name=attrs.name,
            user_id=SYSTEM_USER_ID,
            description=attrs.description,
            position=attrs.position,
            parent_category_id=attrs.parent_category_id,
            custom_fields={IMPORT_ID_FIELD: import_id} if import_id is not None else None,
        )

        if import_id is not None:
            self.identity_map.record(EntityKind.CATEGORY, import_id, category_id)

        logger.debug(
            "category_created", import_id=import_id, category_id=category_id, name=attrs.name
        )
        return category_id


class PostImporter:
    """Imports topics and replies.

    A row whose transform returns None, whose import id is already mapped,
    or whose creation raises is skipped. Nothing aborts the batch.
    """

    def __init__(self, context: ImportContext):
        self.context = context
        self.target = context.target
        self.identity_map = context.identity_map

    def import_rows(
        self,
        rows: Sequence[Row],
        transform: PostTransform,
        total: int | None = None,
        offset: int = 0,
    ) -> PostBatchResult:
        """Import one batch of rows.

        Args:
            rows: Source rows
            transform: Row to attributes, or None when the row cannot be resolved
            total: Total rows across all batches, for progress output
            offset: Rows processed by earlier batches, for progress output

        Returns:
            (created, skipped) for this batch
        """
        created = 0
        skipped = 0
        if total is None:
            total = len(rows)

        for row in rows:
            attrs = transform(row)

            if attrs is None:
                skipped += 1
            else:
                import_id = str(attrs.id)

                if self.identity_map.contains(EntityKind.POST, import_id):
                    skipped += 1
                else:
                    try:
                        new_post = self.create_post(attrs, import_id)
                    except Exception as e:
                        skipped += 1
                        logger.error(
                            "post_creation_failed",
                            import_id=import_id,
                            error=str(e),
                            error_type=type(e).__name__,
                        )
                    else:
                        self.identity_map.record(EntityKind.POST, import_id, new_post.id)
                        self.identity_map.record_position(
                            new_post.id, new_post.topic_id, new_post.post_number
                        )
                        created += 1

            self.context.progress.print_status(created + skipped + offset, total)

        return PostBatchResult(created, skipped)

    def create_post(self, attrs: PostAttributes, import_id: str) -> CreatedPost:
        kwargs = attrs.creation_kwargs()
        kwargs["custom_fields"][IMPORT_ID_FIELD] = import_id
        return self.target.create_post(skip_validations=True, **kwargs)
