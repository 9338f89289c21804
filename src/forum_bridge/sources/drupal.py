"""Drupal 7 import script.

Imports users, forum taxonomy terms, blog and forum nodes and their
comments. Node posts use ``nid:<nid>`` as import id and comments use
``cid:<cid>``, so both live in the same post namespace.
"""

from datetime import UTC, datetime
from typing import Any

from forum_bridge.client.source_client import SourceClient
from forum_bridge.client.target_client import ForumTargetClient
from forum_bridge.config import AdminConfig, DrupalConfig
from forum_bridge.migration.coordinator import ImportScript
from forum_bridge.migration.records import (
    CategoryAttributes,
    PostAttributes,
    Row,
    UserAttributes,
)
from forum_bridge.reporting.progress import ProgressPrinter
from forum_bridge.target.models import SYSTEM_USER_ID
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)

USERS_SQL = "SELECT uid id, name, mail email, created FROM users WHERE uid > 0 ORDER BY uid"

CATEGORIES_SQL = """
    SELECT tid, name, description
      FROM taxonomy_term_data
     WHERE vid = :vid
     ORDER BY weight, tid
"""

BLOG_TOPICS_SQL = """
    SELECT n.nid nid, n.title title, n.uid uid, n.created created, n.sticky sticky,
           f.body_value body
      FROM node n,
           field_data_body f
     WHERE n.type = 'blog'
       AND n.nid = f.entity_id
       AND n.status = 1
     ORDER BY n.nid
"""

FORUM_TOPICS_COUNT_SQL = """
    SELECT COUNT(*) count
      FROM forum_index fi, node n
     WHERE n.type = 'forum'
       AND fi.nid = n.nid
       AND n.status = 1
"""

FORUM_TOPICS_SQL = """
    SELECT fi.nid nid,
           fi.title title,
           fi.tid tid,
           n.uid uid,
           fi.created created,
           fi.sticky sticky,
           f.body_value body
      FROM forum_index fi,
           node n,
           field_data_body f
     WHERE n.type = 'forum'
       AND fi.nid = n.nid
       AND n.nid = f.entity_id
       AND n.status = 1
     ORDER BY fi.nid
"""

REPLIES_COUNT_SQL = """
    SELECT COUNT(*) count
      FROM comment c,
           node n
     WHERE n.nid = c.nid
       AND c.status = 1
       AND n.type IN ('blog', 'forum')
       AND n.status = 1
"""

REPLIES_SQL = """
    SELECT c.cid cid, c.pid pid, c.nid nid, c.uid uid, c.created created,
           f.comment_body_value body
      FROM comment c,
           field_data_comment_body f,
           node n
     WHERE c.cid = f.entity_id
       AND n.nid = c.nid
       AND c.status = 1
       AND n.type IN ('blog', 'forum')
       AND n.status = 1
     ORDER BY c.cid
"""


def _timestamp(value: Any) -> datetime | None:
    """Drupal stores Unix timestamps."""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), UTC)


def _strip(value: str | None) -> str | None:
    return value.strip() if value is not None else None


class DrupalImportScript(ImportScript):
    """Import a Drupal 7 site.

    Usage:
        script = DrupalImportScript(source, target, config.drupal)
        summary = script.perform()
    """

    name = "drupal"

    def __init__(
        self,
        source: SourceClient,
        target: ForumTargetClient,
        drupal_config: DrupalConfig | None = None,
        batch_size: int = 1000,
        progress: ProgressPrinter | None = None,
        admin: AdminConfig | None = None,
    ):
        super().__init__(target, progress=progress, batch_size=batch_size)
        self.source = source
        self.config = drupal_config or DrupalConfig()
        self.admin = admin

    def execute(self) -> None:
        self.create_users(self.source.query(USERS_SQL), self.transform_user)

        self.create_categories(self.fetch_categories(), self.transform_category)

        self.create_blog_topics()
        self.create_forum_topics()
        self.create_replies()

        if self.admin is not None:
            self.create_admin(email=self.admin.email, username=self.admin.username)

        self.progress.announce("Done")

    # Users and categories

    def transform_user(self, row: Row) -> UserAttributes:
        return UserAttributes(
            id=row["id"],
            username=row["name"],
            email=row["email"],
            created_at=_timestamp(row["created"]),
        )

    def fetch_categories(self) -> list[Row]:
        """Taxonomy terms of the forum vocabulary, minus excluded term ids.

        Drupal allows duplicate term names. Duplicates become separate
        categories unless excluded here.
        """
        excluded = set(self.config.excluded_category_ids)
        rows = self.source.query(CATEGORIES_SQL, vid=self.config.category_vocabulary_id)
        if excluded:
            logger.info("categories_excluded", tids=sorted(excluded))
        return [row for row in rows if row["tid"] not in excluded]

    def transform_category(self, row: Row) -> CategoryAttributes:
        return CategoryAttributes(
            id=row["tid"],
            name=_strip(row["name"]) or f"Category {row['tid']}",
            description=row["description"],
        )

    def author_id(self, uid: Any) -> int:
        """Mapped user id, or the system user for unknown and anonymous authors."""
        user_id = self.user_id_from_imported_user_id(uid)
        return user_id if user_id is not None else SYSTEM_USER_ID

    # Topics

    def ensure_blog_category(self) -> int:
        category_id = self.target.find_category_by_name(self.config.blog_category)
        if category_id is not None:
            return category_id
        return self.create_category(
            CategoryAttributes(
                id=None,
                name=self.config.blog_category,
                description=self.config.blog_category_description,
            )
        )

    def create_blog_topics(self) -> None:
        self.progress.announce("creating blog topics")
        blog_category_id = self.ensure_blog_category()

        self.create_posts(
            self.source.query(BLOG_TOPICS_SQL),
            lambda row: self.transform_topic(row, blog_category_id),
        )

    def create_forum_topics(self) -> None:
        self.progress.announce("creating forum topics")
        total = self.source.count(FORUM_TOPICS_COUNT_SQL)

        for batch in self.source.paginate(FORUM_TOPICS_SQL, self.batch_size):
            self.create_posts(
                batch.rows,
                lambda row: self.transform_topic(
                    row, self.category_id_from_imported_category_id(row["tid"])
                ),
                total=total,
                offset=batch.offset,
            )

    def transform_topic(self, row: Row, category_id: int | None) -> PostAttributes:
        created_at = _timestamp(row["created"])
        import_id = f"nid:{row['nid']}"
        return PostAttributes(
            id=import_id,
            user_id=self.author_id(row["uid"]),
            title=_strip(row["title"]),
            raw=row["body"],
            category=category_id,
            created_at=created_at,
            pinned_at=created_at if int(row["sticky"] or 0) == 1 else None,
            custom_fields={"import_id": import_id},
        )

    # Replies

    def create_replies(self) -> None:
        self.progress.announce("creating replies in topics")
        total = self.source.count(REPLIES_COUNT_SQL)

        for batch in self.source.paginate(REPLIES_SQL, self.batch_size):
            self.create_posts(batch.rows, self.transform_reply, total=total, offset=batch.offset)

    def transform_reply(self, row: Row) -> PostAttributes | None:
        parent_import_id = f"cid:{row['pid']}" if row["pid"] else None
        reply_target = self.linker.resolve(f"nid:{row['nid']}", parent_import_id)
        if reply_target is None:
            self.progress.announce(f"No topic found for comment {row['cid']}")
            return None

        import_id = f"cid:{row['cid']}"
        return PostAttributes(
            id=import_id,
            topic_id=reply_target.topic_id,
            reply_to_post_number=reply_target.reply_to_post_number,
            user_id=self.author_id(row["uid"]),
            raw=row["body"],
            created_at=_timestamp(row["created"]),
            custom_fields={"import_id": import_id},
        )
