"""Reply threading from the identity map.

Comments reference their topic and, optionally, a parent comment by
source id. Both are resolved purely from positions recorded when the
referenced posts were imported, without querying the source again.
"""

from dataclasses import dataclass
from typing import Any

from forum_bridge.migration.identity_map import IdentityMap, TopicPosition
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReplyTarget:
    """Where a new reply goes."""

    topic_id: int
    reply_to_post_number: int | None = None


class ReplyLinker:
    def __init__(self, identity_map: IdentityMap):
        self.identity_map = identity_map

    def topic_lookup(self, post_import_id: Any) -> TopicPosition | None:
        return self.identity_map.topic_lookup(post_import_id)

    def reply_to_post_number(self, parent_import_id: Any) -> int | None:
        """Post number to reply to, or None for a plain reply to the topic.

        Replies to a topic's first post, and replies whose parent was never
        imported, are plain topic replies.
        """
        if parent_import_id is None:
            return None
        parent = self.topic_lookup(parent_import_id)
        if parent is None or parent.post_number <= 1:
            return None
        return parent.post_number

    def resolve(self, topic_import_id: Any, parent_import_id: Any = None) -> ReplyTarget | None:
        """Resolve a comment's topic and reply-to post number.

        Returns:
            The reply target, or None when the topic was never imported
        """
        topic = self.topic_lookup(topic_import_id)
        if topic is None:
            logger.info("reply_topic_not_found", topic_import_id=topic_import_id)
            return None
        return ReplyTarget(
            topic_id=topic.topic_id,
            reply_to_post_number=self.reply_to_post_number(parent_import_id),
        )
