"""Post-import corrections to derived topic fields."""

from datetime import UTC, datetime, timedelta

from forum_bridge.client.target_client import ForumTargetClient
from forum_bridge.reporting.progress import ProgressPrinter
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)


class PostImportFinalizer:
    """Runs once every post stream is exhausted."""

    def __init__(self, target: ForumTargetClient, progress: ProgressPrinter | None = None):
        self.target = target
        self.progress = progress or ProgressPrinter(enable=False)

    def update_topic_activity(self) -> int:
        """Recompute every topic's bumped_at from its posts.

        Moderator actions do not count as activity. Recomputed from the
        current posts, so running it again changes nothing.

        Returns:
            Number of topics updated
        """
        updated = self.target.update_topic_activity()
        logger.info("topic_activity_updated", topics=updated)
        return updated

    def close_inactive_topics(self, days: int = 30, now: datetime | None = None) -> int:
        """Close open topics with no post in the last ``days`` days.

        Returns:
            Number of topics closed
        """
        cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
        self.progress.announce(f"Closing topics that have been inactive for more than {days} days.")

        topic_ids = self.target.find_open_topics_inactive_since(cutoff)
        total = len(topic_ids)
        closed = 0
        for topic_id in topic_ids:
            self.target.close_topic(topic_id)
            closed += 1
            self.progress.print_status(closed, total)

        self.progress.finish_line()
        logger.info("inactive_topics_closed", closed=closed, days=days)
        return closed
