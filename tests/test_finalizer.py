"""Tests for post-import topic corrections."""

from datetime import timedelta

from forum_bridge.migration.finalizer import PostImportFinalizer
from forum_bridge.target.models import SYSTEM_USER_ID, PostType

from tests.conftest import naive, ts


def make_topic(target, created_offsets, moderator_last=False):
    first = target.create_post(
        user_id=SYSTEM_USER_ID, raw="first", title="Topic", created_at=ts(created_offsets[0])
    )
    for index, offset in enumerate(created_offsets[1:], start=2):
        is_last = index == len(created_offsets)
        target.create_post(
            user_id=SYSTEM_USER_ID,
            raw="reply",
            topic_id=first.topic_id,
            created_at=ts(offset),
            post_type=PostType.MODERATOR_ACTION if moderator_last and is_last else PostType.REGULAR,
        )
    return first.topic_id


class TestUpdateTopicActivity:
    def test_moderator_action_does_not_bump(self, target):
        topic_id = make_topic(target, [0, 3600, 7200], moderator_last=True)

        PostImportFinalizer(target).update_topic_activity()

        assert target.get_topic(topic_id).bumped_at == naive(ts(3600))

    def test_moderator_only_topic_falls_back_to_creation_time(self, target):
        first = target.create_post(
            user_id=SYSTEM_USER_ID,
            raw="closed",
            title="Topic",
            created_at=ts(0),
            post_type=PostType.MODERATOR_ACTION,
        )
        target.create_post(
            user_id=SYSTEM_USER_ID,
            raw="reopened",
            topic_id=first.topic_id,
            created_at=ts(7200),
            post_type=PostType.MODERATOR_ACTION,
        )
        assert target.get_topic(first.topic_id).bumped_at == naive(ts(7200))

        PostImportFinalizer(target).update_topic_activity()

        assert target.get_topic(first.topic_id).bumped_at == naive(ts(0))

    def test_newest_regular_post_wins(self, target):
        topic_id = make_topic(target, [0, 7200, 3600])

        updated = PostImportFinalizer(target).update_topic_activity()

        assert updated == 1
        assert target.get_topic(topic_id).bumped_at == naive(ts(7200))

    def test_is_idempotent(self, target):
        topic_id = make_topic(target, [0, 3600, 7200], moderator_last=True)
        finalizer = PostImportFinalizer(target)

        finalizer.update_topic_activity()
        first = target.get_topic(topic_id).bumped_at
        finalizer.update_topic_activity()

        assert target.get_topic(topic_id).bumped_at == first

    def test_no_topics(self, target):
        assert PostImportFinalizer(target).update_topic_activity() == 0


class TestCloseInactiveTopics:
    def test_closes_only_stale_open_topics(self, target):
        stale = make_topic(target, [0])
        fresh = make_topic(target, [0, 86400 * 40])

        closed = PostImportFinalizer(target).close_inactive_topics(
            days=30, now=ts(86400 * 45)
        )

        assert closed == 1
        assert target.get_topic(stale).closed is True
        assert target.get_topic(fresh).closed is False

    def test_rerun_closes_nothing_more(self, target):
        make_topic(target, [0])
        finalizer = PostImportFinalizer(target)
        now = ts(0) + timedelta(days=60)

        assert finalizer.close_inactive_topics(days=30, now=now) == 1
        assert finalizer.close_inactive_topics(days=30, now=now) == 0
