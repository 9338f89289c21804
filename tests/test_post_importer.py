"""Tests for topic and reply import."""

from forum_bridge.migration.context import ImportContext
from forum_bridge.migration.identity_map import EntityKind, TopicPosition
from forum_bridge.migration.importer import PostImporter
from forum_bridge.migration.records import PostAttributes
from forum_bridge.target.models import SYSTEM_USER_ID

from tests.conftest import naive, ts


def topic_row(id, title="A topic", raw="Body", created=0):
    return {"id": id, "title": title, "raw": raw, "created": created}


def to_topic(row):
    return PostAttributes(
        id=row["id"],
        user_id=SYSTEM_USER_ID,
        title=row["title"],
        raw=row["raw"],
        created_at=ts(row["created"]),
    )


class TestTopics:
    def test_creates_topics_and_records_positions(self, context):
        result = PostImporter(context).import_rows(
            [topic_row("nid:1"), topic_row("nid:2")], to_topic
        )

        assert result == (2, 0)
        position = context.identity_map.topic_lookup("nid:1")
        assert position.post_number == 1
        assert context.target.count("topic") == 2

    def test_replay_is_idempotent(self, context):
        importer = PostImporter(context)
        rows = [topic_row("nid:1"), topic_row("nid:2")]
        importer.import_rows(rows, to_topic)

        result = importer.import_rows(rows, to_topic)

        assert result.created == 0
        assert result.skipped == 2
        assert context.target.count("post") == 2

    def test_repeated_id_in_one_batch_is_created_once(self, context):
        result = PostImporter(context).import_rows(
            [topic_row("nid:1"), topic_row("nid:1", title="Again")], to_topic
        )

        assert result == (1, 1)
        assert context.target.count("topic") == 1

    def test_creation_failure_skips_row_and_continues(self, context):
        rows = [topic_row("nid:1", title="  "), topic_row("nid:2")]

        result = PostImporter(context).import_rows(rows, to_topic)

        assert result == (1, 1)
        assert not context.identity_map.contains(EntityKind.POST, "nid:1")
        assert context.identity_map.contains(EntityKind.POST, "nid:2")

    def test_none_transform_is_skipped(self, context):
        result = PostImporter(context).import_rows([topic_row("nid:1")], lambda row: None)

        assert result == (0, 1)
        assert context.target.count("post") == 0

    def test_import_id_custom_field_is_set(self, context):
        PostImporter(context).import_rows([topic_row(42)], to_topic)

        assert context.target.scan_custom_field("post") == [
            (context.identity_map.lookup(EntityKind.POST, "42"), "42")
        ]

    def test_stored_import_id_is_the_mapping_key(self, context):
        def with_stale_field(row):
            attrs = to_topic(row)
            attrs.custom_fields = {"import_id": "1"}
            return attrs

        PostImporter(context).import_rows([topic_row("nid:1")], with_stale_field)

        rerun = ImportContext.rehydrate(context.target)
        result = PostImporter(rerun).import_rows([topic_row("nid:1")], with_stale_field)

        assert result == (0, 1)
        assert context.target.count("topic") == 1
        assert [value for _, value in context.target.scan_custom_field("post")] == ["nid:1"]


class TestReplies:
    def test_replies_get_sequential_post_numbers(self, context):
        importer = PostImporter(context)
        importer.import_rows([topic_row("nid:1")], to_topic)
        topic = context.identity_map.topic_lookup("nid:1")

        def to_reply(row):
            return PostAttributes(
                id=row["id"],
                user_id=SYSTEM_USER_ID,
                raw="reply",
                topic_id=topic.topic_id,
                created_at=ts(row["created"]),
            )

        result = importer.import_rows(
            [{"id": "cid:1", "created": 60}, {"id": "cid:2", "created": 120}], to_reply
        )

        assert result == (2, 0)
        assert context.identity_map.topic_lookup("cid:2") == TopicPosition(topic.topic_id, 3)
        stored = context.target.get_topic(topic.topic_id)
        assert stored.highest_post_number == 3
        assert stored.last_posted_at == naive(ts(120))

    def test_reply_to_missing_topic_is_skipped(self, context):
        def to_reply(row):
            return PostAttributes(id=row["id"], user_id=SYSTEM_USER_ID, raw="x", topic_id=999)

        result = PostImporter(context).import_rows([{"id": "cid:1"}], to_reply)

        assert result == (0, 1)
