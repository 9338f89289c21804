"""End-to-end tests of the Drupal import against in-memory databases."""

import pytest

from forum_bridge.config import AdminConfig, DrupalConfig
from forum_bridge.migration.identity_map import EntityKind
from forum_bridge.sources.drupal import DrupalImportScript
from forum_bridge.target.models import SYSTEM_USER_ID

from tests.conftest import BASE_TS, naive, ts

HOUR = 3600


@pytest.fixture
def site(drupal_site):
    drupal_site.user(1, "alice", "alice@example.com")
    drupal_site.user(2, "bob", "bob@example.com")
    drupal_site.user(3, "nomail", "")

    drupal_site.term(10, "General")
    drupal_site.term(11, "General")
    drupal_site.term(12, "Off Topic ")
    drupal_site.term(20, "Tags", vid=2)

    drupal_site.node(100, "blog", "Welcome", uid=1, body="Blog body", sticky=1)
    drupal_site.node(101, "blog", "Draft", uid=1, body="Unpublished", status=0)
    drupal_site.node(200, "forum", " First forum topic ", uid=2, body="Forum body", tid=11)
    drupal_site.node(201, "forum", "By a stranger", uid=99, body="Who?", tid=12)

    drupal_site.comment(1, 200, uid=1, body="Reply to topic", created=BASE_TS + HOUR)
    drupal_site.comment(2, 200, uid=2, body="Reply to reply", pid=1, created=BASE_TS + 2 * HOUR)
    drupal_site.comment(3, 200, uid=1, body="Reply to reply's reply", pid=2, created=BASE_TS + 3 * HOUR)
    drupal_site.comment(4, 101, uid=1, body="On unpublished node")
    drupal_site.comment(5, 100, uid=2, body="Hidden", status=0)
    return drupal_site


def run(drupal_source, target, **kwargs):
    script = DrupalImportScript(drupal_source, target, DrupalConfig(), batch_size=2, **kwargs)
    return script, script.perform()


def post_of(script, target, import_id):
    return target.get_post(script.post_id_from_imported_post_id(import_id))


def test_imports_users_and_lists_failures(site, drupal_source, target):
    script, summary = run(drupal_source, target)

    assert summary.users.created == 2
    assert [u.id for u in summary.failed_users] == [3]
    assert script.user_id_from_imported_user_id(1) == target.find_user_by_email("alice@example.com")


def test_imports_forum_vocabulary_only(site, drupal_source, target):
    script, summary = run(drupal_source, target)

    assert summary.categories.created == 3
    assert script.category_id_from_imported_category_id(20) is None
    first = script.category_id_from_imported_category_id(10)
    second = script.category_id_from_imported_category_id(11)
    assert first != second
    assert target.get_category_name(script.category_id_from_imported_category_id(12)) == "Off Topic"


def test_excluded_categories(site, drupal_source, target):
    script = DrupalImportScript(
        drupal_source, target, DrupalConfig(excluded_category_ids=[10]), batch_size=2
    )
    script.perform()

    assert script.category_id_from_imported_category_id(10) is None
    assert script.category_id_from_imported_category_id(11) is not None


def test_blog_topic_goes_to_blog_category_and_is_pinned(site, drupal_source, target):
    script, _ = run(drupal_source, target)

    post = post_of(script, target, "nid:100")
    topic = target.get_topic(post.topic_id)
    assert topic.category_id == target.find_category_by_name("Blog")
    assert topic.pinned_at == naive(ts())
    assert script.post_id_from_imported_post_id("nid:101") is None


def test_forum_topics(site, drupal_source, target):
    script, _ = run(drupal_source, target)

    topic = target.get_topic(post_of(script, target, "nid:200").topic_id)
    assert topic.title == "First forum topic"
    assert topic.category_id == script.category_id_from_imported_category_id(11)
    assert topic.pinned_at is None

    stranger = post_of(script, target, "nid:201")
    assert stranger.user_id == SYSTEM_USER_ID


def test_replies_are_threaded(site, drupal_source, target):
    script, _ = run(drupal_source, target)

    first = post_of(script, target, "cid:1")
    second = post_of(script, target, "cid:2")
    third = post_of(script, target, "cid:3")

    assert (first.post_number, second.post_number, third.post_number) == (2, 3, 4)
    assert first.reply_to_post_number is None
    assert second.reply_to_post_number == 2
    assert third.reply_to_post_number == 3
    assert script.post_id_from_imported_post_id("cid:4") is None
    assert script.post_id_from_imported_post_id("cid:5") is None


def test_topic_bumped_at_is_last_reply(site, drupal_source, target):
    script, _ = run(drupal_source, target)

    topic = target.get_topic(post_of(script, target, "nid:200").topic_id)
    assert topic.bumped_at == naive(ts(3 * HOUR))


def test_rerun_is_a_no_op(site, drupal_source, target):
    first_script, _ = run(drupal_source, target)
    counts = {kind: target.count(kind) for kind in ("user", "category", "topic", "post")}

    second_script, summary = run(drupal_source, target)

    assert summary.total_created == 0
    assert {kind: target.count(kind) for kind in counts} == counts
    assert second_script.identity_map.snapshot() == first_script.identity_map.snapshot()


def test_interrupted_run_resumes(site, drupal_source, target):
    script = DrupalImportScript(drupal_source, target, DrupalConfig(), batch_size=2)
    script.create_users(
        drupal_source.query("SELECT uid id, name, mail email, created FROM users WHERE uid = 1"),
        script.transform_user,
    )

    _, summary = run(drupal_source, target)

    assert summary.users.created == 1
    assert summary.users.skipped == 2
    assert target.count("post") == 6


def test_admin_is_created(site, drupal_source, target):
    admin = AdminConfig(email="admin@example.com", username="admin")

    _, summary = run(drupal_source, target, admin=admin)

    assert summary.admin_created is True
    assert target.find_user_by_email("admin@example.com") is not None
