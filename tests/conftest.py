"""Shared fixtures: an in-memory target platform and an in-memory Drupal source."""

import re
from datetime import UTC, datetime

import pytest
from sqlalchemy import text

from forum_bridge.client.source_client import SourceClient
from forum_bridge.client.target_client import ForumTargetClient
from forum_bridge.database import create_database_engine
from forum_bridge.migration.context import ImportContext
from forum_bridge.migration.identity_map import IdentityMap

DRUPAL_SCHEMA = [
    "CREATE TABLE users (uid INTEGER PRIMARY KEY, name TEXT, mail TEXT, created INTEGER)",
    """CREATE TABLE taxonomy_term_data (
        tid INTEGER PRIMARY KEY, vid INTEGER, name TEXT, description TEXT, weight INTEGER DEFAULT 0
    )""",
    """CREATE TABLE node (
        nid INTEGER PRIMARY KEY, type TEXT, title TEXT, uid INTEGER,
        created INTEGER, sticky INTEGER DEFAULT 0, status INTEGER DEFAULT 1
    )""",
    "CREATE TABLE field_data_body (entity_id INTEGER PRIMARY KEY, body_value TEXT)",
    """CREATE TABLE forum_index (
        nid INTEGER PRIMARY KEY, title TEXT, tid INTEGER, created INTEGER, sticky INTEGER DEFAULT 0
    )""",
    """CREATE TABLE comment (
        cid INTEGER PRIMARY KEY, pid INTEGER DEFAULT 0, nid INTEGER, uid INTEGER,
        created INTEGER, status INTEGER DEFAULT 1
    )""",
    "CREATE TABLE field_data_comment_body (entity_id INTEGER PRIMARY KEY, comment_body_value TEXT)",
]

# 2020-01-01T00:00:00Z
BASE_TS = 1577836800


def ts(offset_seconds: int = 0) -> datetime:
    """Aware UTC datetime ``offset_seconds`` after BASE_TS."""
    return datetime.fromtimestamp(BASE_TS + offset_seconds, UTC)


def naive(value: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo."""
    return value.astimezone(UTC).replace(tzinfo=None)


def status_lines(output: str) -> list[str]:
    """Non-empty segments of tqdm output, split on line rewrites."""
    return [part.strip() for part in re.split(r"[\r\n]", output) if part.strip()]


@pytest.fixture
def target_engine():
    engine = create_database_engine("sqlite:///:memory:")
    yield engine
    engine.dispose()


@pytest.fixture
def target(target_engine) -> ForumTargetClient:
    client = ForumTargetClient(target_engine)
    client.init_schema()
    return client


@pytest.fixture
def context(target) -> ImportContext:
    return ImportContext(target=target, identity_map=IdentityMap())


@pytest.fixture
def drupal_engine():
    engine = create_database_engine("sqlite:///:memory:")
    with engine.begin() as conn:
        for statement in DRUPAL_SCHEMA:
            conn.execute(text(statement))
    yield engine
    engine.dispose()


@pytest.fixture
def drupal_source(drupal_engine) -> SourceClient:
    return SourceClient(drupal_engine)


class DrupalSite:
    """Writes Drupal 7 rows into the in-memory source database."""

    def __init__(self, engine):
        self.engine = engine

    def _insert(self, sql: str, **params) -> None:
        with self.engine.begin() as conn:
            conn.execute(text(sql), params)

    def user(self, uid: int, name: str, mail: str | None, created: int = BASE_TS) -> None:
        self._insert(
            "INSERT INTO users (uid, name, mail, created) VALUES (:uid, :name, :mail, :created)",
            uid=uid,
            name=name,
            mail=mail,
            created=created,
        )

    def term(self, tid: int, name: str, vid: int = 1, description: str = "", weight: int = 0):
        self._insert(
            "INSERT INTO taxonomy_term_data (tid, vid, name, description, weight) "
            "VALUES (:tid, :vid, :name, :description, :weight)",
            tid=tid,
            vid=vid,
            name=name,
            description=description,
            weight=weight,
        )

    def node(
        self,
        nid: int,
        type: str,
        title: str,
        uid: int,
        body: str,
        created: int = BASE_TS,
        sticky: int = 0,
        status: int = 1,
        tid: int | None = None,
    ) -> None:
        self._insert(
            "INSERT INTO node (nid, type, title, uid, created, sticky, status) "
            "VALUES (:nid, :type, :title, :uid, :created, :sticky, :status)",
            nid=nid,
            type=type,
            title=title,
            uid=uid,
            created=created,
            sticky=sticky,
            status=status,
        )
        self._insert(
            "INSERT INTO field_data_body (entity_id, body_value) VALUES (:nid, :body)",
            nid=nid,
            body=body,
        )
        if type == "forum":
            self._insert(
                "INSERT INTO forum_index (nid, title, tid, created, sticky) "
                "VALUES (:nid, :title, :tid, :created, :sticky)",
                nid=nid,
                title=title,
                tid=tid,
                created=created,
                sticky=sticky,
            )

    def comment(
        self,
        cid: int,
        nid: int,
        uid: int,
        body: str,
        pid: int = 0,
        created: int = BASE_TS,
        status: int = 1,
    ) -> None:
        self._insert(
            "INSERT INTO comment (cid, pid, nid, uid, created, status) "
            "VALUES (:cid, :pid, :nid, :uid, :created, :status)",
            cid=cid,
            pid=pid,
            nid=nid,
            uid=uid,
            created=created,
            status=status,
        )
        self._insert(
            "INSERT INTO field_data_comment_body (entity_id, comment_body_value) "
            "VALUES (:cid, :body)",
            cid=cid,
            body=body,
        )


@pytest.fixture
def drupal_site(drupal_engine) -> DrupalSite:
    return DrupalSite(drupal_engine)
