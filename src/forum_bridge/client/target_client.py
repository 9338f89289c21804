"""Target discussion platform client.

``ForumTargetClient`` implements every operation the importers need from
the target platform on top of the SQLAlchemy models in
``forum_bridge.target.models``: entity creation, custom field storage and
scan-back, username suggestion, bulk topic activity update and write
throttling.
"""

import hashlib
import re
import secrets
import time
import unicodedata
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from forum_bridge.client.exceptions import NotFoundError, TargetValidationError
from forum_bridge.database import session_scope
from forum_bridge.target.models import (
    SYSTEM_USER_ID,
    Base,
    Category,
    CategoryCustomField,
    Post,
    PostCustomField,
    PostType,
    Topic,
    TrustLevel,
    User,
    UserCustomField,
)
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_INVALID_CHARS = re.compile(r"[^\w.-]")

_CUSTOM_FIELD_MODELS = {
    "user": (UserCustomField, "user_id"),
    "category": (CategoryCustomField, "category_id"),
    "post": (PostCustomField, "post_id"),
}


@dataclass(frozen=True)
class CreatedPost:
    """Identity and position of a freshly created post."""

    id: int
    topic_id: int
    post_number: int


class RateLimiter:
    """Spaces entity writes at most ``rate_limit`` per second.

    Disabling the limiter turns ``wait`` into a no-op. Importers disable it
    for the length of a run.
    """

    def __init__(self, rate_limit: float = 0) -> None:
        self.rate_limit = rate_limit
        self.enabled = True
        self._min_interval = 1.0 / rate_limit if rate_limit > 0 else 0
        self._last_write: float | None = None

    def disable(self) -> None:
        self.enabled = False

    def enable(self) -> None:
        self.enabled = True

    def wait(self) -> None:
        """Sleep until the next write is allowed."""
        if not self.enabled or self._min_interval <= 0:
            return

        now = time.monotonic()
        if self._last_write is not None:
            elapsed = now - self._last_write
            if elapsed < self._min_interval:
                time.sleep(self._min_interval - elapsed)
        self._last_write = time.monotonic()


def _to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class ForumTargetClient:
    """Client for the target discussion platform database.

    Every public method runs in its own session and commits before
    returning, so a crash mid-run leaves only fully created entities.
    """

    def __init__(self, engine: Engine, rate_limit: float = 0):
        """Initialize target client.

        Args:
            engine: SQLAlchemy engine bound to the target database
            rate_limit: Maximum entity writes per second (0 = unlimited)
        """
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self.rate_limiter = RateLimiter(rate_limit)
        logger.info(
            "forum_target_client_initialized",
            dialect=engine.dialect.name,
            rate_limit=rate_limit,
        )

    def init_schema(self) -> None:
        """Create missing tables and the system user. Safe to call repeatedly."""
        Base.metadata.create_all(self.engine)

        with session_scope(self._session_factory) as session:
            if session.get(User, SYSTEM_USER_ID) is None:
                session.add(
                    User(
                        id=SYSTEM_USER_ID,
                        username="system",
                        username_lower="system",
                        name="system",
                        email="no_email",
                        trust_level=int(TrustLevel.LEADER),
                        admin=True,
                        email_confirmed=True,
                    )
                )
                logger.info("system_user_created")

    # Throttling

    def disable_rate_limiting(self) -> None:
        self.rate_limiter.disable()
        logger.debug("rate_limiting_disabled")

    def enable_rate_limiting(self) -> None:
        self.rate_limiter.enable()
        logger.debug("rate_limiting_enabled")

    # Custom fields

    def scan_custom_field(self, entity_type: str, name: str = "import_id") -> list[tuple[int, str]]:
        """Return ``(entity_id, value)`` pairs for one custom field name.

        Args:
            entity_type: 'user', 'category' or 'post'
            name: Custom field name

        Returns:
            Pairs ordered by custom field row id
        """
        model, owner_column = _CUSTOM_FIELD_MODELS[entity_type]
        with session_scope(self._session_factory) as session:
            rows = session.execute(
                select(getattr(model, owner_column), model.value)
                .where(model.name == name)
                .order_by(model.id)
            ).all()
        return [(entity_id, value) for entity_id, value in rows]

    def add_custom_field(self, entity_type: str, entity_id: int, name: str, value: Any) -> None:
        """Attach a custom field to an existing entity."""
        model, owner_column = _CUSTOM_FIELD_MODELS[entity_type]
        with session_scope(self._session_factory) as session:
            session.add(model(**{owner_column: entity_id, "name": name, "value": str(value)}))

    def iter_post_positions(self, chunk_size: int = 10000) -> Iterator[tuple[int, int, int]]:
        """Yield ``(post_id, topic_id, post_number)`` for every post."""
        with self.engine.connect() as conn:
            result = conn.execution_options(yield_per=chunk_size).execute(
                select(Post.id, Post.topic_id, Post.post_number).order_by(Post.id)
            )
            for post_id, topic_id, post_number in result:
                yield post_id, topic_id, post_number

    # Users

    def suggest_name(self, name: str | None, email: str | None = None) -> str | None:
        """Suggest a display name, derived from the email when none is given."""
        if name and name.strip():
            return name.strip()
        if email and "@" in email:
            local_part = email.split("@", 1)[0]
            return re.sub(r"[._+-]+", " ", local_part).strip().title() or None
        return None

    def suggest_username(self, candidate: str | None) -> str:
        """Suggest a valid username that is not taken yet.

        Emails are reduced to their local part, invalid characters are
        replaced, and a numeric suffix is appended until unique.
        """
        base = (candidate or "").strip()
        if "@" in base:
            base = base.split("@", 1)[0]
        base = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode("ascii")
        base = _USERNAME_INVALID_CHARS.sub("_", base)
        base = re.sub(r"_{2,}", "_", base).strip("_.-")
        if not base:
            base = "user"
        base = base[:USERNAME_MAX_LENGTH]
        if len(base) < USERNAME_MIN_LENGTH:
            base = base + "1" * (USERNAME_MIN_LENGTH - len(base))

        with session_scope(self._session_factory) as session:
            attempt = base
            suffix = 1
            while self._username_taken(session, attempt):
                tail = str(suffix)
                attempt = base[: USERNAME_MAX_LENGTH - len(tail)] + tail
                suffix += 1
        return attempt

    @staticmethod
    def _username_taken(session, username: str) -> bool:
        return (
            session.scalar(select(User.id).where(User.username_lower == username.lower()))
            is not None
        )

    def create_user(
        self,
        username: str,
        email: str,
        name: str | None = None,
        trust_level: int = int(TrustLevel.NEWUSER),
        created_at: datetime | None = None,
        custom_fields: dict[str, Any] | None = None,
        **extra: Any,
    ) -> int:
        """Create a user and return its id.

        Raises:
            TargetValidationError: If the email or username is invalid or taken
        """
        self.rate_limiter.wait()
        email = email.strip().lower() if email else email
        errors = []
        if not email or not _EMAIL_PATTERN.match(email):
            errors.append(f"Email '{email}' is invalid")
        if not username or _USERNAME_INVALID_CHARS.search(username):
            errors.append(f"Username '{username}' contains invalid characters")
        elif not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            errors.append(
                f"Username must be between {USERNAME_MIN_LENGTH} and "
                f"{USERNAME_MAX_LENGTH} characters"
            )

        try:
            with session_scope(self._session_factory) as session:
                taken = select(User.id).where(func.lower(User.email) == email)
                if email and session.scalar(taken) is not None:
                    errors.append("Email has already been taken")
                if username and self._username_taken(session, username):
                    errors.append("Username has already been taken")
                if errors:
                    raise TargetValidationError("User is invalid", errors)

                user = User(
                    username=username,
                    username_lower=username.lower(),
                    name=name,
                    email=email,
                    trust_level=int(trust_level),
                    created_at=_to_naive_utc(created_at) or _utcnow(),
                )
                for key, value in (custom_fields or {}).items():
                    user.custom_fields.append(UserCustomField(name=key, value=str(value)))
                session.add(user)
                session.flush()
                user_id = user.id
        except IntegrityError as e:
            raise TargetValidationError("User is invalid", [str(e.orig)]) from e

        if extra:
            logger.debug("user_attributes_ignored", user_id=user_id, fields=sorted(extra))
        return user_id

    def find_user_by_email(self, email: str) -> int | None:
        with session_scope(self._session_factory) as session:
            return session.scalar(
                select(User.id).where(func.lower(User.email) == email.strip().lower())
            )

    def create_admin(self, email: str, username: str) -> int:
        """Create an administrator with a random password and confirmed email."""
        password = secrets.token_urlsafe(24)
        user_id = self.create_user(
            username=username,
            email=email.lower(),
            name=username,
            trust_level=int(TrustLevel.REGULAR),
        )
        with session_scope(self._session_factory) as session:
            user = session.get(User, user_id)
            user.admin = True
            user.email_confirmed = True
            user.password_hash = hashlib.sha256(password.encode()).hexdigest()
        logger.info("admin_created", user_id=user_id, username=username)
        return user_id

    # Categories

    def create_category(
        self,
        name: str,
        user_id: int = SYSTEM_USER_ID,
        description: str | None = None,
        position: int | None = None,
        parent_category_id: int | None = None,
        custom_fields: dict[str, Any] | None = None,
    ) -> int:
        """Create a category and return its id.

        Raises:
            TargetValidationError: If the name is blank
        """
        self.rate_limiter.wait()
        if not name or not name.strip():
            raise TargetValidationError("Category is invalid", ["Name can't be blank"])

        with session_scope(self._session_factory) as session:
            category = Category(
                name=name,
                user_id=user_id,
                description=description,
                position=position,
                parent_category_id=parent_category_id,
            )
            for key, value in (custom_fields or {}).items():
                category.custom_fields.append(CategoryCustomField(name=key, value=str(value)))
            session.add(category)
            session.flush()
            return category.id

    def find_category_by_name(self, name: str) -> int | None:
        with session_scope(self._session_factory) as session:
            return session.scalar(
                select(Category.id).where(Category.name == name).order_by(Category.id).limit(1)
            )

    def get_category_name(self, category_id: int) -> str | None:
        with session_scope(self._session_factory) as session:
            category = session.get(Category, category_id)
            return category.name if category is not None else None

    # Posts

    def create_post(
        self,
        user_id: int,
        raw: str,
        created_at: datetime | None = None,
        title: str | None = None,
        category: int | str | None = None,
        topic_id: int | None = None,
        reply_to_post_number: int | None = None,
        pinned_at: datetime | None = None,
        post_type: int = int(PostType.REGULAR),
        custom_fields: dict[str, Any] | None = None,
        skip_validations: bool = False,
    ) -> CreatedPost:
        """Create a topic (no ``topic_id``) or a reply inside an existing topic.

        ``category`` may be a category id or a category name. Unknown names
        leave the topic uncategorized.

        Raises:
            NotFoundError: If the user or the topic does not exist
            TargetValidationError: If a topic has no title, or the body is
                empty and validations are not skipped
        """
        self.rate_limiter.wait()
        if not skip_validations and not (raw or "").strip():
            raise TargetValidationError("Post is invalid", ["Body can't be blank"])

        created = _to_naive_utc(created_at) or _utcnow()

        with session_scope(self._session_factory) as session:
            if session.get(User, user_id) is None:
                raise NotFoundError(f"User {user_id} not found")

            if topic_id is None:
                if not title or not title.strip():
                    raise TargetValidationError("Topic is invalid", ["Title can't be blank"])
                topic = Topic(
                    title=title.strip(),
                    user_id=user_id,
                    category_id=self._resolve_category(session, category),
                    created_at=created,
                    bumped_at=created,
                    pinned_at=_to_naive_utc(pinned_at),
                    highest_post_number=0,
                    posts_count=0,
                )
                session.add(topic)
                session.flush()
            else:
                topic = session.get(Topic, topic_id)
                if topic is None:
                    raise NotFoundError(f"Topic {topic_id} not found")

            post_number = topic.highest_post_number + 1
            post = Post(
                topic_id=topic.id,
                user_id=user_id,
                post_number=post_number,
                raw=raw or "",
                reply_to_post_number=reply_to_post_number,
                post_type=int(post_type),
                created_at=created,
            )
            for key, value in (custom_fields or {}).items():
                post.custom_fields.append(PostCustomField(name=key, value=str(value)))
            session.add(post)

            topic.highest_post_number = post_number
            topic.posts_count += 1
            if topic.last_posted_at is None or created > topic.last_posted_at:
                topic.last_posted_at = created
            if created > topic.bumped_at:
                topic.bumped_at = created

            session.flush()
            return CreatedPost(id=post.id, topic_id=topic.id, post_number=post_number)

    @staticmethod
    def _resolve_category(session, category: int | str | None) -> int | None:
        if category is None:
            return None
        if isinstance(category, int):
            return category if session.get(Category, category) is not None else None
        return session.scalar(
            select(Category.id).where(Category.name == category).order_by(Category.id).limit(1)
        )

    # Topics

    def update_topic_activity(self) -> int:
        """Set every topic's bumped_at to its newest non moderator-action post.

        Topics holding only moderator actions fall back to their creation time.

        Returns:
            Number of topics updated
        """
        newest_post = (
            select(func.max(Post.created_at))
            .where(
                Post.topic_id == Topic.id,
                Post.post_type != int(PostType.MODERATOR_ACTION),
            )
            .scalar_subquery()
        )
        with session_scope(self._session_factory) as session:
            result = session.execute(
                update(Topic)
                .values(bumped_at=func.coalesce(newest_post, Topic.created_at))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    def find_open_topics_inactive_since(self, cutoff: datetime) -> list[int]:
        with session_scope(self._session_factory) as session:
            return list(
                session.scalars(
                    select(Topic.id)
                    .where(Topic.last_posted_at < _to_naive_utc(cutoff), Topic.closed.is_(False))
                    .order_by(Topic.id)
                )
            )

    def close_topic(self, topic_id: int) -> None:
        with session_scope(self._session_factory) as session:
            topic = session.get(Topic, topic_id)
            if topic is None:
                raise NotFoundError(f"Topic {topic_id} not found")
            topic.closed = True

    def get_topic(self, topic_id: int) -> Topic | None:
        with session_scope(self._session_factory) as session:
            return session.get(Topic, topic_id)

    def get_post(self, post_id: int) -> Post | None:
        with session_scope(self._session_factory) as session:
            return session.get(Post, post_id)

    def count(self, entity_type: str) -> int:
        """Count users, categories, topics or posts."""
        model = {"user": User, "category": Category, "topic": Topic, "post": Post}[entity_type]
        with session_scope(self._session_factory) as session:
            return session.scalar(select(func.count()).select_from(model))

    def close(self) -> None:
        self.engine.dispose()
