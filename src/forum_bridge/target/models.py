"""
SQLAlchemy models for the target discussion platform.

Users, categories, topics and posts, each with a key/value custom field
table. Imported entities carry their source identifier in an
``import_id`` custom field.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

SYSTEM_USER_ID = -1


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TrustLevel(enum.IntEnum):
    """User privilege tiers."""

    NEWUSER = 0
    BASIC = 1
    MEMBER = 2
    REGULAR = 3
    LEADER = 4


class PostType(enum.IntEnum):
    """Kinds of post inside a topic."""

    REGULAR = 1
    MODERATOR_ACTION = 2
    SMALL_ACTION = 3
    WHISPER = 4


class User(Base):
    """A platform account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    username_lower: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(513), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    trust_level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(TrustLevel.NEWUSER)
    )
    admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    custom_fields: Mapped[list["UserCustomField"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class UserCustomField(Base):
    __tablename__ = "user_custom_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped[User] = relationship(back_populates="custom_fields")

    __table_args__ = (Index("idx_user_custom_fields_name_value", "name", "value"),)


class Category(Base):
    """A category; names are not required to be unique."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    parent_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    custom_fields: Mapped[list["CategoryCustomField"]] = relationship(
        back_populates="category", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class CategoryCustomField(Base):
    __tablename__ = "category_custom_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    category: Mapped[Category] = relationship(back_populates="custom_fields")

    __table_args__ = (Index("idx_category_custom_fields_name_value", "name", "value"),)


class Topic(Base):
    """A discussion thread; its first post has post_number 1."""

    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_posted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    bumped_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    pinned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    highest_post_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    posts_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    posts: Mapped[list["Post"]] = relationship(back_populates="topic")

    def __repr__(self) -> str:
        return f"<Topic(id={self.id}, title='{self.title}')>"


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    post_number: Mapped[int] = mapped_column(Integer, nullable=False)
    raw: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reply_to_post_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    post_type: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(PostType.REGULAR)
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    topic: Mapped[Topic] = relationship(back_populates="posts")
    custom_fields: Mapped[list["PostCustomField"]] = relationship(
        back_populates="post", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("topic_id", "post_number", name="uq_posts_topic_post_number"),
    )

    def __repr__(self) -> str:
        return (
            f"<Post(id={self.id}, topic_id={self.topic_id}, post_number={self.post_number})>"
        )


class PostCustomField(Base):
    __tablename__ = "post_custom_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

    post: Mapped[Post] = relationship(back_populates="custom_fields")

    __table_args__ = (Index("idx_post_custom_fields_name_value", "name", "value"),)
