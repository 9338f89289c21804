"""Typed attribute sets produced by source row transforms.

A transform turns one raw source row into one of these. ``id`` is always
the source system's identifier and never reaches the target platform as
an entity id; it is stored in the ``import_id`` custom field instead.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

Row = Mapping[str, Any]


@dataclass
class UserAttributes:
    id: Any
    email: str | None
    username: str | None = None
    name: str | None = None
    created_at: datetime | None = None
    trust_level: int | None = None


@dataclass
class CategoryAttributes:
    id: Any
    name: str
    description: str | None = None
    position: int | None = None
    parent_category_id: int | None = None


@dataclass
class PostAttributes:
    """A topic (``title`` set, no ``topic_id``) or a reply (``topic_id`` set)."""

    id: Any
    user_id: int
    raw: str
    created_at: datetime | None = None
    title: str | None = None
    category: int | str | None = None
    topic_id: int | None = None
    reply_to_post_number: int | None = None
    pinned_at: datetime | None = None
    custom_fields: dict[str, Any] = field(default_factory=dict)

    @property
    def is_topic(self) -> bool:
        return self.topic_id is None

    def creation_kwargs(self) -> dict[str, Any]:
        """Everything except the import id, ready for the target client."""
        kwargs: dict[str, Any] = {
            "user_id": self.user_id,
            "raw": self.raw,
            "created_at": self.created_at,
            "custom_fields": dict(self.custom_fields),
        }
        if self.is_topic:
            kwargs.update(title=self.title, category=self.category, pinned_at=self.pinned_at)
        else:
            kwargs.update(
                topic_id=self.topic_id, reply_to_post_number=self.reply_to_post_number
            )
        return kwargs


UserTransform = Callable[[Row], UserAttributes]
CategoryTransform = Callable[[Row], CategoryAttributes]
PostTransform = Callable[[Row], PostAttributes | None]
