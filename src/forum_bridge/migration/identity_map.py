"""
Identity map between source import ids and target entity ids.

The map is rehydrated from the ``import_id`` custom fields stored on
target entities, and grows as the importers create new entities. It is
what makes an import run safe to repeat.
"""

import enum
from dataclasses import dataclass
from typing import Any, Protocol

from forum_bridge.client.exceptions import DuplicateMappingError
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)

IMPORT_ID_FIELD = "import_id"


class EntityKind(str, enum.Enum):
    """Entity kinds that carry an import id."""

    USER = "user"
    CATEGORY = "category"
    POST = "post"


@dataclass(frozen=True)
class TopicPosition:
    """Where a post sits inside its topic."""

    topic_id: int
    post_number: int


class ImportIdStore(Protocol):
    """Target operations needed to rehydrate the map."""

    def scan_custom_field(self, entity_type: str, name: str = ...) -> list[tuple[int, str]]: ...

    def iter_post_positions(self): ...


class IdentityMap:
    """Maps ``(entity_kind, import_id)`` to target ids.

    Import ids are stored in string form, because persisted custom fields
    are always strings. Lookups try the id as given and then its string
    form, so callers may pass integers or strings.
    """

    def __init__(self) -> None:
        self._mappings: dict[EntityKind, dict[Any, int]] = {kind: {} for kind in EntityKind}
        self._topic_positions: dict[int, TopicPosition] = {}

    def lookup(self, kind: EntityKind, import_id: Any) -> int | None:
        """Return the target id for an import id, or None if never imported."""
        if import_id is None:
            return None
        mapping = self._mappings[kind]
        target_id = mapping.get(import_id)
        if target_id is None:
            target_id = mapping.get(str(import_id))
        return target_id

    def contains(self, kind: EntityKind, import_id: Any) -> bool:
        return self.lookup(kind, import_id) is not None

    def record(self, kind: EntityKind, import_id: Any, target_id: int) -> None:
        """Map an import id to a target id.

        Raises:
            DuplicateMappingError: If the import id is already mapped
        """
        key = str(import_id)
        existing = self._mappings[kind].get(key)
        if existing is not None:
            raise DuplicateMappingError(kind.value, key, existing, target_id)
        self._mappings[kind][key] = target_id

    def record_position(self, post_id: int, topic_id: int, post_number: int) -> None:
        self._topic_positions[post_id] = TopicPosition(topic_id=topic_id, post_number=post_number)

    def topic_lookup(self, post_import_id: Any) -> TopicPosition | None:
        """Return the topic position of an imported post, by its import id."""
        post_id = self.lookup(EntityKind.POST, post_import_id)
        if post_id is None:
            return None
        return self._topic_positions.get(post_id)

    def size(self, kind: EntityKind) -> int:
        return len(self._mappings[kind])

    @property
    def position_count(self) -> int:
        return len(self._topic_positions)

    def snapshot(self) -> dict[str, dict[str, int]]:
        """Copy of every mapping, keyed by entity kind value."""
        return {kind.value: dict(mapping) for kind, mapping in self._mappings.items()}

    @classmethod
    def rehydrate(cls, store: ImportIdStore) -> "IdentityMap":
        """Build a map from the import ids persisted on target entities.

        An import id found on more than one entity keeps its first (oldest)
        mapping; the others are logged.
        """
        identity_map = cls()

        for kind in EntityKind:
            for entity_id, import_id in store.scan_custom_field(kind.value, IMPORT_ID_FIELD):
                if import_id is None:
                    continue
                try:
                    identity_map.record(kind, import_id, entity_id)
                except DuplicateMappingError as e:
                    logger.warning(
                        "duplicate_import_id_on_target",
                        entity_kind=kind.value,
                        import_id=import_id,
                        kept_id=e.existing_id,
                        ignored_id=entity_id,
                    )

        for post_id, topic_id, post_number in store.iter_post_positions():
            identity_map.record_position(post_id, topic_id, post_number)

        logger.info(
            "identity_map_rehydrated",
            users=identity_map.size(EntityKind.USER),
            categories=identity_map.size(EntityKind.CATEGORY),
            posts=identity_map.size(EntityKind.POST),
            positions=identity_map.position_count,
        )
        return identity_map
