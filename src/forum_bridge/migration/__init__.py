"""
Import engine for Forum Bridge.

This package holds the identity map, the batch reader, the entity
importers, the reply linker, the post-import finalizer and the
``ImportScript`` base class that ties them together.
"""

from forum_bridge.migration.batches import Batch, iter_batches
from forum_bridge.migration.context import ImportContext
from forum_bridge.migration.coordinator import ImportScript, throttling_disabled
from forum_bridge.migration.finalizer import PostImportFinalizer
from forum_bridge.migration.identity_map import EntityKind, IdentityMap, TopicPosition
from forum_bridge.migration.importer import (
    AdoptedExisting,
    CategoryImporter,
    Created,
    Failed,
    PostBatchResult,
    PostImporter,
    UserImporter,
)
from forum_bridge.migration.linker import ReplyLinker, ReplyTarget
from forum_bridge.migration.records import CategoryAttributes, PostAttributes, UserAttributes

__all__ = [
    # Batch reading
    "Batch",
    "iter_batches",
    # Identity map
    "EntityKind",
    "IdentityMap",
    "TopicPosition",
    # Importers
    "ImportContext",
    "UserImporter",
    "CategoryImporter",
    "PostImporter",
    "PostBatchResult",
    "Created",
    "AdoptedExisting",
    "Failed",
    "UserAttributes",
    "CategoryAttributes",
    "PostAttributes",
    # Threading and finalization
    "ReplyLinker",
    "ReplyTarget",
    "PostImportFinalizer",
    # Runs
    "ImportScript",
    "throttling_disabled",
]
