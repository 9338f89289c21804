"""
Run-wide state shared by the importers.

Everything an import run mutates lives on one ``ImportContext`` that is
passed explicitly to each component.
"""

from dataclasses import dataclass, field

from forum_bridge.client.target_client import ForumTargetClient
from forum_bridge.migration.identity_map import IdentityMap
from forum_bridge.migration.records import UserAttributes
from forum_bridge.reporting.progress import ProgressPrinter


@dataclass
class ImportContext:
    """
    State of one import run.

    Attributes:
        target: Target platform client
        identity_map: Import id to target id mappings
        progress: Status line printer
        failed_users: User attribute sets that could not be imported
    """

    target: ForumTargetClient
    identity_map: IdentityMap
    progress: ProgressPrinter = field(default_factory=lambda: ProgressPrinter(enable=False))
    failed_users: list[UserAttributes] = field(default_factory=list)

    def record_failed_user(self, attrs: UserAttributes) -> None:
        self.failed_users.append(attrs)

    @classmethod
    def rehydrate(
        cls, target: ForumTargetClient, progress: ProgressPrinter | None = None
    ) -> "ImportContext":
        """Create a context whose identity map reflects what the target already holds."""
        return cls(
            target=target,
            identity_map=IdentityMap.rehydrate(target),
            progress=progress or ProgressPrinter(enable=False),
        )
