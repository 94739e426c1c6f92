"""Build recovery: pick the build to act on, healing interrupted generations.

A generation job can be killed by an execution time limit after it has
written files but before it marks the row ``complete``. Rather than making
the user regenerate, the next read promotes that row in place using the only
evidence available locally: it has output.
"""
from typing import Optional

from sitepub.core.artifacts.store import ArtifactStore
from sitepub.models.build import BuildOutput
from sitepub.utils.logging import get_logger

logger = get_logger(__name__)


class BuildRecoveryResolver:
    """Resolves the authoritative build for a project."""

    def __init__(self, store: ArtifactStore) -> None:
        self.store = store

    async def resolve(self, project_id: str) -> Optional[BuildOutput]:
        """Return the newest usable build, or None if there is nothing to act on.

        Rows with no files are never returned, whatever their status.
        """
        build = await self.store.find_latest_complete(project_id)
        if build is not None:
            return build

        pending = await self.store.find_latest_generating(project_id)
        if pending is None:
            logger.info("No usable build", project_id=project_id)
            return None

        logger.warning(
            "Promoting interrupted build to complete",
            project_id=project_id,
            build_output_id=pending.id,
            file_count=pending.file_count,
        )
        return await self.store.promote_to_complete(pending)
