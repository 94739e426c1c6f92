"""Artifact store for build outputs and published sites.

Storage strategy:
- Build outputs are an append-only log: one row per build attempt, never
  deleted, with "current" derived as the newest row matching a status.
- Published sites are one row per project, updated in place and tombstoned
  instead of deleted.

The store owns no business rules. Every write is a single-row update
committed on its own; callers are written to be safely re-entrant.
"""
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sitepub.models.build import BuildConfig, BuildOutput, BuildStatus
from sitepub.models.project import Project
from sitepub.models.published_site import PublishedSite, PublishedSiteStatus
from sitepub.utils.logging import get_logger

logger = get_logger(__name__)


def mint_preview_token() -> str:
    """Create a fresh opaque preview credential for a build."""
    return secrets.token_hex(32)


class ArtifactStore:
    """
    Persistence facade over build output and published site rows.

    One store wraps one request-scoped session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_project(self, project_id: str, owner_id: Optional[int] = None) -> Optional[Project]:
        """Load a project, optionally requiring a specific owner."""
        stmt = select(Project).where(Project.id == project_id)
        if owner_id is not None:
            stmt = stmt.where(Project.owner_id == owner_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_build_config(self, project_id: str) -> Optional[BuildConfig]:
        result = await self.db.execute(
            select(BuildConfig).where(BuildConfig.project_id == project_id)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Build outputs: reads
    # ------------------------------------------------------------------

    async def _find_latest_with_files(self, project_id: str, status: BuildStatus) -> Optional[BuildOutput]:
        result = await self.db.execute(
            select(BuildOutput)
            .where(
                BuildOutput.project_id == project_id,
                BuildOutput.status == status,
                BuildOutput.file_count > 0,
            )
            .order_by(BuildOutput.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_latest_complete(self, project_id: str) -> Optional[BuildOutput]:
        """Newest ``complete`` build that has at least one file."""
        return await self._find_latest_with_files(project_id, BuildStatus.COMPLETE)

    async def find_latest_generating(self, project_id: str) -> Optional[BuildOutput]:
        """Newest ``generating`` build that has at least one file."""
        return await self._find_latest_with_files(project_id, BuildStatus.GENERATING)

    async def find_latest(self, project_id: str) -> Optional[BuildOutput]:
        """Newest build attempt of any status, with or without files."""
        result = await self.db.execute(
            select(BuildOutput)
            .where(BuildOutput.project_id == project_id)
            .order_by(BuildOutput.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count_builds(self, project_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(BuildOutput).where(BuildOutput.project_id == project_id)
        )
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Build outputs: writes
    # ------------------------------------------------------------------

    async def promote_to_complete(self, build: BuildOutput) -> BuildOutput:
        """Flip a build to ``complete`` in place. No-op if it already is."""
        if build.status == BuildStatus.COMPLETE:
            return build

        await self.db.execute(
            update(BuildOutput)
            .where(
                BuildOutput.id == build.id,
                BuildOutput.status == BuildStatus.GENERATING,
            )
            .values(status=BuildStatus.COMPLETE, updated_at=datetime.now(timezone.utc))
        )
        await self.db.commit()
        await self.db.refresh(build)
        return build

    async def create_build(
        self,
        project_id: str,
        build_config_id: Optional[str] = None,
    ) -> BuildOutput:
        """Start a new build attempt with an empty file set."""
        build = BuildOutput(
            project_id=project_id,
            build_config_id=build_config_id,
            status=BuildStatus.GENERATING,
            files=[],
            preview_token=mint_preview_token(),
        )
        self.db.add(build)
        await self.db.commit()
        await self.db.refresh(build)
        logger.info("Created build output", project_id=project_id, build_output_id=build.id)
        return build

    async def append_files(self, build: BuildOutput, files: List[Dict[str, Any]]) -> BuildOutput:
        """Append generated files.

        The list is reassigned, never mutated in place: assignment is what
        keeps `file_count` in step, and recovery only selects rows whose
        `file_count` is positive. Writers must go through this method rather
        than a bulk UPDATE of `files`.
        """
        build.files = list(build.files or []) + [
            {"path": f["path"], "content": f["content"]} for f in files
        ]
        await self.db.commit()
        return build

    async def mark_complete(self, build: BuildOutput) -> BuildOutput:
        build.status = BuildStatus.COMPLETE
        await self.db.commit()
        return build

    async def mark_failed(self, build: BuildOutput, error: str) -> BuildOutput:
        build.status = BuildStatus.FAILED
        build.error = error
        await self.db.commit()
        return build

    # ------------------------------------------------------------------
    # Published sites
    # ------------------------------------------------------------------

    async def find_published_site(self, project_id: str) -> Optional[PublishedSite]:
        """The project's site row, tombstoned or not."""
        result = await self.db.execute(
            select(PublishedSite).where(PublishedSite.project_id == project_id)
        )
        return result.scalar_one_or_none()

    async def find_site_by_slug(
        self,
        slug: str,
        exclude_project_id: Optional[str] = None,
    ) -> Optional[PublishedSite]:
        """Site holding ``slug``, ignoring the given project's own row."""
        stmt = select(PublishedSite).where(PublishedSite.slug == slug)
        if exclude_project_id is not None:
            stmt = stmt.where(PublishedSite.project_id != exclude_project_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def upsert_published_site(
        self,
        *,
        project_id: str,
        build_output_id: str,
        slug: str,
        url: str,
        vercel_project_id: str,
        vercel_deployment_id: str,
        status: PublishedSiteStatus = PublishedSiteStatus.READY,
    ) -> PublishedSite:
        """Create the project's site row or point the existing one at a new build."""
        site = await self.find_published_site(project_id)
        now = datetime.now(timezone.utc)

        if site is None:
            site = PublishedSite(
                project_id=project_id,
                build_output_id=build_output_id,
                slug=slug,
                url=url,
                vercel_project_id=vercel_project_id,
                vercel_deployment_id=vercel_deployment_id,
                status=status,
                published_at=now,
            )
            self.db.add(site)
        else:
            site.build_output_id = build_output_id
            site.slug = slug
            site.url = url
            site.vercel_project_id = vercel_project_id
            site.vercel_deployment_id = vercel_deployment_id
            site.status = status
            site.published_at = now

        await self.db.commit()
        await self.db.refresh(site)
        return site

    async def tombstone_site(self, site: PublishedSite) -> PublishedSite:
        """Mark a site deleted. The row and its slug are retained."""
        site.status = PublishedSiteStatus.DELETED
        await self.db.commit()
        return site
