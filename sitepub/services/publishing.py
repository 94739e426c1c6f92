"""Publishing a project under the platform's own Vercel account.

Publish is safe to retry end to end: uploads are content-addressed, domain
assignment treats "already assigned" as success, and the site row is upserted.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from sitepub.config import settings
from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import (
    DeploymentFailed,
    InvalidCredential,
    NotFound,
    PublishingUnavailable,
    ValidationError,
)
from sitepub.models.project import Project
from sitepub.models.published_site import PublishedSite
from sitepub.services.deployment import DeploymentPublisher
from sitepub.services.recovery import BuildRecoveryResolver
from sitepub.services.slug import SlugResolver
from sitepub.services.vercel import VercelAPIError, VercelClient
from sitepub.utils.logging import get_logger, log_publish_activity

logger = get_logger(__name__)

CONFIGURATION_ERROR = "Publishing service configuration error. Please contact support."
NO_BUILD_MESSAGE = "No completed build found. Build your project first."


@dataclass
class PublishOutcome:
    url: str
    slug: str
    deployment_id: str


@dataclass
class SiteOverview:
    """Owner-facing view of a project's published site."""
    published: bool
    url: Optional[str] = None
    slug: Optional[str] = None
    status: Optional[str] = None
    published_at: Optional[datetime] = None
    is_stale: bool = False

    def to_dict(self) -> Dict[str, Any]:
        if not self.published:
            return {"published": False}
        return {
            "published": True,
            "url": self.url,
            "slug": self.slug,
            "status": self.status,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "isStale": self.is_stale,
        }


class SitePublisher:
    """Publishes, inspects and unpublishes a project's public site."""

    def __init__(
        self,
        store: ArtifactStore,
        http_client: httpx.AsyncClient,
        token: Optional[str] = None,
        team_id: Optional[str] = None,
        publish_domain: Optional[str] = None,
        project_prefix: Optional[str] = None,
    ) -> None:
        self.store = store
        self.http_client = http_client
        self.token = token if token is not None else settings.vercel_publish_token
        self.team_id = team_id if team_id is not None else settings.vercel_team_id
        self.publish_domain = publish_domain or settings.publish_domain
        self.project_prefix = project_prefix or settings.publish_project_prefix
        self.resolver = BuildRecoveryResolver(store)
        self.slugs = SlugResolver(store)

    def _client(self) -> VercelClient:
        if not self.token:
            logger.error("Platform Vercel token not configured")
            raise PublishingUnavailable()
        return VercelClient(self.token, self.http_client, team_id=self.team_id)

    def vercel_project_name(self, project_id: str) -> str:
        """Deterministic Vercel project name so re-publishes land on the same project."""
        return f"{self.project_prefix}-{project_id.replace('-', '')[:8]}"

    async def _choose_slug(self, project: Project, requested: Optional[str]) -> str:
        if requested is None:
            return await self.slugs.unique_slug(project.name, project.id)

        check = await self.slugs.check(requested, project.id)
        if not check.available:
            raise ValidationError(check.reason)
        return requested.strip().lower()

    async def _assign_domain(self, client: VercelClient, vercel_project_id: str, domain: str) -> None:
        # The site stays reachable at its deployment URL if this fails
        try:
            await client.add_project_domain(vercel_project_id, domain)
        except (VercelAPIError, httpx.HTTPError) as e:
            logger.warning("Domain assignment failed", domain=domain, error=str(e))

    async def publish(self, project: Project, slug: Optional[str] = None) -> PublishOutcome:
        """Publish or re-publish the project's current build.

        Raises:
            PublishingUnavailable: No platform token configured
            NotFound: No usable build
            ValidationError: Requested slug is malformed or taken
            DeploymentFailed: Vercel rejected the upload or deployment
        """
        client = self._client()

        build = await self.resolver.resolve(project.id)
        if build is None:
            raise NotFound(NO_BUILD_MESSAGE)

        chosen_slug = await self._choose_slug(project, slug)
        config = await self.store.get_build_config(project.id)
        name = self.vercel_project_name(project.id)

        publisher = DeploymentPublisher(client)
        try:
            result = await publisher.publish(
                build.files or [],
                name=name,
                framework=config.framework if config else None,
                target="production",
            )
        except InvalidCredential as e:
            # The platform token is ours, not the caller's
            raise DeploymentFailed(CONFIGURATION_ERROR, provider_status=e.provider_status) from e

        vercel_project_id = result.vercel_project_id or name
        domain = f"{chosen_slug}.{self.publish_domain}"
        await self._assign_domain(client, vercel_project_id, domain)

        site = await self.store.upsert_published_site(
            project_id=project.id,
            build_output_id=build.id,
            slug=chosen_slug,
            url=f"https://{domain}",
            vercel_project_id=vercel_project_id,
            vercel_deployment_id=result.deployment_id,
        )
        log_publish_activity(
            "Site published",
            project_id=project.id,
            build_output_id=build.id,
            details={"slug": site.slug, "deployment_id": result.deployment_id},
        )
        return PublishOutcome(url=site.url, slug=site.slug, deployment_id=result.deployment_id)

    async def overview(self, project: Project) -> SiteOverview:
        site = await self.store.find_published_site(project.id)
        if site is None or not site.is_live:
            return SiteOverview(published=False)

        latest = await self.store.find_latest_complete(project.id)
        return SiteOverview(
            published=True,
            url=site.url,
            slug=site.slug,
            status=site.status.value,
            published_at=site.published_at,
            is_stale=latest is not None and latest.id != site.build_output_id,
        )

    async def unpublish(self, project: Project) -> PublishedSite:
        """Take the site down and tombstone its row.

        Provider cleanup is best effort; the tombstone is written regardless.
        """
        site = await self.store.find_published_site(project.id)
        if site is None or not site.is_live:
            raise NotFound("Not published")

        if self.token and site.vercel_project_id:
            client = VercelClient(self.token, self.http_client, team_id=self.team_id)
            try:
                await client.delete_project(site.vercel_project_id)
            except (VercelAPIError, httpx.HTTPError) as e:
                logger.warning(
                    "Failed to delete Vercel project",
                    vercel_project_id=site.vercel_project_id,
                    error=str(e),
                )

        site = await self.store.tombstone_site(site)
        log_publish_activity("Site unpublished", project_id=project.id, details={"slug": site.slug})
        return site
