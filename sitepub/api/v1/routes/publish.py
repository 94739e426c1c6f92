"""Publish endpoints: platform-hosted sites and slug availability."""
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Body, Depends, Query

from sitepub.api.dependencies import get_artifact_store, get_http_client, get_owned_project
from sitepub.core.artifacts.store import ArtifactStore
from sitepub.models.project import Project
from sitepub.schemas.publish import PublishRequest, PublishResponse, SlugCheckResponse, UnpublishResponse
from sitepub.services.publishing import SitePublisher
from sitepub.services.slug import SlugResolver
from sitepub.utils.logging import LogContext

router = APIRouter(prefix="/projects/{project_id}/publish", tags=["Publish"])


@router.post("", response_model=PublishResponse)
async def publish_site(
    request: Optional[PublishRequest] = Body(None),
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> PublishResponse:
    """Publish or re-publish the project's current build."""
    with LogContext(project_id=project.id):
        publisher = SitePublisher(store, http_client)
        outcome = await publisher.publish(project, slug=request.slug if request else None)

    return PublishResponse(url=outcome.url, slug=outcome.slug, deployment_id=outcome.deployment_id)


@router.get("")
async def get_publish_status(
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> Dict[str, Any]:
    """Owner view of the published site, including whether it is stale."""
    overview = await SitePublisher(store, http_client).overview(project)
    return overview.to_dict()


@router.delete("", response_model=UnpublishResponse)
async def unpublish_site(
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> UnpublishResponse:
    """Take the site offline. The record and slug are kept."""
    with LogContext(project_id=project.id):
        await SitePublisher(store, http_client).unpublish(project)
    return UnpublishResponse()


@router.get("/check-slug", response_model=SlugCheckResponse, response_model_exclude_none=True)
async def check_slug(
    slug: Optional[str] = Query(None),
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
) -> SlugCheckResponse:
    """Validate a candidate slug and check nobody else holds it."""
    check = await SlugResolver(store).check(slug, project.id)
    return SlugCheckResponse(available=check.available, reason=check.reason)
