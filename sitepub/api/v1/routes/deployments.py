"""Deploy a project's build to the caller's own Vercel account."""
import httpx
from fastapi import APIRouter, Depends

from sitepub.api.dependencies import get_artifact_store, get_http_client, get_owned_project
from sitepub.config import settings
from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import ValidationError
from sitepub.models.project import Project
from sitepub.schemas.publish import DeployRequest, DeployResponse, ErrorResponse
from sitepub.services.deployment import deploy_project
from sitepub.services.vercel import VercelClient
from sitepub.utils.logging import LogContext, log_publish_activity

router = APIRouter(prefix="/projects/{project_id}/deploy", tags=["Deployments"])


@router.post(
    "/vercel",
    response_model=DeployResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def deploy_to_vercel(
    request: DeployRequest,
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> DeployResponse:
    """Upload the current build and create a Vercel deployment.

    The token is only used for this request and is never persisted.
    """
    token = (request.token or "").strip()
    if not token:
        raise ValidationError("Vercel access token is required")

    with LogContext(project_id=project.id):
        client = VercelClient(token, http_client, base_url=settings.vercel_api_url)
        result = await deploy_project(store, project, client)

    log_publish_activity(
        "Deployed to user Vercel account",
        project_id=project.id,
        details={"deployment_id": result.deployment_id, "uploaded_files": result.uploaded_files},
    )
    return DeployResponse(url=result.url, deployment_id=result.deployment_id)
