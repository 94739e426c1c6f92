"""Public publish status for the banner embedded in preview deployments.

No user session is available here: the banner runs cross-origin inside the
preview site, so access is gated by the build's preview token instead.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from sitepub.api.dependencies import get_artifact_store
from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import PipelineError
from sitepub.services.publish_status import PublishStatusTracker
from sitepub.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/projects/{project_id}/preview", tags=["Preview"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@router.get("/status")
async def preview_status(
    project_id: str,
    token: Optional[str] = Query(None),
    store: ArtifactStore = Depends(get_artifact_store),
) -> JSONResponse:
    """Report whether the project is published and whether the live copy is current."""
    if not token:
        return JSONResponse({"error": "Missing token"}, status_code=401, headers=CORS_HEADERS)

    try:
        status = await PublishStatusTracker(store).get_status(project_id, token)
    except PipelineError as e:
        return JSONResponse(e.to_response(), status_code=e.status_code, headers=CORS_HEADERS)
    except Exception as e:
        logger.error("Preview status failed", project_id=project_id, error=str(e), exc_info=True)
        return JSONResponse({"error": "Internal error"}, status_code=500, headers=CORS_HEADERS)

    return JSONResponse(status.to_dict(), headers=CORS_HEADERS)


@router.options("/status")
async def preview_status_preflight(project_id: str) -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)
