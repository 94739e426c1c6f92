"""Build output endpoints: latest build summary and ZIP download."""
from fastapi import APIRouter, Depends, Response

from sitepub.api.dependencies import get_artifact_store, get_owned_project
from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import NotFound
from sitepub.models.project import Project
from sitepub.schemas.publish import BuildOutputResponse, BuildOutputSummary
from sitepub.services.packager import ZIP_MEDIA_TYPE, package_files
from sitepub.services.recovery import BuildRecoveryResolver
from sitepub.utils.logging import LogContext, get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/projects/{project_id}/build", tags=["Builds"])


@router.get("", response_model=BuildOutputResponse)
async def get_latest_build(
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
) -> BuildOutputResponse:
    """Latest build attempt of any status, without file contents."""
    output = await store.find_latest(project.id)
    if output is None:
        return BuildOutputResponse(output=None)
    return BuildOutputResponse(output=BuildOutputSummary.model_validate(output))


@router.get("/download")
async def download_build(
    project: Project = Depends(get_owned_project),
    store: ArtifactStore = Depends(get_artifact_store),
) -> Response:
    """Download the project's current build as a ZIP archive."""
    with LogContext(project_id=project.id):
        build = await BuildRecoveryResolver(store).resolve(project.id)
        if build is None:
            raise NotFound("No completed build found")

        package = package_files(build.files or [], project.name)
        logger.info("Build packaged", build_output_id=build.id, file_count=package.file_count)

    return Response(
        content=package.content,
        media_type=ZIP_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{package.filename}"'},
    )
