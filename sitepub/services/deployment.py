"""Deployment publisher: content-addressed upload followed by deployment creation.

Every step is idempotent. Uploads are keyed by content hash, so a retry after
a partial failure re-sends the same digests and Vercel answers "already
exists" for whatever it kept. Nothing needs cleaning up on failure.
"""
import asyncio
import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

import httpx

from sitepub.config import settings
from sitepub.core.exceptions import DeploymentFailed, InvalidCredential, NotFound, UploadFailed
from sitepub.models.build import BuildFramework
from sitepub.services.recovery import BuildRecoveryResolver
from sitepub.services.slug import slugify
from sitepub.services.vercel import VercelAPIError, VercelClient
from sitepub.utils.logging import get_logger

if TYPE_CHECKING:
    from sitepub.core.artifacts.store import ArtifactStore
    from sitepub.models.project import Project

logger = get_logger(__name__)

# Statuses Vercel uses for a rejected token
AUTH_FAILURE_STATUSES = frozenset({401, 403})

VERCEL_FRAMEWORKS: Dict[str, str] = {
    BuildFramework.NEXTJS.value: "nextjs",
    BuildFramework.VITE_REACT.value: "vite",
}


def content_hash(content: bytes) -> str:
    """Vercel's deduplication key: hex SHA-1 of the raw bytes."""
    return hashlib.sha1(content).hexdigest()


def to_vercel_framework(framework: Optional[str]) -> Optional[str]:
    """Map a build framework to Vercel's preset name; unknown maps to None."""
    if framework is None:
        return None
    return VERCEL_FRAMEWORKS.get(framework)


@dataclass
class FileRef:
    """A file Vercel has, as referenced by a deployment."""
    file: str
    sha: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "sha": self.sha, "size": self.size}


@dataclass
class DeploymentResult:
    """Outcome of a successful publish."""
    url: str
    deployment_id: str
    vercel_project_id: Optional[str]
    uploaded_files: int
    reused_files: int
    bytes_transferred: int


class DeploymentPublisher:
    """Pushes a build's files to Vercel and requests a deployment."""

    def __init__(self, client: VercelClient, upload_concurrency: Optional[int] = None) -> None:
        self.client = client
        self.upload_concurrency = max(1, upload_concurrency or settings.vercel_upload_concurrency)

    async def _upload_one(
        self,
        entry: Dict[str, Any],
        semaphore: asyncio.Semaphore,
    ) -> Tuple[FileRef, bool]:
        content = entry["content"].encode("utf-8")
        sha = content_hash(content)
        ref = FileRef(file=entry["path"], sha=sha, size=len(content))

        async with semaphore:
            try:
                created = await self.client.upload_file(content, sha)
            except VercelAPIError as e:
                if e.status_code in AUTH_FAILURE_STATUSES:
                    raise InvalidCredential(provider_status=e.status_code, detail=e.body) from e
                raise UploadFailed(provider_status=e.status_code, detail=e.body) from e
            except httpx.HTTPError as e:
                logger.error("Vercel upload request error", path=entry["path"], error=str(e))
                raise UploadFailed(detail=str(e)) from e

        return ref, created

    async def upload_files(self, files: Sequence[Dict[str, Any]]) -> List[Tuple[FileRef, bool]]:
        """Upload every file concurrently and wait for all of them.

        A credential failure takes precedence over other failures so the caller
        always sees the actionable error.
        """
        semaphore = asyncio.Semaphore(self.upload_concurrency)
        results = await asyncio.gather(
            *(self._upload_one(entry, semaphore) for entry in files),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures:
                if isinstance(failure, InvalidCredential):
                    raise failure
            raise failures[0]

        return results  # type: ignore[return-value]

    async def publish(
        self,
        files: Sequence[Dict[str, Any]],
        name: str,
        framework: Optional[str] = None,
        target: Optional[str] = None,
    ) -> DeploymentResult:
        """Upload ``files`` and create a deployment named ``name``.

        Args:
            files: Build file entries ({"path", "content"})
            name: Vercel project name for the deployment
            framework: Internal build framework identifier
            target: Optional deployment target (e.g. "production")

        Returns:
            DeploymentResult with the public URL and deployment ID

        Raises:
            InvalidCredential: Vercel rejected the token
            UploadFailed: A file upload failed
            DeploymentFailed: Deployment creation failed
        """
        uploads = await self.upload_files(files)
        refs = [ref for ref, _ in uploads]
        uploaded = [ref for ref, created in uploads if created]

        payload: Dict[str, Any] = {
            "name": name,
            "files": [ref.to_dict() for ref in refs],
            "projectSettings": {"framework": to_vercel_framework(framework)},
        }
        if target:
            payload["target"] = target

        try:
            deployment = await self.client.create_deployment(payload)
        except VercelAPIError as e:
            if e.status_code in AUTH_FAILURE_STATUSES:
                raise InvalidCredential(provider_status=e.status_code, detail=e.body) from e
            raise DeploymentFailed(e.message, provider_status=e.status_code, detail=e.body) from e
        except httpx.HTTPError as e:
            logger.error("Vercel deployment request error", error=str(e))
            raise DeploymentFailed(detail=str(e)) from e

        result = DeploymentResult(
            url=f"https://{deployment['url']}",
            deployment_id=deployment["id"],
            vercel_project_id=deployment.get("projectId"),
            uploaded_files=len(uploaded),
            reused_files=len(refs) - len(uploaded),
            bytes_transferred=sum(ref.size for ref in uploaded),
        )
        logger.info(
            "Vercel deployment created",
            name=name,
            deployment_id=result.deployment_id,
            uploaded_files=result.uploaded_files,
            reused_files=result.reused_files,
            bytes_transferred=result.bytes_transferred,
        )
        return result


async def deploy_project(store: "ArtifactStore", project: "Project", client: VercelClient) -> DeploymentResult:
    """Deploy a project's current build to the account behind ``client``.

    Raises:
        NotFound: The project has no usable build
        InvalidCredential, UploadFailed, DeploymentFailed: See DeploymentPublisher.publish
    """
    build = await BuildRecoveryResolver(store).resolve(project.id)
    if build is None:
        raise NotFound("No completed build found. Build your project first.")

    config = await store.get_build_config(project.id)
    publisher = DeploymentPublisher(client)
    return await publisher.publish(
        build.files or [],
        name=slugify(project.name) or "project",
        framework=config.framework if config else None,
    )
