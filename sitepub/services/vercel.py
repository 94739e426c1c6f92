"""Thin async client for the Vercel REST API."""
from typing import Any, Dict, Optional

import httpx

from sitepub.config import settings
from sitepub.utils.logging import get_logger

logger = get_logger(__name__)


class VercelAPIError(Exception):
    """Non-success response from the Vercel API."""

    def __init__(self, status_code: int, message: Optional[str] = None, body: Any = None) -> None:
        self.status_code = status_code
        self.message = message
        self.body = body
        super().__init__(f"Vercel API error {status_code}: {message or body}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "VercelAPIError":
        """Build an error from a response, pulling ``error.message`` if present."""
        try:
            body = response.json()
        except ValueError:
            return cls(response.status_code, body=response.text)

        message = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
        return cls(response.status_code, message=message, body=body)


class VercelClient:
    """Vercel API client bound to one access token.

    The HTTP client is supplied by the caller so connection pooling, timeouts
    and test transports stay under the caller's control.
    """

    def __init__(
        self,
        token: str,
        http_client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> None:
        self.token = token
        self.http_client = http_client
        self.base_url = (base_url or settings.vercel_api_url).rstrip("/")
        self.team_id = team_id

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _params(self) -> Dict[str, str]:
        return {"teamId": self.team_id} if self.team_id else {}

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    async def upload_file(self, content: bytes, digest: str) -> bool:
        """Upload raw file bytes keyed by their SHA-1 digest.

        Args:
            content: Raw file bytes
            digest: Hex SHA-1 of ``content``

        Returns:
            True if Vercel stored the file, False if it already had it

        Raises:
            VercelAPIError: On any other non-success response
        """
        response = await self.http_client.post(
            self._url("/v2/files"),
            params=self._params(),
            headers={
                **self._auth_headers(),
                "Content-Type": "application/octet-stream",
                "Content-Length": str(len(content)),
                "x-vercel-digest": digest,
            },
            content=content,
        )

        # 409 = same digest already stored
        if response.status_code == 409:
            return False
        if response.is_success:
            return True

        logger.error(
            "Vercel file upload failed",
            status=response.status_code,
            body=response.text,
            digest=digest,
        )
        raise VercelAPIError.from_response(response)

    async def create_deployment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a deployment from previously uploaded file references.

        Returns:
            Deployment object (``id``, ``url``, ``projectId``, ...)
        """
        response = await self.http_client.post(
            self._url("/v13/deployments"),
            params=self._params(),
            headers=self._auth_headers(),
            json=payload,
        )

        if not response.is_success:
            error = VercelAPIError.from_response(response)
            logger.error(
                "Vercel deployment failed",
                status=response.status_code,
                body=error.body,
            )
            raise error

        return response.json()

    async def add_project_domain(self, project_id: str, domain: str) -> bool:
        """Attach ``domain`` to a Vercel project.

        Returns:
            True if the domain was added, False if it was already assigned
        """
        response = await self.http_client.post(
            self._url(f"/v10/projects/{project_id}/domains"),
            params=self._params(),
            headers=self._auth_headers(),
            json={"name": domain},
        )

        if response.status_code == 409:
            return False
        if response.is_success:
            return True
        raise VercelAPIError.from_response(response)

    async def delete_project(self, project_id: str) -> None:
        """Delete a Vercel project with all its deployments and domains."""
        response = await self.http_client.delete(
            self._url(f"/v9/projects/{project_id}"),
            params=self._params(),
            headers=self._auth_headers(),
        )
        if not response.is_success and response.status_code != 404:
            raise VercelAPIError.from_response(response)
