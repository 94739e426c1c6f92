"""Errors raised by the build & publish pipeline.

Every error carries the HTTP status it maps to and a short message that is
safe to show to the client. Provider detail that should only reach the logs
goes in ``detail``.
"""
from typing import Any, Dict, Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    status_code: int = 500
    default_message: str = "Something went wrong. Please try again."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        provider_status: Optional[int] = None,
        detail: Any = None,
    ) -> None:
        self.message = message or self.default_message
        self.provider_status = provider_status
        self.detail = detail
        super().__init__(self.message)

    def to_response(self) -> Dict[str, str]:
        return {"error": self.message}


class NotFound(PipelineError):
    """Project or build absent, or not owned by the caller."""
    status_code = 404
    default_message = "Not found"


class ValidationError(PipelineError):
    """Malformed slug or request body."""
    status_code = 400
    default_message = "Invalid request"


class InvalidCredential(PipelineError):
    """The hosting provider rejected the access token."""
    status_code = 401
    default_message = "Invalid Vercel token. Please check your access token."


class InvalidToken(PipelineError):
    """Preview token does not match the latest complete build."""
    status_code = 403
    default_message = "Invalid token"


class UploadFailed(PipelineError):
    """A file upload was rejected by the hosting provider."""
    status_code = 500
    default_message = "Failed to upload files to Vercel."


class DeploymentFailed(PipelineError):
    """Deployment creation was rejected by the hosting provider."""
    status_code = 500
    default_message = "Deployment failed. Please try again."


class PublishingUnavailable(PipelineError):
    """The platform publishing credential is not configured."""
    status_code = 503
    default_message = "Publishing is not available right now. Please try again later."
