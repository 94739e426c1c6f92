"""Build, deploy and publish API schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from sitepub.models.build import BuildStatus


class ErrorResponse(BaseModel):
    """Every failure is reported as a single message."""

    error: str


class BuildOutputSummary(BaseModel):
    """Build attempt without its file contents."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    status: BuildStatus
    file_count: int
    error: Optional[str] = None
    preview_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BuildOutputResponse(BaseModel):
    output: Optional[BuildOutputSummary] = None


class DeployRequest(BaseModel):
    """Vercel credential supplied by the user. It is used once and never stored."""

    token: Optional[str] = None


class DeployResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    deployment_id: str = Field(..., alias="deploymentId")


class PublishRequest(BaseModel):
    slug: Optional[str] = Field(None, max_length=64)


class PublishResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    slug: str
    deployment_id: str = Field(..., alias="deploymentId")


class SlugCheckResponse(BaseModel):
    available: bool
    reason: Optional[str] = None


class UnpublishResponse(BaseModel):
    success: bool = True
