"""Database models package."""
from sitepub.models.user import User
from sitepub.models.project import Project
from sitepub.models.build import BuildConfig, BuildFramework, BuildOutput, BuildStatus
from sitepub.models.published_site import PublishedSite, PublishedSiteStatus

__all__ = [
    "User",
    "Project",
    "BuildConfig",
    "BuildFramework",
    "BuildOutput",
    "BuildStatus",
    "PublishedSite",
    "PublishedSiteStatus",
]
