"""Published site database model."""
import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from sitepub.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PublishedSiteStatus(str, Enum):
    """Published site lifecycle status."""
    DEPLOYING = "deploying"
    READY = "ready"
    FAILED = "failed"
    DELETED = "deleted"      # Tombstone; the row and slug are kept


class PublishedSite(Base):
    """A project's live public site.

    One row per project. Unpublishing flips the status to ``deleted`` instead of
    removing the row so the slug stays reserved for its project.
    """

    __tablename__ = "published_sites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    # Lookup only; the site does not own the build row
    build_output_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("build_outputs.id"),
        nullable=False,
    )

    slug: Mapped[str] = mapped_column(String(48), nullable=False, unique=True, index=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False)

    vercel_project_id: Mapped[str] = mapped_column(String(100), nullable=False)
    vercel_deployment_id: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[PublishedSiteStatus] = mapped_column(
        SQLEnum(PublishedSiteStatus, values_callable=lambda x: [e.value for e in x], name="publishedsitestatus"),
        nullable=False,
        default=PublishedSiteStatus.DEPLOYING,
    )

    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    @property
    def is_live(self) -> bool:
        return self.status != PublishedSiteStatus.DELETED

    def __repr__(self) -> str:
        return f"<PublishedSite {self.slug} ({self.status.value})>"
