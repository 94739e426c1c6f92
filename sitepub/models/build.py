"""Build configuration and build output models."""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, validates

from sitepub.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildFramework(str, Enum):
    """Target framework a project is generated for."""
    NEXTJS = "nextjs"
    VITE_REACT = "vite_react"
    HTML = "html"


class BuildStatus(str, Enum):
    """Build attempt lifecycle status."""
    PENDING = "pending"          # Queued, no generation yet
    GENERATING = "generating"    # Generation job running (or killed mid-run)
    COMPLETE = "complete"        # Files written and marked done
    FAILED = "failed"            # Generation reported an error


class BuildConfig(Base):
    """Per-project build settings. Read-only for the publish pipeline."""

    __tablename__ = "build_configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    framework: Mapped[str] = mapped_column(String(50), nullable=False, default=BuildFramework.NEXTJS.value)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class BuildOutput(Base):
    """One build attempt for a project.

    Rows are never deleted or rewritten once superseded; the "current" build is
    always derived by querying the newest row with a usable status.
    """

    __tablename__ = "build_outputs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    build_config_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("build_configs.id"),
        nullable=True,
    )

    status: Mapped[BuildStatus] = mapped_column(
        SQLEnum(BuildStatus, values_callable=lambda x: [e.value for e in x], name="buildstatus"),
        nullable=False,
        default=BuildStatus.PENDING,
    )
    # Ordered list of {"path": ..., "content": ...}
    files: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )
    # Mirrors len(files) so "has output" can be filtered in SQL. Only assignment
    # of `files` updates it; bulk UPDATEs and in-place list edits leave it stale.
    file_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    preview_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    preview_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    @validates("files")
    def _sync_file_count(self, key: str, value: Optional[List[Dict[str, Any]]]) -> Optional[List[Dict[str, Any]]]:
        self.file_count = len(value or [])
        return value

    def __repr__(self) -> str:
        return f"<BuildOutput {self.id} ({self.status.value})>"
