"""Resume and ResumeVersion models for generated artifacts and their edit history."""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, utcnow


class Resume(Base, TimestampMixin):
    """One generation run's persisted output.

    Sub-documents (parsed JD, config, selection, resume content, cover letter,
    ATS score, token usage) are stored as JSON exactly as produced by their
    pydantic schemas.

    Status Flow:
        draft → exported → archived
    """

    __tablename__ = "resumes"

    # Primary Key - UUID
    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
        nullable=False,
    )

    # Target job
    company: Mapped[str] = mapped_column(String(255), nullable=False)
    job_title: Mapped[str] = mapped_column(String(255), nullable=False)
    jd_text: Mapped[str] = mapped_column(Text, nullable=False)

    # Pipeline artifacts
    parsed_jd: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    generation_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    relevance_selection: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    resume_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    cover_letter: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    ats_score: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    # Presentation and bookkeeping
    template_id: Mapped[str] = mapped_column(
        String(100), nullable=False, default="ats-classic"
    )
    prompt_version: Mapped[str] = mapped_column(String(20), nullable=False, default="v1")
    token_usage: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")

    # Optimistic lock; bumped by the ORM on every UPDATE
    lock_version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    versions: Mapped[List["ResumeVersion"]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        lazy="selectin",  # Async-friendly eager loading
        order_by="ResumeVersion.version_number",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'exported', 'archived')", name="ck_resumes_status"
        ),
        Index("idx_resumes_status", "status"),
        Index("idx_resumes_company", "company"),
    )

    __mapper_args__ = {"version_id_col": lock_version}

    def __repr__(self) -> str:
        return (
            f"<Resume(id={self.id}, company='{self.company}', "
            f"job_title='{self.job_title}', status={self.status})>"
        )


class ResumeVersion(Base):
    """Snapshot of resume content taken right before it was replaced."""

    __tablename__ = "resume_versions"

    # Primary Key - UUID
    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
        nullable=False,
    )

    # Foreign Key to Resume
    resume_id: Mapped[UUID] = mapped_column(
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 1-based, increasing per resume; orders the undo log independently of clock ties
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    resume_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    change_description: Mapped[str] = mapped_column(
        Text, nullable=False, default="Manual edit"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    resume: Mapped["Resume"] = relationship(back_populates="versions")

    __table_args__ = (
        UniqueConstraint(
            "resume_id", "version_number", name="uq_resume_versions_number"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ResumeVersion(resume_id={self.resume_id}, "
            f"version={self.version_number}, change='{self.change_description}')>"
        )
