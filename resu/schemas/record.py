"""Schemas for stored resumes and their version history."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from .ats import ATSScoreResult
from .cover_letter import CoverLetterData
from .generation import GenerationConfig
from .job import ParsedJobDescription
from .resume import ResumeData
from .selection import RelevanceSelection

ResumeStatus = Literal["draft", "exported", "archived"]


class ResumeVersionResponse(BaseModel):
    """A resume snapshot taken before an edit."""

    id: UUID
    version_number: int
    resume_data: ResumeData
    change_description: str
    created_at: datetime

    class Config:
        from_attributes = True


class ResumeListItem(BaseModel):
    """Lightweight row for the dashboard list."""

    id: UUID
    company: str
    job_title: str
    ats_score: int
    status: ResumeStatus
    template_id: str
    created_at: datetime
    updated_at: datetime


class ResumeDetail(BaseModel):
    """Full stored record plus versions, newest first."""

    id: UUID
    company: str
    job_title: str
    jd_text: str
    parsed_jd: ParsedJobDescription
    generation_config: GenerationConfig
    relevance_selection: RelevanceSelection
    resume_data: ResumeData
    cover_letter: CoverLetterData | None = None
    ats_score: ATSScoreResult
    template_id: str
    prompt_version: str
    status: ResumeStatus
    token_usage: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
    versions: list[ResumeVersionResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ResumeUpdate(BaseModel):
    """Partial update body for PUT /resumes/{id}."""

    resume_data: ResumeData | None = None
    cover_letter: CoverLetterData | None = None
    template_id: str | None = Field(None, min_length=1)
    status: ResumeStatus | None = None
    change_description: str = "Manual edit"
