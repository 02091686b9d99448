"""Request and response schemas for the two-step generation API.

POST /generate/parse runs parsing and selection and stops at the checkpoint.
POST /generate/confirm takes the (possibly edited) selection and produces the
final resume, score and cover letter.
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from resu.config import settings

from .ats import ATSScoreResult
from .cover_letter import CoverLetterData, Tone
from .job import ParsedJobDescription
from .resume import ResumeData
from .selection import RelevanceSelection


class GenerationConfig(BaseModel):
    """User-provided options for a generation run."""

    company_name: str | None = Field(None, description="Hint for the JD parser")
    role_title: str | None = Field(None, description="Hint for the JD parser")
    tone: Tone = "professional"
    skills_to_emphasize: list[str] = Field(default_factory=list)
    target_page_length: Literal[1, 2] = 1
    template_id: str = Field(default_factory=lambda: settings.default_template_id)


class ParseTokenUsage(BaseModel):
    """Usage reported by the parse request (parsing + selection)."""

    parse_tokens: int = 0
    select_tokens: int = 0
    estimated_cost: float = 0.0


class ConfirmTokenUsage(BaseModel):
    """Usage reported by the confirm request and persisted on the record.

    Parse and select tokens were already reported by the parse request and are
    recorded here as zero.
    """

    parse_tokens: int = 0
    select_tokens: int = 0
    generate_tokens: int = 0
    cover_letter_tokens: int = 0
    total_cost: float = 0.0


class GenerateParseRequest(BaseModel):
    """Body of POST /generate/parse."""

    jd_text: str = Field(
        ...,
        min_length=50,
        description="Job description must be at least 50 characters"
    )
    config: GenerationConfig | None = None


class GenerateParseResponse(BaseModel):
    """Artifacts handed to the user for review at the checkpoint."""

    parsed_jd: ParsedJobDescription
    relevance_selection: RelevanceSelection
    token_usage: ParseTokenUsage


class GenerateConfirmRequest(BaseModel):
    """Body of POST /generate/confirm."""

    jd_text: str = Field(..., min_length=1)
    parsed_jd: ParsedJobDescription
    relevance_selection: RelevanceSelection
    config: GenerationConfig = Field(default_factory=GenerationConfig)


class GenerateConfirmResponse(BaseModel):
    """Final artifacts of a completed run."""

    id: UUID
    resume_data: ResumeData
    cover_letter: CoverLetterData
    ats_score: ATSScoreResult
    token_usage: ConfirmTokenUsage
