"""ATS score schemas."""

from typing import Literal

from pydantic import BaseModel, Field

SuggestionType = Literal["keyword", "format", "section", "length", "density"]
Severity = Literal["critical", "warning", "info"]


class ATSSuggestion(BaseModel):
    """Actionable hint produced by the scorer."""

    type: SuggestionType
    severity: Severity
    message: str


class ATSScoreResult(BaseModel):
    """Composite ATS compatibility score.

    The composite is 50% keyword match, 30% section completeness and 20%
    format quality.
    """

    score: int = Field(..., ge=0, le=100)
    keyword_match: int = Field(
        ..., ge=0, le=100, description="% of JD keywords found in the resume"
    )
    section_score: int = Field(..., ge=0, le=100)
    format_score: int = Field(
        ..., ge=0, le=100, description="Dates, bullet density, length"
    )
    suggestions: list[ATSSuggestion] = Field(default_factory=list)
