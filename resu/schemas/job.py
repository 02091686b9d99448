"""Parsed job description schema.

Produced once per pipeline run by the parsing step and treated as immutable
afterwards; the same shape is echoed back by the client on confirm.
"""

from typing import Literal, get_args

from pydantic import BaseModel, Field

SeniorityLevel = Literal[
    "intern",
    "junior",
    "mid",
    "senior",
    "staff",
    "principal",
    "lead",
    "manager",
    "director",
    "unknown",
]

SENIORITY_LEVELS: tuple[str, ...] = get_args(SeniorityLevel)


class ParsedJobDescription(BaseModel):
    """Structured job description extracted by the fast model."""

    company_name: str
    role_title: str
    seniority_level: SeniorityLevel = "unknown"
    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(
        default_factory=list,
        description="All important terms extracted from the job description"
    )
    responsibilities: list[str] = Field(default_factory=list)
    qualifications: list[str] = Field(default_factory=list)
    nice_to_haves: list[str] = Field(default_factory=list)
    industry_domain: str | None = Field(None, description="e.g. fintech, healthcare")
    team_size: str | None = None
    tech_stack: list[str] = Field(default_factory=list)
