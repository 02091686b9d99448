"""Relevance selection schemas.

Output of the selection step. The user reviews and edits this at the
checkpoint before it is sent back for final generation.
"""

from pydantic import BaseModel, Field


class SelectedBullet(BaseModel):
    """A profile bullet proposed for inclusion."""

    experience_id: str = ""
    bullet_index: int = Field(
        ..., ge=0, description="Index into the experience's bullets at selection time"
    )
    original_text: str
    relevance_score: float = Field(..., ge=0, le=100)
    matched_keywords: list[str] = Field(default_factory=list)


class SelectedExperience(BaseModel):
    """An experience entry and the bullets chosen from it."""

    experience_id: str
    include: bool = True
    selected_bullets: list[SelectedBullet] = Field(default_factory=list)


class RelevanceSelection(BaseModel):
    """Which profile items should be used to build the resume."""

    proposed_summary: str
    selected_experiences: list[SelectedExperience] = Field(default_factory=list)
    selected_skills: list[str] = Field(
        default_factory=list, description="Skill names to feature"
    )
    selected_projects: list[str] = Field(
        default_factory=list, description="Project IDs to include"
    )
    selected_certifications: list[str] = Field(
        default_factory=list, description="Certification IDs to include"
    )
    overall_match_score: float = Field(..., ge=0, le=100)

    def included_experiences(self) -> list[SelectedExperience]:
        return [exp for exp in self.selected_experiences if exp.include]
