"""Master career profile schemas.

The profile is the single source of truth for the candidate's career data.
Experiences, projects and certifications carry stable IDs so a relevance
selection can refer to them.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .resume import ContactInfo


class ProfileBullet(BaseModel):
    """Achievement bullet with tagging used by the selection step."""

    text: str
    tags: list[str] = Field(default_factory=list)
    category: Literal[
        "technical", "leadership", "impact", "collaboration", "process", "other"
    ] = "other"
    strength: int = Field(3, ge=1, le=5)


class ProfileExperience(BaseModel):
    """Work experience entry."""

    id: str
    title: str
    title_aliases: list[str] = Field(default_factory=list)
    company: str
    location: str | None = None
    start_date: str
    end_date: str | None = Field(None, description="None means present")
    bullets: list[ProfileBullet] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class ProfileSkill(BaseModel):
    """Skill with proficiency and grouping category."""

    name: str
    aliases: list[str] = Field(default_factory=list)
    proficiency: Literal["expert", "advanced", "intermediate"] = "intermediate"
    category: str = Field(..., description="e.g. frontend, backend, devops, tools")


class ProfileProject(BaseModel):
    id: str
    name: str
    description: str
    url: str | None = None
    tags: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)


class ProfileEducation(BaseModel):
    id: str
    institution: str
    degree: str
    field: str
    start_date: str
    end_date: str | None = None
    gpa: str | None = None
    highlights: list[str] = Field(default_factory=list)


class ProfileCertification(BaseModel):
    id: str
    name: str
    issuer: str
    date: str
    url: str | None = None
    tags: list[str] = Field(default_factory=list)


class ProfileAchievement(BaseModel):
    id: str
    title: str
    description: str
    tags: list[str] = Field(default_factory=list)


class PersonalProfile(BaseModel):
    """Full master profile loaded from disk."""

    contact: ContactInfo
    summary: str = Field(..., description="Default/base professional summary")
    experience: list[ProfileExperience] = Field(default_factory=list)
    skills: list[ProfileSkill] = Field(default_factory=list)
    education: list[ProfileEducation] = Field(default_factory=list)
    projects: list[ProfileProject] = Field(default_factory=list)
    certifications: list[ProfileCertification] = Field(default_factory=list)
    achievements: list[ProfileAchievement] = Field(default_factory=list)

    def find_experience(self, experience_id: str) -> ProfileExperience | None:
        return next((exp for exp in self.experience if exp.id == experience_id), None)
