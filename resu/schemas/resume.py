"""Resume content schemas.

ResumeData is the canonical, versioned artifact of a generation run. Every
manual edit replaces it wholesale and pushes the previous content onto the
record's version history.
"""

from pydantic import BaseModel, Field


class ContactInfo(BaseModel):
    """Contact block shown in the resume header."""

    name: str
    email: str
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None


class ResumeExperienceItem(BaseModel):
    """Work experience with polished, keyword-optimized bullets."""

    title: str
    company: str
    location: str | None = None
    start_date: str
    end_date: str | None = Field(None, description="None means present")
    bullets: list[str] = Field(default_factory=list)


class ResumeEducationItem(BaseModel):
    """Education entry."""

    institution: str
    degree: str
    field: str
    start_date: str
    end_date: str | None = None
    gpa: str | None = None
    highlights: list[str] = Field(default_factory=list)


class ResumeProjectItem(BaseModel):
    """Project entry."""

    name: str
    description: str
    url: str | None = None
    highlights: list[str] = Field(default_factory=list)


class ResumeCertificationItem(BaseModel):
    """Certification entry."""

    name: str
    issuer: str
    date: str


class SkillCategory(BaseModel):
    """Named group of skills, e.g. "Languages" or "Frameworks"."""

    name: str
    skills: list[str] = Field(default_factory=list)


class ResumeSkillsSection(BaseModel):
    """Ordered skill categories. Names may repeat; order is display order."""

    categories: list[SkillCategory] = Field(default_factory=list)


class ResumeData(BaseModel):
    """Complete resume content ready for rendering."""

    contact: ContactInfo
    summary: str
    experience: list[ResumeExperienceItem] = Field(default_factory=list)
    education: list[ResumeEducationItem] = Field(default_factory=list)
    skills: ResumeSkillsSection = Field(default_factory=ResumeSkillsSection)
    projects: list[ResumeProjectItem] = Field(default_factory=list)
    certifications: list[ResumeCertificationItem] = Field(default_factory=list)
