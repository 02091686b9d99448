"""Cover letter schema."""

from typing import Literal

from pydantic import BaseModel, Field

Tone = Literal["formal", "professional", "conversational"]


class CoverLetterData(BaseModel):
    """Cover letter split into paragraphs for template rendering."""

    opening: str
    body_paragraphs: list[str] = Field(default_factory=list)
    closing: str
    tone: Tone = "professional"
