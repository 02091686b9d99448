"""Database models for Resu."""

from .base import Base
from .resume import Resume, ResumeVersion

__all__ = [
    "Base",
    "Resume",
    "ResumeVersion",
]
