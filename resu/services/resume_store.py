"""Resume persistence with an append-only version trail.

Every replacement of a resume's content first pushes the current content onto
``resume_versions`` inside the same transaction, so the version list is a
complete undo log.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from resu.exceptions import ConcurrentModification, NotFound
from resu.models import Resume, ResumeVersion
from resu.models.base import utcnow
from resu.schemas.ats import ATSScoreResult
from resu.schemas.cover_letter import CoverLetterData
from resu.schemas.generation import ConfirmTokenUsage, GenerationConfig
from resu.schemas.job import ParsedJobDescription
from resu.schemas.record import (
    ResumeDetail,
    ResumeListItem,
    ResumeUpdate,
    ResumeVersionResponse,
)
from resu.schemas.resume import ResumeData
from resu.schemas.selection import RelevanceSelection
from resu.services.ats_scorer import score_ats

logger = logging.getLogger(__name__)


def apply_with_history(
    resume: Resume, field_name: str, new_value: Any, change_description: str
) -> ResumeVersion:
    """Snapshot the current value of a versioned field, then replace it.

    The snapshot and the new value are attached to the same session state, so
    they are committed (or rolled back) together.

    Args:
        resume: Loaded Resume row
        field_name: Versioned column on Resume (currently only "resume_data")
        new_value: JSON-ready replacement value
        change_description: Human-readable reason stored on the snapshot

    Returns:
        The new ResumeVersion holding the pre-mutation value
    """
    next_number = max((v.version_number for v in resume.versions), default=0) + 1
    version = ResumeVersion(
        version_number=next_number,
        resume_data=getattr(resume, field_name),
        change_description=change_description,
    )
    resume.versions.append(version)
    setattr(resume, field_name, new_value)
    return version


class ResumeStore:
    """CRUD access to stored resumes, bound to one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, resume_id: UUID) -> Resume:
        result = await self.db.execute(select(Resume).where(Resume.id == resume_id))
        resume = result.scalar_one_or_none()
        if resume is None:
            raise NotFound(f"Resume {resume_id} not found")
        return resume

    async def _commit_write(self, resume_id: UUID) -> None:
        """Commit a change to an existing record, rolling back on any error.

        Raises:
            ConcurrentModification: If another transaction changed the record
                (or added a version) since it was loaded
        """
        try:
            await self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            await self.db.rollback()
            logger.warning(f"Concurrent modification of resume {resume_id}: {e}")
            raise ConcurrentModification(
                f"Resume {resume_id} was modified by another request; reload and retry"
            ) from e
        except Exception:
            await self.db.rollback()
            raise

    async def create(
        self,
        *,
        jd_text: str,
        parsed_jd: ParsedJobDescription,
        generation_config: GenerationConfig,
        relevance_selection: RelevanceSelection,
        resume_data: ResumeData,
        cover_letter: CoverLetterData | None,
        ats_score: ATSScoreResult,
        prompt_version: str,
        token_usage: ConfirmTokenUsage,
    ) -> UUID:
        """Persist a new resume in draft status with no version history.

        Returns:
            The new resume's UUID
        """
        resume = Resume(
            company=parsed_jd.company_name,
            job_title=parsed_jd.role_title,
            jd_text=jd_text,
            parsed_jd=parsed_jd.model_dump(mode="json"),
            generation_config=generation_config.model_dump(mode="json"),
            relevance_selection=relevance_selection.model_dump(mode="json"),
            resume_data=resume_data.model_dump(mode="json"),
            cover_letter=cover_letter.model_dump(mode="json") if cover_letter else None,
            ats_score=ats_score.model_dump(mode="json"),
            template_id=generation_config.template_id,
            prompt_version=prompt_version,
            token_usage=token_usage.model_dump(mode="json"),
            status="draft",
            versions=[],
        )
        try:
            self.db.add(resume)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Created resume {resume.id}: {resume.job_title} at {resume.company}")
        return resume.id

    async def update(self, resume_id: UUID, changes: ResumeUpdate) -> ResumeDetail:
        """Apply a partial update, snapshotting resume content first.

        When ``changes.resume_data`` is set, the current content is stored as a
        new version tagged with ``changes.change_description`` and the ATS
        score is recomputed against the stored job description.

        Raises:
            NotFound: If the resume does not exist
            ConcurrentModification: If another request changed the resume first
        """
        resume = await self._load(resume_id)

        try:
            if changes.resume_data is not None:
                apply_with_history(
                    resume,
                    "resume_data",
                    changes.resume_data.model_dump(mode="json"),
                    changes.change_description,
                )
                rescored = score_ats(
                    changes.resume_data,
                    ParsedJobDescription.model_validate(resume.parsed_jd),
                )
                resume.ats_score = rescored.model_dump(mode="json")
            if changes.cover_letter is not None:
                resume.cover_letter = changes.cover_letter.model_dump(mode="json")
            if changes.template_id is not None:
                resume.template_id = changes.template_id
            if changes.status is not None:
                resume.status = changes.status

            resume.updated_at = utcnow()
        except Exception:
            await self.db.rollback()
            raise
        await self._commit_write(resume_id)

        logger.info(
            f"Updated resume {resume_id} "
            f"({len(resume.versions)} version(s), change='{changes.change_description}')"
        )
        return await self.get(resume_id)

    async def get(self, resume_id: UUID) -> ResumeDetail:
        """Return the full record with versions newest-first.

        Raises:
            NotFound: If the resume does not exist
        """
        resume = await self._load(resume_id)
        result = await self.db.execute(
            select(ResumeVersion)
            .where(ResumeVersion.resume_id == resume_id)
            .order_by(ResumeVersion.version_number.desc())
        )
        versions = result.scalars().all()

        detail = ResumeDetail.model_validate(resume, from_attributes=True)
        detail.versions = [ResumeVersionResponse.model_validate(v) for v in versions]
        return detail

    async def list_all(self) -> list[ResumeListItem]:
        """Return lightweight summaries, newest first."""
        result = await self.db.execute(
            select(Resume).order_by(Resume.created_at.desc())
        )
        return [
            ResumeListItem(
                id=resume.id,
                company=resume.company,
                job_title=resume.job_title,
                ats_score=resume.ats_score.get("score", 0),
                status=resume.status,
                template_id=resume.template_id,
                created_at=resume.created_at,
                updated_at=resume.updated_at,
            )
            for resume in result.scalars().all()
        ]

    async def delete(self, resume_id: UUID) -> None:
        """Delete a resume and, by cascade, its versions.

        Raises:
            NotFound: If the resume does not exist
            ConcurrentModification: If another request changed the resume first
        """
        resume = await self._load(resume_id)
        try:
            await self.db.delete(resume)
        except Exception:
            await self.db.rollback()
            raise
        await self._commit_write(resume_id)
        logger.info(f"Deleted resume {resume_id}")
