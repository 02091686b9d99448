"""Stored resume endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from resu.database import get_db
from resu.exceptions import ConcurrentModification, NotFound
from resu.schemas.record import ResumeDetail, ResumeListItem, ResumeUpdate
from resu.services.resume_store import ResumeStore

router = APIRouter(prefix="/api/v1/resumes", tags=["resumes"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=list[ResumeListItem])
async def list_resumes(db: AsyncSession = Depends(get_db)):
    """List stored resumes, newest first."""
    return await ResumeStore(db).list_all()


@router.get("/{resume_id}", response_model=ResumeDetail)
async def get_resume(resume_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a stored resume with its version history."""
    try:
        return await ResumeStore(db).get(resume_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Resume not found")


@router.put("/{resume_id}", response_model=ResumeDetail)
async def update_resume(
    resume_id: UUID,
    request: ResumeUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a stored resume.

    Replacing ``resume_data`` snapshots the previous content as a new version
    and recomputes the ATS score.

    Returns 409 if another request changed the resume in the meantime.
    """
    try:
        return await ResumeStore(db).update(resume_id, request)
    except NotFound:
        raise HTTPException(status_code=404, detail="Resume not found")
    except ConcurrentModification as e:
        raise HTTPException(status_code=409, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to update resume {resume_id}: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update resume: {str(e)}"
        )


@router.delete("/{resume_id}", status_code=204)
async def delete_resume(resume_id: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a stored resume and its versions."""
    try:
        await ResumeStore(db).delete(resume_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Resume not found")
    except ConcurrentModification as e:
        raise HTTPException(status_code=409, detail=e.message)
