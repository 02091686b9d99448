"""Generation endpoints: parse-and-select, then confirm after review."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from resu.database import get_db
from resu.exceptions import ConcurrencyRejected, ResuError, ValidationFailed
from resu.schemas.generation import (
    GenerateConfirmRequest,
    GenerateConfirmResponse,
    GenerateParseRequest,
    GenerateParseResponse,
)
from resu.schemas.profile import PersonalProfile
from resu.services.pipeline import GenerationPipeline, get_pipeline
from resu.services.profile import get_profile
from resu.services.resume_store import ResumeStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/generate", tags=["generate"])


def _to_http(e: ResuError) -> HTTPException:
    """Map a pipeline failure to the HTTP error callers see."""
    if isinstance(e, ConcurrencyRejected):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": e.message},
        )
    if isinstance(e, ValidationFailed) and e.step is None:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": e.message},
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": e.message, "step": e.step},
    )


@router.post("/parse", response_model=GenerateParseResponse)
async def parse_job_description(
    request: GenerateParseRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
    profile: PersonalProfile = Depends(get_profile),
):
    """Parse a job description and propose which profile items to use.

    The response is the review checkpoint: edit ``relevance_selection`` and
    send it to POST /generate/confirm.

    Raises:
        HTTPException 429: Another generation is in progress
        HTTPException 500: A generation step failed (``step`` names it)
    """
    try:
        logger.info(f"Parsing job description ({len(request.jd_text)} chars)")
        return await pipeline.start(request.jd_text, request.config, profile)
    except ResuError as e:
        logger.error(f"Parse failed: {e}")
        raise _to_http(e)


@router.post("/confirm", response_model=GenerateConfirmResponse, status_code=201)
async def confirm_generation(
    request: GenerateConfirmRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
    profile: PersonalProfile = Depends(get_profile),
    db: AsyncSession = Depends(get_db),
):
    """Generate, score and save the resume and cover letter for a reviewed selection.

    Raises:
        HTTPException 429: Another generation is in progress
        HTTPException 500: A generation step failed (``step`` names it)
    """
    try:
        return await pipeline.confirm(
            request.jd_text,
            request.parsed_jd,
            request.relevance_selection,
            request.config,
            profile,
            ResumeStore(db),
        )
    except ResuError as e:
        logger.error(f"Confirm failed: {e}")
        raise _to_http(e)
