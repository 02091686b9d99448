"""Master profile endpoint."""

import logging

from fastapi import APIRouter, HTTPException

from resu.schemas.profile import PersonalProfile
from resu.services.profile import get_profile

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])
logger = logging.getLogger(__name__)


@router.get("", response_model=PersonalProfile)
async def read_profile():
    """Return the master profile the generator draws from."""
    try:
        return get_profile()
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        logger.error(f"Profile could not be loaded: {e}")
        raise HTTPException(status_code=500, detail=str(e))
