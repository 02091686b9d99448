"""Master profile loading."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError

from resu.config import settings
from resu.schemas.profile import PersonalProfile

logger = logging.getLogger(__name__)


def load_profile(path: Path) -> PersonalProfile:
    """Read and validate a profile JSON file.

    Args:
        path: Location of the profile JSON

    Returns:
        Validated PersonalProfile

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(
            f"Profile not found at {path}. "
            f"Copy profile.example.json to {path.name} and fill in your data."
        )

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        profile = PersonalProfile.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Profile validation failed for {path}: {e}")
        raise ValueError(f"Profile validation failed: {e}") from e

    logger.info(
        f"Profile loaded: {profile.contact.name} - "
        f"{len(profile.experience)} experiences, {len(profile.skills)} skills"
    )
    return profile


@lru_cache(maxsize=1)
def get_profile() -> PersonalProfile:
    """FastAPI dependency returning the cached profile from settings.profile_path."""
    return load_profile(settings.profile_path)
