"""
Skill Authoring Flow
====================
Admin-only: validate a skill draft + cover image and hand it to the catalog.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from .errors import AuthoringError
from .schemas import SkillDraft

logger = logging.getLogger(__name__)


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    msg = err.get("msg", "Invalid skill")
    return msg.removeprefix("Value error, ")


def build_draft(data: dict) -> SkillDraft:
    """Validate raw form data. Raises AuthoringError with the first problem found."""
    try:
        return SkillDraft(**data)
    except ValidationError as e:
        raise AuthoringError(_first_error(e)) from e


def submit_skill(ctx, catalog, draft, cover_image: Optional[bytes], filename: str = "cover") -> str:
    """
    Create a skill module as the current admin.

    Args:
        ctx: AuthContext of the caller (must be admin)
        draft: SkillDraft or a plain dict of form fields
        cover_image: cover bytes, required

    Returns:
        The new skill id
    """
    if not ctx.is_admin:
        raise AuthoringError("Only admins can create skill modules")
    if isinstance(draft, dict):
        draft = build_draft(draft)
    if not cover_image:
        raise AuthoringError("Please select a cover image")

    skill_id = catalog.create_skill(draft, cover_image, filename=filename or "cover")
    logger.info("admin %s authored skill %s", ctx.user_id, skill_id)
    return skill_id
