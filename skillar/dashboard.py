import logging
from typing import List, Optional

from pydantic import BaseModel

from .config import settings
from .errors import FetchError
from .schemas import Skill, TrainingSession

logger = logging.getLogger(__name__)


class SessionSummary(BaseModel):
    session: TrainingSession
    skill_title: Optional[str] = None


class DashboardView(BaseModel):
    greeting_name: str
    enrolled: List[Skill] = []
    available: List[Skill] = []
    recent_sessions: List[SessionSummary] = []
    completed_count: int = 0
    error: Optional[str] = None


def greeting_name(display_name: Optional[str]) -> str:
    parts = (display_name or "").split()
    return parts[0] if parts else "Learner"


def build_dashboard(ctx, catalog, session_log, limit: int = None) -> DashboardView:
    """Compose catalog, enrollment and recent sessions for the current user."""
    profile = ctx.profile
    name = greeting_name(profile.display_name if profile else None)
    enrolled_ids = list(profile.enrolled_skills) if profile else []

    try:
        skills = catalog.list_skills()
        sessions = session_log.recent_sessions_for_user(ctx.user_id, limit or settings.RECENT_SESSIONS_LIMIT)
    except FetchError as e:
        logger.error("dashboard fetch failed for %s: %s", ctx.user_id, e)
        return DashboardView(greeting_name=name, error=str(e))

    by_id = {s.id: s for s in skills}
    missing = [i for i in enrolled_ids if i not in by_id]
    if missing:
        logger.warning("user %s enrolled in unknown skills %s, hidden", ctx.user_id, missing)

    return DashboardView(
        greeting_name=name,
        enrolled=[by_id[i] for i in enrolled_ids if i in by_id],
        available=[s for s in skills if s.id not in enrolled_ids],
        recent_sessions=[
            SessionSummary(session=s, skill_title=by_id[s.skill_id].title if s.skill_id in by_id else None)
            for s in sessions
        ],
        completed_count=sum(1 for s in sessions if s.completed),
    )
