from fastapi import APIRouter, Depends, Query
from typing import List

from ...auth.gate import AuthContext
from ...dashboard import DashboardView, build_dashboard
from ...schemas import TrainingSession
from ...services import Services
from ..deps import get_auth_context, get_services

router = APIRouter()


@router.get("/dashboard", response_model=DashboardView)
async def dashboard(services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    """Enrolled + available skills and recent activity for the current user."""
    return build_dashboard(ctx, services.catalog, services.session_log)


@router.get("/sessions/recent", response_model=List[TrainingSession])
async def recent_sessions(
    limit: int = Query(5, ge=1, le=100),
    services: Services = Depends(get_services),
    ctx: AuthContext = Depends(get_auth_context),
):
    return services.session_log.recent_sessions_for_user(ctx.user_id, limit)


@router.get("/sessions", response_model=List[TrainingSession])
async def all_sessions(services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    return services.session_log.sessions_for_user(ctx.user_id)
