import json

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from typing import List

from ...auth.gate import AuthContext, enroll
from ...authoring import submit_skill
from ...errors import AuthoringError
from ...schemas import Skill
from ...services import Services
from ..deps import get_auth_context, get_services, require_admin

router = APIRouter()


@router.get("", response_model=List[Skill])
async def list_skills(services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    return services.catalog.list_skills()


@router.get("/{skill_id}", response_model=Skill)
async def get_skill(skill_id: str, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    skill = services.catalog.get_skill(skill_id)
    if skill is None:
        raise HTTPException(status_code=404, detail="Skill not found")
    return skill


@router.post("", status_code=201)
async def create_skill(
    title: str = Form(""),
    description: str = Form(""),
    difficulty: str = Form("Beginner"),
    category: str = Form("General"),
    steps: str = Form("[]", description='JSON list: [{"title": "...", "instruction": "..."}]'),
    cover: UploadFile = File(None),
    services: Services = Depends(get_services),
    ctx: AuthContext = Depends(require_admin),
):
    """Admin skill authoring: metadata + ordered steps + cover image."""
    try:
        step_list = json.loads(steps)
    except json.JSONDecodeError:
        raise AuthoringError("Steps must be a JSON list")

    cover_bytes = await cover.read() if cover is not None else None
    skill_id = submit_skill(
        ctx,
        services.catalog,
        {
            "title": title,
            "description": description,
            "difficulty": difficulty,
            "category": category,
            "steps": step_list,
        },
        cover_bytes,
        filename=cover.filename if cover is not None else "cover",
    )
    return {"id": skill_id}


@router.post("/{skill_id}/enroll")
async def enroll_in_skill(skill_id: str, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    """Idempotent: enrolling twice leaves the same set."""
    if services.catalog.get_skill(skill_id) is None:
        raise HTTPException(status_code=404, detail="Skill not found")
    enroll(ctx, services.catalog, skill_id, run_async=False)
    return {"enrolled_skills": ctx.profile.enrolled_skills if ctx.profile else [skill_id]}
