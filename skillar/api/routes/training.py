from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from typing import Optional

from ...auth.gate import AuthContext
from ...engine.training_session import Phase, SessionView
from ...services import Services
from ..deps import get_auth_context, get_services

router = APIRouter()


class StartRequest(BaseModel):
    skill_id: str
    camera_permission: bool = True   # what the browser's getUserMedia answered
    facing: str = "environment"


class TrainingResponse(BaseModel):
    handle: Optional[str] = None
    view: SessionView
    discarded: bool = False


def _engine(handle: str, services: Services, ctx: AuthContext):
    engine = services.registry.get(handle, ctx.user_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Training session not found")
    return engine


@router.post("", response_model=TrainingResponse, status_code=201)
async def start_training(request: StartRequest, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    """Open a training session. A missing skill comes back as phase=error with no handle."""
    engine = services.training_engine(
        request.skill_id, ctx.user_id, facing=request.facing, camera_permission=request.camera_permission
    )
    handle = await services.registry.open(engine)
    if engine.phase == Phase.ERROR:
        await services.registry.close(handle, ctx.user_id)
        return TrainingResponse(handle=None, view=engine.view())
    return TrainingResponse(handle=handle, view=engine.view())


@router.get("/{handle}", response_model=TrainingResponse)
async def get_training(handle: str, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    return TrainingResponse(handle=handle, view=_engine(handle, services, ctx).view())


@router.post("/{handle}/frame", status_code=204)
async def push_frame(
    handle: str,
    frame: UploadFile = File(...),
    services: Services = Depends(get_services),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Latest still from the client's live camera."""
    engine = _engine(handle, services, ctx)
    engine.camera.push(await frame.read())


@router.post("/{handle}/verify", response_model=TrainingResponse)
async def verify_step(
    handle: str,
    frame: UploadFile = File(None),
    services: Services = Depends(get_services),
    ctx: AuthContext = Depends(get_auth_context),
):
    """Capture + verify the current step. Blocks for the oracle's latency."""
    engine = _engine(handle, services, ctx)
    if frame is not None and engine.can_verify:
        engine.camera.push(await frame.read())
    verification = await engine.verify()
    return TrainingResponse(handle=handle, view=engine.view(), discarded=verification is None)


@router.post("/{handle}/advance", response_model=TrainingResponse)
async def advance_step(handle: str, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    engine = _engine(handle, services, ctx)
    await engine.advance()
    return TrainingResponse(handle=handle, view=engine.view())


@router.post("/{handle}/retry", response_model=TrainingResponse)
async def retry_module(handle: str, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    engine = _engine(handle, services, ctx)
    await engine.retry()
    return TrainingResponse(handle=handle, view=engine.view())


@router.delete("/{handle}", status_code=204)
async def exit_training(handle: str, services: Services = Depends(get_services), ctx: AuthContext = Depends(get_auth_context)):
    """Leave the session view: releases the camera, unfinished progress is dropped."""
    if not await services.registry.close(handle, ctx.user_id):
        raise HTTPException(status_code=404, detail="Training session not found")
