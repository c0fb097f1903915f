from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from typing import Optional

from ...auth.gate import AuthContext, resolve_context
from ...schemas import UserProfile
from ...services import Services
from ..deps import get_auth_context, get_services, get_token

router = APIRouter()


class SignUpRequest(BaseModel):
    email: str
    password: str
    display_name: str


class SignInRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    token: str
    user_id: str
    profile: Optional[UserProfile] = None


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def sign_up(request: SignUpRequest, services: Services = Depends(get_services)):
    """Create an account with role=user and sign it in."""
    try:
        identity, token = services.auth.sign_up(request.email, request.password, request.display_name)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=[err["msg"].removeprefix("Value error, ") for err in e.errors()],
        )
    ctx = resolve_context(identity, services.catalog)
    return SessionResponse(token=token, user_id=identity.uid, profile=ctx.profile)


@router.post("/signin", response_model=SessionResponse)
async def sign_in(request: SignInRequest, services: Services = Depends(get_services)):
    identity, token = services.auth.sign_in(request.email, request.password)
    ctx = resolve_context(identity, services.catalog)
    return SessionResponse(token=token, user_id=identity.uid, profile=ctx.profile)


@router.post("/signout", status_code=204)
async def sign_out(token: str = Depends(get_token), services: Services = Depends(get_services)):
    services.auth.sign_out(token)


@router.get("/me")
async def me(ctx: AuthContext = Depends(get_auth_context)):
    """Current identity, profile and role."""
    return {
        "user_id": ctx.user_id,
        "email": ctx.identity.email,
        "profile": ctx.profile,
        "is_admin": ctx.is_admin,
    }
