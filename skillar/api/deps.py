from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from ..auth.gate import AuthContext, resolve_context
from ..services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not signed in")
    return authorization[7:]


def get_auth_context(
    token: str = Depends(get_token),
    services: Services = Depends(get_services),
) -> AuthContext:
    identity = services.auth.resolve(token)
    if identity is None:
        raise HTTPException(status_code=401, detail="Session expired. Please sign in again.")
    return resolve_context(identity, services.catalog)


def require_admin(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx
