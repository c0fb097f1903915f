import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db
from .errors import (
    AuthError, AuthErrorKind, AuthoringError, FetchError,
    InvalidTransition, PermissionDenied, SkillARError, WriteError,
)
from .services import Services
from .api.routes import auth, skills, dashboard, training, blobs

logger = logging.getLogger(__name__)


def _status_for(exc: SkillARError) -> int:
    if isinstance(exc, AuthError):
        return {
            AuthErrorKind.INVALID_CREDENTIAL: 401,
            AuthErrorKind.EMAIL_ALREADY_IN_USE: 409,
        }.get(exc.kind, 503)
    if isinstance(exc, AuthoringError):
        return 422
    if isinstance(exc, (InvalidTransition, PermissionDenied)):
        return 409
    if isinstance(exc, (FetchError, WriteError)):
        return 503
    return 500


def create_app(services: Services = None) -> FastAPI:
    if services is None:
        init_db()
        services = Services.build()

    async def sweep_idle_sessions():
        while True:
            await asyncio.sleep(settings.TRAINING_SWEEP_SECONDS)
            await services.registry.close_idle()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(sweep_idle_sessions())
        yield
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
        await services.registry.close_all()

    app = FastAPI(
        title="SkillAR Bharat API",
        description="Vocational skill modules with step-by-step camera verification",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SkillARError)
    async def skillar_error_handler(request: Request, exc: SkillARError):
        status = _status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        body = {"detail": str(exc)}
        if isinstance(exc, AuthError):
            body["kind"] = exc.kind.value
        return JSONResponse(status_code=status, content=body)

    app.include_router(auth.router,      prefix="/api/v1/auth",     tags=["Auth"])
    app.include_router(skills.router,    prefix="/api/v1/skills",   tags=["Skills"])
    app.include_router(dashboard.router, prefix="/api/v1",          tags=["Dashboard"])
    app.include_router(training.router,  prefix="/api/v1/training", tags=["Training"])
    app.include_router(blobs.router,     prefix="/blobs",           tags=["Blobs"])

    @app.get("/")
    def root():
        return {
            "name": "SkillAR Bharat API",
            "version": "0.1.0",
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "auth":      "/api/v1/auth",
                "skills":    "/api/v1/skills",
                "dashboard": "/api/v1/dashboard",
                "sessions":  "/api/v1/sessions",
                "training":  "/api/v1/training",
            },
        }

    @app.get("/health")
    def health():
        return {"status": "healthy", "oracle": settings.ORACLE_BACKEND}

    return app


def get_app() -> FastAPI:
    """Factory for `uvicorn skillar.main:get_app --factory`."""
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    return create_app()
