"""Dental Clinic API: FastAPI application factory and entry point."""

import logging

from fastapi import FastAPI
from supabase import Client

from dental_api.auth.credentials import CredentialStore
from dental_api.auth.routes import router as auth_router
from dental_api.buckets.routes import router as buckets_router
from dental_api.config.cors import configure_cors
from dental_api.config.settings import Settings, load_settings
from dental_api.db.client import build_supabase
from dental_api.middleware.error_handler import register_error_handlers
from dental_api.middleware.request_id import RequestIDMiddleware
from dental_api.services.routes import router as services_router
from dental_api.users.routes import router as users_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    supabase: Client | None = None,
    credentials: CredentialStore | None = None,
) -> FastAPI:
    """Build the app. Settings and the Supabase handles live on ``app.state``."""
    settings = settings or load_settings()
    supabase = supabase or build_supabase(settings)
    credentials = credentials or CredentialStore(supabase, settings)

    app = FastAPI(
        title="Dental Clinic API",
        description=(
            "Backend for the dental clinic website and mobile app.\n\n"
            "## Authentication\n"
            "Admins sign in through `/auth/website/login`; patients and dentists through "
            "`/auth/app/login`, which also returns a refresh token.\n"
            "Protected endpoints take `Authorization: Bearer <token>`."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoints"},
            {"name": "Auth", "description": "Login, registration, password flows, token refresh, logout"},
            {"name": "Users", "description": "User management (admin)"},
            {"name": "Services", "description": "Clinic services and categories"},
            {"name": "Models", "description": "3D dental model uploads"},
        ],
    )
    app.state.settings = settings
    app.state.supabase = supabase
    app.state.credentials = credentials

    # --- Middleware (last added is outermost) ---
    configure_cors(app, settings)
    app.add_middleware(RequestIDMiddleware)

    # --- Error handlers ---
    register_error_handlers(app)

    # --- Routes ---
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(services_router)
    app.include_router(buckets_router)

    @app.get("/health", tags=["Health"], summary="Health check", description="Returns OK if the service is running.")
    async def health_check():
        return {"status": "ok"}

    return app


def run() -> None:
    import uvicorn

    settings = load_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Dental Clinic API on %s:%d", settings.HOST, settings.PORT)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
