from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from fold.app import App
from fold.config import Config
from fold.errors import UserError
from fold.web.error_handlers import (
    general_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    user_error_handler,
)
from fold.web.middleware import attach_session
from fold.web.openapi import API_VERSION, set_custom_openapi
from fold.web.routers import auth_router, health_router, pages_router, upload_router, user_router

OAUTH_STATE_COOKIE = "fold.oauth_state"


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        # Store app instance and config in app state
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="Fold Backend API",
        version=API_VERSION,
        lifespan=lifespan,
    )

    # Middleware added last runs first: CORS -> OAuth state cookie -> session attach
    app.middleware("http")(attach_session)
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret_key,
        session_cookie=OAUTH_STATE_COOKIE,
        max_age=10 * 60,
        same_site="lax",
        https_only=config.cookie_secure,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    app.include_router(health_router)
    app.include_router(pages_router)
    app.include_router(auth_router, prefix="/api")
    app.include_router(user_router, prefix="/api")
    app.include_router(upload_router, prefix="/api")

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app, config)

    return app
