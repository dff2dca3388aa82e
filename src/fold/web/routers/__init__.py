from fold.web.routers.auth import router as auth_router
from fold.web.routers.health import router as health_router
from fold.web.routers.pages import router as pages_router
from fold.web.routers.upload import router as upload_router
from fold.web.routers.user import router as user_router

__all__ = [
    "auth_router",
    "health_router",
    "pages_router",
    "upload_router",
    "user_router",
]
