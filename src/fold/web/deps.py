from typing import Annotated, cast

from fastapi import Depends, Request

from fold.app import App
from fold.core.modules.session.models import AuthContext
from fold.errors import AuthenticationError


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


def get_client_ip(request: Request) -> str | None:
    """Client address as resolved by uvicorn, which only honours forwarding headers from trusted proxies."""
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> str | None:
    return request.headers.get("user-agent")


async def get_optional_auth(request: Request) -> AuthContext | None:
    """Session attached by the session middleware, if any."""
    user = getattr(request.state, "user", None)
    session = getattr(request.state, "session", None)
    if user is None or session is None:
        return None
    return AuthContext(user=user, session=session)


async def require_auth(auth: Annotated[AuthContext | None, Depends(get_optional_auth)]) -> AuthContext:
    """Reject the request with 401 unless a session was attached."""
    if auth is None:
        raise AuthenticationError
    return auth


async def enforce_rate_limit(request: Request, app: Annotated[App, Depends(get_app)]) -> None:
    await app.check_rate_limit(f"{get_client_ip(request) or 'unknown'}|{request.url.path}")


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthDep = Annotated[AuthContext, Depends(require_auth)]
OptionalAuthDep = Annotated[AuthContext | None, Depends(get_optional_auth)]
