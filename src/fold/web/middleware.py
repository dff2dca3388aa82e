from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response

from fold.app import App
from fold.core.modules.session.models import AuthToken

logger = structlog.get_logger(__name__)


def extract_auth_token(request: Request, cookie_name: str) -> AuthToken | None:
    """Get the session token from the Authorization Bearer header or the session cookie."""

    # Check Bearer token first (preferred)
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return AuthToken(credentials.strip())

    # Fallback to cookie
    token_cookie = request.cookies.get(cookie_name)
    if token_cookie:
        return AuthToken(token_cookie)
    return None


async def attach_session(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Attach the caller's user and session to ``request.state``.

    Never rejects a request: a missing, expired or unknown token, as well as a
    failed lookup, leaves both attributes set to None. Routes that need a user
    enforce it with the ``require_auth`` dependency.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    request.state.user = None
    request.state.session = None

    app: App = request.app.state.app
    auth_token = extract_auth_token(request, app.config.session_cookie_name)
    if auth_token is not None:
        try:
            context = await app.resolve_session(auth_token)
        except Exception:
            logger.exception("session_lookup_failed")
            context = None
        if context is not None:
            request.state.user = context.user
            request.state.session = context.session
            structlog.contextvars.bind_contextvars(user_id=context.user.id)

    return await call_next(request)
