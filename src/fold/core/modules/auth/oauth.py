"""OAuth sign-in through authlib's Starlette client.

Authorization state lives in the Starlette session cookie, so the
``SessionMiddleware`` must be installed for these helpers to work.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

import structlog
from authlib.integrations.starlette_client import OAuth, OAuthError, StarletteOAuth2App
from starlette.requests import Request

from fold.config import Config
from fold.core.modules.account.models import OAuthTokens
from fold.errors import AuthenticationError

logger = structlog.get_logger(__name__)

GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"
SUPPORTED_PROVIDERS = ("google",)
# Providers whose verified emails may be linked to an existing user
TRUSTED_PROVIDERS = frozenset({"google"})


@dataclass(frozen=True)
class OAuthProfile:
    """Identity returned by a provider after a successful handshake."""

    provider_id: str
    account_id: str
    email: str
    name: str
    image: str | None
    email_verified: bool
    tokens: OAuthTokens


def create_oauth_registry(config: Config) -> OAuth:
    """Register every provider that has credentials configured."""
    oauth = OAuth()
    if config.google_client_id and config.google_client_secret:
        oauth.register(
            name="google",
            client_id=config.google_client_id,
            client_secret=config.google_client_secret,
            server_metadata_url=GOOGLE_METADATA_URL,
            client_kwargs={"scope": "openid email profile"},
        )
    return oauth


def get_callback_url(config: Config, provider_id: str) -> str:
    return f"{config.base_url.rstrip('/')}/api/auth/callback/{provider_id}"


async def begin_authorization(client: StarletteOAuth2App, request: Request, redirect_uri: str) -> str:
    """Create the provider authorization URL and remember its state in the session."""
    rv = await client.create_authorization_url(redirect_uri)
    await client.save_authorize_data(request, redirect_uri=redirect_uri, **rv)
    return str(rv["url"])


async def complete_authorization(client: StarletteOAuth2App, request: Request, provider_id: str) -> OAuthProfile:
    """Exchange the callback code for tokens and read the user's profile."""
    try:
        token: dict[str, Any] = await client.authorize_access_token(request)
    except OAuthError as e:
        logger.warning("oauth_exchange_failed", provider_id=provider_id, error=e.error)
        raise AuthenticationError(f"OAuth sign-in failed: {e.error}") from e

    userinfo = token.get("userinfo") or await client.userinfo(token=token)
    email = userinfo.get("email")
    if not email:
        raise AuthenticationError("OAuth provider did not return an email address")

    expires_at = token.get("expires_at")
    return OAuthProfile(
        provider_id=provider_id,
        account_id=str(userinfo["sub"]),
        email=email,
        name=userinfo.get("name") or email.split("@")[0],
        image=userinfo.get("picture"),
        email_verified=bool(userinfo.get("email_verified", False)),
        tokens=OAuthTokens(
            access_token=token.get("access_token"),
            refresh_token=token.get("refresh_token"),
            id_token=token.get("id_token"),
            access_token_expires_at=datetime.fromtimestamp(expires_at, UTC) if expires_at else None,
            scope=token.get("scope"),
        ),
    )


def is_trusted_redirect(config: Config, url: str) -> bool:
    """Accept same-site paths and absolute URLs on a trusted origin."""
    if url.startswith("/") and not url.startswith("//"):
        return True
    parsed = urlsplit(url)
    if not parsed.scheme or not parsed.netloc:
        return False
    origin = f"{parsed.scheme}://{parsed.netloc}"
    trusted = {o.rstrip("/") for o in [config.base_url, *config.allowed_origins]}
    return origin in trusted
