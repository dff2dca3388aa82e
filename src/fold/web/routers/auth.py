from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import EmailStr, Field

from fold.app import App
from fold.config import Config
from fold.core.modules.auth.oauth import (
    begin_authorization,
    complete_authorization,
    get_callback_url,
    is_trusted_redirect,
)
from fold.core.modules.session.models import SessionView
from fold.core.modules.user.models import UserView
from fold.core.views import CamelModel
from fold.errors import ValidationError
from fold.web.deps import AppDep, AuthDep, OptionalAuthDep, enforce_rate_limit, get_client_ip, get_user_agent
from fold.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"], dependencies=[Depends(enforce_rate_limit)])

# Starlette session key holding where to send the browser after the OAuth callback
OAUTH_CALLBACK_KEY = "oauth_callback_url"


def set_session_cookie(response: Response, config: Config, token: str, persistent: bool = True) -> None:
    response.set_cookie(
        key=config.session_cookie_name,
        value=token,
        httponly=True,
        samesite="lax",
        secure=config.cookie_secure,
        max_age=config.session_expires_in if persistent else None,  # None: browser-session cookie
        path="/",
    )


def clear_session_cookie(response: Response, config: Config) -> None:
    response.delete_cookie(
        key=config.session_cookie_name, path="/", secure=config.cookie_secure, httponly=True, samesite="lax"
    )


def ensure_trusted_redirect(config: Config, url: str | None) -> None:
    if url is not None and not is_trusted_redirect(config, url):
        raise ValidationError("Invalid callbackURL")


# === Request / response models ===
class SignUpRequest(CamelModel):
    """Email/password registration."""

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="Email address, used to sign in")
    password: str = Field(..., description="Password, 8 to 128 characters")
    image: str | None = Field(None, description="Avatar URL")

    model_config = {
        "json_schema_extra": {"examples": [{"name": "Jane", "email": "jane@example.com", "password": "s3cret-pass"}]}
    }


class SignInRequest(CamelModel):
    email: EmailStr
    password: str
    remember_me: bool = Field(True, description="When false the cookie expires with the browser session")


class SocialSignInRequest(CamelModel):
    provider: str = Field(..., description="OAuth provider, currently only 'google'")
    callback_url: str | None = Field(None, alias="callbackURL", description="Where to land after sign-in")


class ForgotPasswordRequest(CamelModel):
    email: EmailStr
    redirect_to: str | None = Field(None, description="Page that receives the reset token")


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str
    revoke_other_sessions: bool = False


class RevokeSessionRequest(CamelModel):
    token: str = Field(..., description="Token of the session to revoke")


class TokenUserResponse(CamelModel):
    token: str | None
    user: UserView


class SignInResponse(TokenUserResponse):
    redirect: bool = False


class SessionResponse(CamelModel):
    session: SessionView
    user: UserView


class SocialSignInResponse(CamelModel):
    url: str
    redirect: bool = True


class StatusResponse(CamelModel):
    status: bool = True


class SignOutResponse(CamelModel):
    success: bool = True


# === Email and password ===
@router.post(
    "/auth/sign-up/email",
    summary="Sign up with email",
    description="Create a user with a password and sign them in. Sets the session cookie.",
    operation_id="signUpEmail",
    responses={
        200: {"description": "User created and signed in"},
        400: {"model": ErrorResponse, "description": "Invalid data or user already exists"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def sign_up_email(req: SignUpRequest, request: Request, app: AppDep, response: Response) -> TokenUserResponse:
    context = await app.sign_up(
        req.name, req.email, req.password, req.image, get_client_ip(request), get_user_agent(request)
    )
    set_session_cookie(response, app.config, context.token)
    return TokenUserResponse(token=context.token, user=UserView.from_domain(context.user))


@router.post(
    "/auth/sign-in/email",
    summary="Sign in with email",
    description="Authenticate with email and password. Sets the session cookie.",
    operation_id="signInEmail",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
        429: {"model": ErrorResponse, "description": "Too many requests"},
    },
)
async def sign_in_email(req: SignInRequest, request: Request, app: AppDep, response: Response) -> SignInResponse:
    context = await app.sign_in(req.email, req.password, get_client_ip(request), get_user_agent(request))
    set_session_cookie(response, app.config, context.token, persistent=req.remember_me)
    return SignInResponse(token=context.token, user=UserView.from_domain(context.user))


@router.post(
    "/auth/sign-out",
    summary="Sign out",
    description="Delete the current session and clear the session cookie.",
    operation_id="signOut",
)
async def sign_out(app: AppDep, auth: OptionalAuthDep, response: Response) -> SignOutResponse:
    if auth is not None:
        await app.sign_out(auth.token)
    clear_session_cookie(response, app.config)
    return SignOutResponse()


async def get_current_session(auth: OptionalAuthDep) -> SessionResponse | None:
    if auth is None:
        return None
    return SessionResponse(session=SessionView.from_domain(auth.session), user=UserView.from_domain(auth.user))


router.add_api_route(
    "/auth/get-session",
    get_current_session,
    methods=["GET"],
    summary="Get current session",
    description="Return the caller's session and user, or null when signed out.",
    operation_id="getSession",
)
router.add_api_route(
    "/auth/session",
    get_current_session,
    methods=["GET"],
    summary="Get current session (alias)",
    operation_id="getSessionAlias",
)


# === OAuth ===
async def start_oauth(app: App, request: Request, provider_id: str, callback_url: str | None) -> str:
    ensure_trusted_redirect(app.config, callback_url)
    client = app.get_oauth_client(provider_id)
    url = await begin_authorization(client, request, get_callback_url(app.config, provider_id))
    request.session[OAUTH_CALLBACK_KEY] = callback_url or app.config.frontend_url
    return url


@router.post(
    "/auth/sign-in/social",
    summary="Start social sign-in",
    description="Build the provider authorization URL. The client should navigate to `url`.",
    operation_id="signInSocial",
    responses={
        200: {"description": "Authorization URL"},
        400: {"model": ErrorResponse, "description": "Provider not configured or untrusted callbackURL"},
        404: {"model": ErrorResponse, "description": "Unknown provider"},
    },
)
async def sign_in_social(req: SocialSignInRequest, request: Request, app: AppDep) -> SocialSignInResponse:
    url = await start_oauth(app, request, req.provider, req.callback_url)
    return SocialSignInResponse(url=url)


@router.get(
    "/auth/sign-in/{provider_id}",
    summary="Start social sign-in (redirect)",
    description="Redirect the browser straight to the provider authorization page.",
    operation_id="signInSocialRedirect",
    response_class=RedirectResponse,
    status_code=302,
)
async def sign_in_social_redirect(
    provider_id: str,
    request: Request,
    app: AppDep,
    callback_url: Annotated[str | None, Query(alias="callbackURL")] = None,
) -> RedirectResponse:
    url = await start_oauth(app, request, provider_id, callback_url)
    return RedirectResponse(url, status_code=302)


@router.get(
    "/auth/callback/{provider_id}",
    summary="OAuth callback",
    description="Provider redirect target. Signs the user in, sets the cookie and redirects to the callback URL.",
    operation_id="oauthCallback",
    response_class=RedirectResponse,
    status_code=302,
    responses={401: {"model": ErrorResponse, "description": "Provider rejected the sign-in"}},
)
async def oauth_callback(provider_id: str, request: Request, app: AppDep) -> RedirectResponse:
    client = app.get_oauth_client(provider_id)
    profile = await complete_authorization(client, request, provider_id)
    context = await app.sign_in_oauth(profile, get_client_ip(request), get_user_agent(request))

    target = request.session.pop(OAUTH_CALLBACK_KEY, None) or app.config.frontend_url
    response = RedirectResponse(target, status_code=302)
    set_session_cookie(response, app.config, context.token)
    return response


# === Password reset ===
async def request_password_reset(req: ForgotPasswordRequest, app: AppDep) -> StatusResponse:
    ensure_trusted_redirect(app.config, req.redirect_to)
    await app.request_password_reset(req.email, req.redirect_to)
    return StatusResponse()


router.add_api_route(
    "/auth/request-password-reset",
    request_password_reset,
    methods=["POST"],
    summary="Request password reset",
    description="Issue a one-hour reset token. Always succeeds, whether or not the email is known.",
    operation_id="requestPasswordReset",
)
router.add_api_route(
    "/auth/forget-password",
    request_password_reset,
    methods=["POST"],
    summary="Request password reset (alias)",
    operation_id="forgetPassword",
)


@router.get(
    "/auth/reset-password/{token}",
    summary="Open reset link",
    description="Check the token and redirect to `callbackURL` with `token` or `error=INVALID_TOKEN`.",
    operation_id="resetPasswordCallback",
    response_class=RedirectResponse,
    status_code=302,
)
async def reset_password_callback(
    token: str, app: AppDep, callback_url: Annotated[str, Query(alias="callbackURL")]
) -> RedirectResponse:
    ensure_trusted_redirect(app.config, callback_url)
    params = {"token": token} if await app.is_reset_token_valid(token) else {"error": "INVALID_TOKEN"}
    separator = "&" if "?" in callback_url else "?"
    return RedirectResponse(f"{callback_url}{separator}{urlencode(params)}", status_code=302)


@router.post(
    "/auth/reset-password",
    summary="Reset password",
    description="Set a new password with a reset token. Signs the user out of every session.",
    operation_id="resetPassword",
    responses={400: {"model": ErrorResponse, "description": "Invalid token or password"}},
)
async def reset_password(req: ResetPasswordRequest, app: AppDep) -> StatusResponse:
    await app.reset_password(req.token, req.new_password)
    return StatusResponse()


# === Signed-in account ===
@router.post(
    "/auth/change-password",
    summary="Change password",
    operation_id="changePassword",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid password or no credential account"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def change_password(req: ChangePasswordRequest, app: AppDep, auth: AuthDep) -> TokenUserResponse:
    await app.change_password(auth, req.current_password, req.new_password, req.revoke_other_sessions)
    return TokenUserResponse(token=None, user=UserView.from_domain(auth.user))


@router.get(
    "/auth/list-sessions",
    summary="List sessions",
    description="Active sessions of the caller, newest first.",
    operation_id="listSessions",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def list_sessions(app: AppDep, auth: AuthDep) -> list[SessionView]:
    return await app.list_sessions(auth)


@router.post(
    "/auth/revoke-session",
    summary="Revoke a session",
    operation_id="revokeSession",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def revoke_session(req: RevokeSessionRequest, app: AppDep, auth: AuthDep) -> StatusResponse:
    await app.revoke_session(auth, req.token)
    return StatusResponse()


@router.post(
    "/auth/revoke-other-sessions",
    summary="Revoke other sessions",
    description="Sign out every device except the current one.",
    operation_id="revokeOtherSessions",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def revoke_other_sessions(app: AppDep, auth: AuthDep) -> StatusResponse:
    await app.revoke_other_sessions(auth)
    return StatusResponse()


@router.post(
    "/auth/revoke-sessions",
    summary="Revoke all sessions",
    description="Sign out every device, including the current one.",
    operation_id="revokeSessions",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def revoke_sessions(app: AppDep, auth: AuthDep, response: Response) -> StatusResponse:
    await app.revoke_all_sessions(auth)
    clear_session_cookie(response, app.config)
    return StatusResponse()
