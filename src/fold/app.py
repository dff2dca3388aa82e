import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from authlib.integrations.starlette_client import StarletteOAuth2App

from fold.config import Config
from fold.core.core import Core
from fold.core.modules.auth.oauth import OAuthProfile
from fold.core.modules.session.models import AuthContext, AuthToken, SessionView
from fold.core.modules.upload.client import StorageClient
from fold.core.modules.upload.models import AvatarView, FileListView, FileUpload, FileView
from fold.core.modules.user.models import UserView
from fold.errors import PasswordChangeError, ValidationError


class App:
    """Facade for all application operations, called by the HTTP layer after the auth guard ran."""

    def __init__(self, config: Config, storage_client: StorageClient | None = None) -> None:
        self._core = Core(config, storage_client)
        self._started_at = time.monotonic()

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def uptime(self) -> float:
        """Seconds since the application was created, from a monotonic clock."""
        return time.monotonic() - self._started_at

    # === Auth ===
    async def resolve_session(self, auth_token: AuthToken) -> AuthContext | None:
        """Look up the session for a token; None when missing or expired."""
        return await self._core.services.auth.get_session(auth_token)

    async def check_rate_limit(self, key: str) -> None:
        await self._core.services.rate_limit.hit(key)

    async def sign_up(
        self, name: str, email: str, password: str, image: str | None, ip_address: str | None, user_agent: str | None
    ) -> AuthContext:
        return await self._core.services.auth.sign_up_email(name, email, password, image, ip_address, user_agent)

    async def sign_in(self, email: str, password: str, ip_address: str | None, user_agent: str | None) -> AuthContext:
        return await self._core.services.auth.sign_in_email(email, password, ip_address, user_agent)

    async def sign_out(self, auth_token: AuthToken) -> None:
        await self._core.services.auth.sign_out(auth_token)

    def get_oauth_client(self, provider_id: str) -> StarletteOAuth2App:
        return self._core.services.auth.get_oauth_client(provider_id)

    async def sign_in_oauth(self, profile: OAuthProfile, ip_address: str | None, user_agent: str | None) -> AuthContext:
        return await self._core.services.auth.sign_in_oauth(profile, ip_address, user_agent)

    async def request_password_reset(self, email: str, redirect_to: str | None) -> None:
        await self._core.services.auth.request_password_reset(email, redirect_to)

    async def is_reset_token_valid(self, token: str) -> bool:
        return await self._core.services.auth.is_reset_token_valid(token)

    async def reset_password(self, token: str, new_password: str) -> None:
        await self._core.services.auth.reset_password(token, new_password)

    async def change_password(
        self, context: AuthContext, current_password: str, new_password: str, revoke_other_sessions: bool
    ) -> None:
        await self._core.services.auth.change_password(context, current_password, new_password, revoke_other_sessions)

    async def revoke_session(self, context: AuthContext, token: str) -> None:
        await self._core.services.auth.revoke_session(context, token)

    async def revoke_all_sessions(self, context: AuthContext) -> None:
        await self._core.services.auth.revoke_sessions(context)

    # === User profile ===
    async def get_profile(self, context: AuthContext) -> UserView:
        """Get the caller's profile, fresh from the database."""
        user = await self._core.services.user.get_user(context.user.id)
        return UserView.from_domain(user)

    async def update_profile(self, context: AuthContext, changes: dict[str, Any]) -> UserView:
        """Apply a partial profile update.

        ``changes`` only holds the fields the client sent; ``avatar`` maps to
        the ``image`` column.
        """
        changes = dict(changes)
        if "avatar" in changes:
            changes["image"] = changes.pop("avatar")
        user = await self._core.services.user.update_user(context.user.id, changes)
        return UserView.from_domain(user)

    async def change_own_password(self, context: AuthContext, current_password: str, new_password: str) -> None:
        """Change password and sign out every other device."""
        try:
            await self._core.services.auth.change_password(
                context, current_password, new_password, revoke_other_sessions=True
            )
        except ValidationError as e:
            raise PasswordChangeError(str(e)) from e

    async def delete_account(self, context: AuthContext) -> None:
        await self._core.services.user.delete_user(context.user.id)

    async def list_sessions(self, context: AuthContext) -> list[SessionView]:
        sessions = await self._core.services.auth.list_sessions(context)
        return [SessionView.from_domain(session) for session in sessions]

    async def revoke_other_sessions(self, context: AuthContext) -> None:
        await self._core.services.auth.revoke_other_sessions(context)

    # === Uploads ===
    async def upload_file(self, upload: FileUpload) -> FileView:
        return await self._core.services.upload.upload_file(upload)

    async def upload_files(self, uploads: list[FileUpload]) -> list[FileView]:
        return await self._core.services.upload.upload_files(uploads)

    async def upload_avatar(self, upload: FileUpload) -> AvatarView:
        return await self._core.services.upload.upload_avatar(upload)

    async def get_file(self, file_id: str) -> FileView:
        return await self._core.services.upload.get_file(file_id)

    async def delete_file(self, file_id: str) -> None:
        await self._core.services.upload.delete_file(file_id)

    async def list_files(self, limit: int, offset: int) -> FileListView:
        return await self._core.services.upload.list_files(limit, offset)
