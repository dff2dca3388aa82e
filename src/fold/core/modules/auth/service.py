import asyncio
from urllib.parse import urlencode

import structlog
from authlib.integrations.starlette_client import OAuth, StarletteOAuth2App

from fold.core.core import Service
from fold.core.modules.auth.oauth import SUPPORTED_PROVIDERS, TRUSTED_PROVIDERS, OAuthProfile, create_oauth_registry
from fold.core.modules.auth.passwords import hash_password, verify_password
from fold.core.modules.session.models import AuthContext, AuthToken, Session
from fold.core.modules.user.validators import validate_password
from fold.errors import AuthenticationError, NotFoundError, ValidationError
from fold.utils import generate_token

logger = structlog.get_logger(__name__)

RESET_PASSWORD_PREFIX = "reset-password:"


class AuthService(Service):
    """Email/password and OAuth authentication on top of the user, account and session records."""

    _oauth: OAuth | None = None

    # === Credentials ===
    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.core.config.password_hash_rounds)

    async def sign_up_email(
        self,
        name: str,
        email: str,
        password: str,
        image: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthContext:
        """Create a user with a credential account and sign them in."""
        validate_password(password)
        password_hash = await self._hash(password)
        user = await self.core.services.user.create_user(name, email, image=image, password_hash=password_hash)
        session = await self.core.services.session.create_session(user.id, ip_address, user_agent)
        logger.info("user_signed_up", user_id=user.id)
        return AuthContext(user=user, session=session)

    async def sign_in_email(
        self, email: str, password: str, ip_address: str | None = None, user_agent: str | None = None
    ) -> AuthContext:
        user = await self.core.services.user.find_user_by_email(email)
        if user is None:
            raise AuthenticationError("Invalid email or password")

        account = await self.core.services.account.get_credential_account(user.id)
        if account is None or account.password is None:
            raise AuthenticationError("Invalid email or password")

        if not await asyncio.to_thread(verify_password, password, account.password):
            raise AuthenticationError("Invalid email or password")

        session = await self.core.services.session.create_session(user.id, ip_address, user_agent)
        logger.debug("user_signed_in", user_id=user.id, provider_id="credential")
        return AuthContext(user=user, session=session)

    async def sign_out(self, token: AuthToken) -> None:
        await self.core.services.session.invalidate_session(token)

    async def get_session(self, token: AuthToken) -> AuthContext | None:
        return await self.core.services.session.resolve(token)

    async def change_password(
        self, context: AuthContext, current_password: str, new_password: str, revoke_other_sessions: bool = False
    ) -> None:
        """Rotate the credential password after verifying the current one."""
        validate_password(new_password)
        account = await self.core.services.account.get_credential_account(context.user.id)
        if account is None or account.password is None:
            raise ValidationError("Credential account not found")

        if not await asyncio.to_thread(verify_password, current_password, account.password):
            raise ValidationError("Invalid password")

        await self.core.services.account.set_password(context.user.id, await self._hash(new_password))
        if revoke_other_sessions:
            await self.core.services.session.revoke_other_sessions(context.user.id, context.token)
        logger.info("password_changed", user_id=context.user.id, revoked_other_sessions=revoke_other_sessions)

    # === Password reset ===
    async def request_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        """Issue a reset token for a known email.

        Unknown emails are silently accepted so callers cannot probe for accounts.
        """
        user = await self.core.services.user.find_user_by_email(email)
        if user is None:
            logger.debug("password_reset_unknown_email")
            return

        config = self.core.config
        token = generate_token()
        await self.core.services.verification.create(
            RESET_PASSWORD_PREFIX + token, user.id, config.password_reset_expires_in
        )
        query = urlencode({"callbackURL": redirect_to or config.frontend_url})
        reset_url = f"{config.base_url.rstrip('/')}/api/auth/reset-password/{token}?{query}"
        logger.info("password_reset_requested", user_id=user.id)
        # No mailer is wired up; the link is only visible in debug logs
        logger.debug("password_reset_link", user_id=user.id, url=reset_url)

    async def is_reset_token_valid(self, token: str) -> bool:
        return await self.core.services.verification.find_valid(RESET_PASSWORD_PREFIX + token) is not None

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password from a reset token and sign the user out everywhere."""
        validate_password(new_password)
        user_id = await self.core.services.verification.consume(RESET_PASSWORD_PREFIX + token)
        if user_id is None:
            raise ValidationError("Invalid token")

        password_hash = await self._hash(new_password)
        if await self.core.services.account.get_credential_account(user_id) is None:
            await self.core.services.account.create_credential_account(user_id, password_hash)
        else:
            await self.core.services.account.set_password(user_id, password_hash)
        await self.core.services.session.revoke_all_sessions(user_id)
        logger.info("password_reset", user_id=user_id)

    # === OAuth ===
    def get_oauth_client(self, provider_id: str) -> StarletteOAuth2App:
        if provider_id not in SUPPORTED_PROVIDERS:
            raise NotFoundError(f"Provider not found: {provider_id}")

        if self._oauth is None:
            self._oauth = create_oauth_registry(self.core.config)
        client = self._oauth.create_client(provider_id)
        if client is None:
            raise ValidationError(f"Provider '{provider_id}' is not configured")
        return client

    async def sign_in_oauth(
        self, profile: OAuthProfile, ip_address: str | None = None, user_agent: str | None = None
    ) -> AuthContext:
        """Sign in with a provider identity, creating or linking the user as needed."""
        users = self.core.services.user
        accounts = self.core.services.account

        account = await accounts.find_account(profile.provider_id, profile.account_id)
        if account is not None:
            user = await users.get_user(account.user_id)
            await accounts.update_oauth_tokens(account.id, profile.tokens)
        else:
            existing = await users.find_user_by_email(profile.email)
            if existing is None:
                user = await users.create_user(
                    profile.name, profile.email, image=profile.image, email_verified=profile.email_verified
                )
            elif profile.provider_id in TRUSTED_PROVIDERS and profile.email_verified:
                user = existing
            else:
                raise AuthenticationError("Account not linked")
            await accounts.link_oauth_account(user.id, profile.provider_id, profile.account_id, profile.tokens)

        if profile.email_verified and not user.email_verified:
            await users.mark_email_verified(user.id)
            user = await users.get_user(user.id)

        session = await self.core.services.session.create_session(user.id, ip_address, user_agent)
        logger.debug("user_signed_in", user_id=user.id, provider_id=profile.provider_id)
        return AuthContext(user=user, session=session)

    # === Session management ===
    async def list_sessions(self, context: AuthContext) -> list[Session]:
        return await self.core.services.session.list_user_sessions(context.user.id)

    async def revoke_session(self, context: AuthContext, token: str) -> None:
        if not await self.core.services.session.revoke_user_session(context.user.id, token):
            raise NotFoundError("Session not found")

    async def revoke_other_sessions(self, context: AuthContext) -> None:
        await self.core.services.session.revoke_other_sessions(context.user.id, context.token)

    async def revoke_sessions(self, context: AuthContext) -> None:
        await self.core.services.session.revoke_all_sessions(context.user.id)
