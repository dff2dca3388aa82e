from dataclasses import asdict

import structlog
from sqlalchemy import select, update

from fold.core.core import Service
from fold.core.modules.account.models import CREDENTIAL_PROVIDER, Account, OAuthTokens
from fold.utils import now

logger = structlog.get_logger(__name__)


class AccountService(Service):
    """Manages credential and OAuth account bindings."""

    async def create_credential_account(self, user_id: str, password_hash: str) -> Account:
        account = Account(account_id=user_id, provider_id=CREDENTIAL_PROVIDER, user_id=user_id, password=password_hash)
        async with self.db() as db:
            db.add(account)
            await db.commit()
        return account

    async def get_credential_account(self, user_id: str) -> Account | None:
        async with self.db() as db:
            result = await db.execute(
                select(Account).where(Account.user_id == user_id, Account.provider_id == CREDENTIAL_PROVIDER)
            )
            return result.scalar_one_or_none()

    async def find_account(self, provider_id: str, account_id: str) -> Account | None:
        async with self.db() as db:
            result = await db.execute(
                select(Account).where(Account.provider_id == provider_id, Account.account_id == account_id)
            )
            return result.scalar_one_or_none()

    async def list_user_accounts(self, user_id: str) -> list[Account]:
        async with self.db() as db:
            result = await db.execute(select(Account).where(Account.user_id == user_id).order_by(Account.created_at))
            return list(result.scalars())

    async def link_oauth_account(self, user_id: str, provider_id: str, account_id: str, tokens: OAuthTokens) -> Account:
        """Bind an external identity to an existing user."""
        account = Account(account_id=account_id, provider_id=provider_id, user_id=user_id, **asdict(tokens))
        async with self.db() as db:
            db.add(account)
            await db.commit()
        logger.info("account_linked", user_id=user_id, provider_id=provider_id)
        return account

    async def update_oauth_tokens(self, account_pk: str, tokens: OAuthTokens) -> None:
        # Providers omit the refresh token on repeat consent; keep the stored one
        values = {key: value for key, value in asdict(tokens).items() if value is not None}
        async with self.db() as db:
            await db.execute(update(Account).where(Account.id == account_pk).values(**values, updated_at=now()))
            await db.commit()

    async def set_password(self, user_id: str, password_hash: str) -> None:
        async with self.db() as db:
            await db.execute(
                update(Account)
                .where(Account.user_id == user_id, Account.provider_id == CREDENTIAL_PROVIDER)
                .values(password=password_hash, updated_at=now())
            )
            await db.commit()
