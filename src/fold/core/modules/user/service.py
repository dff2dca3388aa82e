from typing import Any

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from fold.core.core import Service
from fold.core.modules.account.models import CREDENTIAL_PROVIDER, Account
from fold.core.modules.user.models import User
from fold.core.modules.user.validators import normalize_email
from fold.errors import NotFoundError, ValidationError
from fold.utils import generate_id, now

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "image"})


class UserService(Service):
    """Reads and writes user rows."""

    async def get_user(self, user_id: str) -> User:
        """Get user by ID."""
        async with self.db() as db:
            user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def find_user_by_email(self, email: str) -> User | None:
        async with self.db() as db:
            result = await db.execute(select(User).where(User.email == normalize_email(email)))
            return result.scalar_one_or_none()

    async def create_user(
        self,
        name: str,
        email: str,
        image: str | None = None,
        email_verified: bool = False,
        password_hash: str | None = None,
    ) -> User:
        """Create a user; emails are unique and stored lower-cased.

        With ``password_hash`` the credential account is written in the same
        transaction, so a user never exists without the password it signed up with.

        Raises:
            ValidationError: If the email is already taken
        """
        user = User(
            id=generate_id(), name=name, email=normalize_email(email), image=image, email_verified=email_verified
        )
        async with self.db() as db:
            db.add(user)
            try:
                await db.flush()
                if password_hash is not None:
                    db.add(
                        Account(
                            account_id=user.id, provider_id=CREDENTIAL_PROVIDER, user_id=user.id, password=password_hash
                        )
                    )
                await db.commit()
            except IntegrityError as e:
                raise ValidationError("User already exists") from e
        logger.debug("user_created", user_id=user.id)
        return user

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        """Write only the supplied fields and always refresh ``updated_at``.

        Runs as a single ``UPDATE ... RETURNING`` statement; last write wins.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        stmt = update(User).where(User.id == user_id).values(**changes, updated_at=now()).returning(User)
        async with self.db() as db:
            user = (await db.execute(stmt)).scalar_one_or_none()
            await db.commit()
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def mark_email_verified(self, user_id: str) -> None:
        async with self.db() as db:
            await db.execute(update(User).where(User.id == user_id).values(email_verified=True, updated_at=now()))
            await db.commit()

    async def delete_user(self, user_id: str) -> None:
        """Delete a user; sessions, accounts and content go with it through FK cascades."""
        async with self.db() as db:
            result = await db.execute(delete(User).where(User.id == user_id))
            await db.commit()
        if result.rowcount == 0:
            raise NotFoundError("User not found")
        logger.info("user_deleted", user_id=user_id)
