from datetime import timedelta

from sqlalchemy import delete, select

from fold.core.core import Service
from fold.core.modules.verification.models import Verification
from fold.utils import now


class VerificationService(Service):
    """Stores one-time values keyed by identifier."""

    async def on_start(self) -> None:
        async with self.db() as db:
            await db.execute(delete(Verification).where(Verification.expires_at <= now()))
            await db.commit()

    async def create(self, identifier: str, value: str, expires_in: int) -> Verification:
        verification = Verification(
            identifier=identifier, value=value, expires_at=now() + timedelta(seconds=expires_in)
        )
        async with self.db() as db:
            db.add(verification)
            await db.commit()
        return verification

    async def find_valid(self, identifier: str) -> str | None:
        """Return the stored value without consuming it, if not expired."""
        async with self.db() as db:
            result = await db.execute(
                select(Verification.value).where(Verification.identifier == identifier, Verification.expires_at > now())
            )
            return result.scalars().first()

    async def consume(self, identifier: str) -> str | None:
        """Return the stored value if still valid; the record is removed either way."""
        async with self.db() as db:
            result = await db.execute(select(Verification).where(Verification.identifier == identifier))
            verification = result.scalars().first()
            if verification is None:
                return None
            await db.execute(delete(Verification).where(Verification.identifier == identifier))
            await db.commit()

        if verification.expires_at <= now():
            return None
        return verification.value
