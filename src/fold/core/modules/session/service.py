from datetime import timedelta

import structlog
from sqlalchemy import delete, select

from fold.core.core import Service
from fold.core.modules.session.models import AuthContext, AuthToken, Session
from fold.core.modules.user.models import User
from fold.utils import generate_token, now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Issues, resolves, refreshes and revokes user sessions."""

    async def on_start(self) -> None:
        """Drop sessions that expired while the server was down."""
        async with self.db() as db:
            result = await db.execute(delete(Session).where(Session.expires_at <= now()))
            await db.commit()
        logger.debug("expired_sessions_removed", count=result.rowcount)

    async def create_session(self, user_id: str, ip_address: str | None = None, user_agent: str | None = None) -> Session:
        session = Session(
            token=generate_token(),
            user_id=user_id,
            expires_at=now() + timedelta(seconds=self.core.config.session_expires_in),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        async with self.db() as db:
            db.add(session)
            await db.commit()
        return session

    async def resolve(self, token: AuthToken) -> AuthContext | None:
        """Find the live session for a token together with its user.

        Expired sessions are deleted and reported as absent. A session whose
        last refresh is older than ``session_update_age`` gets its expiry
        pushed out to a full ``session_expires_in`` again.
        """
        async with self.db() as db:
            row = (
                await db.execute(select(Session, User).join(User, Session.user_id == User.id).where(Session.token == token))
            ).one_or_none()
            if row is None:
                return None

            session, user = row
            current = now()
            if session.expires_at <= current:
                await db.delete(session)
                await db.commit()
                logger.debug("session_expired", session_id=session.id)
                return None

            expires_in = timedelta(seconds=self.core.config.session_expires_in)
            update_age = timedelta(seconds=self.core.config.session_update_age)
            if session.expires_at - expires_in + update_age <= current:
                session.expires_at = current + expires_in
                session.updated_at = current
                await db.commit()
                logger.debug("session_refreshed", session_id=session.id)

        return AuthContext(user=user, session=session)

    async def list_user_sessions(self, user_id: str) -> list[Session]:
        """Active sessions of a user, newest first."""
        async with self.db() as db:
            result = await db.execute(
                select(Session)
                .where(Session.user_id == user_id, Session.expires_at > now())
                .order_by(Session.created_at.desc())
            )
            return list(result.scalars())

    async def invalidate_session(self, token: AuthToken) -> None:
        async with self.db() as db:
            await db.execute(delete(Session).where(Session.token == token))
            await db.commit()

    async def revoke_user_session(self, user_id: str, token: str) -> bool:
        """Revoke one session, only if it belongs to the user."""
        async with self.db() as db:
            result = await db.execute(delete(Session).where(Session.user_id == user_id, Session.token == token))
            await db.commit()
        return result.rowcount > 0

    async def revoke_other_sessions(self, user_id: str, keep_token: AuthToken) -> int:
        async with self.db() as db:
            result = await db.execute(delete(Session).where(Session.user_id == user_id, Session.token != keep_token))
            await db.commit()
        logger.info("sessions_revoked", user_id=user_id, count=result.rowcount, kept_current=True)
        return result.rowcount

    async def revoke_all_sessions(self, user_id: str) -> int:
        async with self.db() as db:
            result = await db.execute(delete(Session).where(Session.user_id == user_id))
            await db.commit()
        logger.info("sessions_revoked", user_id=user_id, count=result.rowcount, kept_current=False)
        return result.rowcount
