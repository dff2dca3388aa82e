"""Tests for session expiry and refresh."""

from datetime import timedelta

from sqlalchemy import func, select, update

from fold.core.modules.session.models import AuthToken, Session
from fold.utils import now


async def create_user_session(core):
    user = await core.services.user.create_user("Jane", "jane@example.com")
    return await core.services.session.create_session(user.id, "127.0.0.1", "pytest")


async def set_expires_at(core, session_id, expires_at):
    async with core.db() as db:
        await db.execute(update(Session).where(Session.id == session_id).values(expires_at=expires_at))
        await db.commit()


class TestResolve:
    """Tests for token lookup."""

    def test_unknown_token(self, run_core):
        async def scenario(core):
            return await core.services.session.resolve(AuthToken("missing"))

        assert run_core(scenario) is None

    def test_fresh_session_not_refreshed(self, run_core):
        async def scenario(core):
            session = await create_user_session(core)
            context = await core.services.session.resolve(AuthToken(session.token))
            return session, context

        session, context = run_core(scenario)
        assert context is not None
        assert context.user.email == "jane@example.com"
        assert context.session.expires_at == session.expires_at

    def test_session_older_than_update_age_refreshed(self, run_core):
        """Test that a session last refreshed over a day ago gets a full week again."""

        async def scenario(core):
            session = await create_user_session(core)
            config = core.config
            stale = now() + timedelta(seconds=config.session_expires_in - config.session_update_age - 60)
            await set_expires_at(core, session.id, stale)
            context = await core.services.session.resolve(AuthToken(session.token))
            return stale, context

        stale, context = run_core(scenario)
        assert context is not None
        assert context.session.expires_at >= stale + timedelta(seconds=60)

    def test_expired_session_deleted(self, run_core):
        """Test that an expired session is treated as absent and removed."""

        async def scenario(core):
            session = await create_user_session(core)
            await set_expires_at(core, session.id, now() - timedelta(seconds=1))
            context = await core.services.session.resolve(AuthToken(session.token))
            async with core.db() as db:
                remaining = (await db.execute(select(func.count()).select_from(Session))).scalar_one()
            return context, remaining

        context, remaining = run_core(scenario)
        assert context is None
        assert remaining == 0


class TestRevocation:
    """Tests for revoking sessions."""

    def test_revoke_other_sessions_keeps_current(self, run_core):
        async def scenario(core):
            user = await core.services.user.create_user("Jane", "jane@example.com")
            current = await core.services.session.create_session(user.id)
            await core.services.session.create_session(user.id)
            await core.services.session.create_session(user.id)
            revoked = await core.services.session.revoke_other_sessions(user.id, AuthToken(current.token))
            remaining = await core.services.session.list_user_sessions(user.id)
            return current, revoked, remaining

        current, revoked, remaining = run_core(scenario)
        assert revoked == 2
        assert [s.token for s in remaining] == [current.token]

    def test_cannot_revoke_another_users_session(self, run_core):
        async def scenario(core):
            jane = await core.services.user.create_user("Jane", "jane@example.com")
            john = await core.services.user.create_user("John", "john@example.com")
            johns_session = await core.services.session.create_session(john.id)
            return await core.services.session.revoke_user_session(jane.id, johns_session.token)

        assert run_core(scenario) is False
