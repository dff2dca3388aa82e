from datetime import timedelta

import structlog
from sqlalchemy import case, delete, literal
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from fold.core.core import Service
from fold.core.modules.rate_limit.models import RateLimit
from fold.errors import RateLimitError
from fold.utils import generate_id, now

logger = structlog.get_logger(__name__)


class RateLimitService(Service):
    """Fixed-window request limiting persisted in the database."""

    async def on_start(self) -> None:
        """Drop counters whose window ended while the server was down."""
        window_start = now() - timedelta(seconds=self.core.config.rate_limit_window)
        async with self.db() as db:
            result = await db.execute(delete(RateLimit).where(RateLimit.last_request <= window_start))
            await db.commit()
        logger.debug("expired_rate_limits_removed", count=result.rowcount)

    async def hit(self, key: str) -> None:
        """Count one request for ``key``.

        The counter is bumped by a single upsert, so concurrent requests for
        the same key neither collide on insert nor lose increments.

        Raises:
            RateLimitError: If the key already used up its window
        """
        config = self.core.config
        if not config.rate_limit_enabled:
            return

        current = now()
        window_start = current - timedelta(seconds=config.rate_limit_window)
        insert = postgresql_insert if self.core.engine.dialect.name == "postgresql" else sqlite_insert
        async with self.db() as db:
            window_expired = RateLimit.last_request <= window_start
            stmt = (
                insert(RateLimit)
                .values(id=generate_id(), key=key, count=1, last_request=current)
                .on_conflict_do_update(
                    index_elements=[RateLimit.key],
                    set_={
                        "count": case((window_expired, 1), else_=RateLimit.count + 1),
                        "last_request": case(
                            (window_expired, literal(current, RateLimit.last_request.type)),
                            else_=RateLimit.last_request,
                        ),
                    },
                )
                .returning(RateLimit.count)
            )
            count = (await db.execute(stmt)).scalar_one()
            await db.commit()

        if count > config.rate_limit_max:
            logger.warning("rate_limit_exceeded", key=key, count=count)
            raise RateLimitError
