from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from fold.core.db import Base, IdMixin
from fold.utils import now


class RateLimit(IdMixin, Base):
    """Request counter for one client key.

    ``last_request`` marks the start of the current window.
    """

    __tablename__ = "rate_limit"

    key: Mapped[str] = mapped_column(unique=True)
    count: Mapped[int] = mapped_column(default=0)
    last_request: Mapped[datetime] = mapped_column(default=now)
