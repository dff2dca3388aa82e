from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from fold.core.db import Base, IdMixin, TimestampMixin


class Verification(IdMixin, TimestampMixin, Base):
    """Short-lived token record for email verification and password reset."""

    __tablename__ = "verification"

    identifier: Mapped[str] = mapped_column(index=True)
    value: Mapped[str]
    expires_at: Mapped[datetime]
