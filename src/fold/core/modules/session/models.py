"""Session management models."""

from dataclasses import dataclass
from datetime import datetime
from typing import NewType

from pydantic import Field
from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from fold.core.db import Base, IdMixin, TimestampMixin
from fold.core.modules.user.models import User
from fold.core.views import CamelModel

AuthToken = NewType("AuthToken", str)


class Session(IdMixin, TimestampMixin, Base):
    """One authenticated browser or device context.

    Indexed on token - unique, user_id.
    """

    __tablename__ = "session"

    expires_at: Mapped[datetime]
    token: Mapped[str] = mapped_column(unique=True)
    ip_address: Mapped[str | None]
    user_agent: Mapped[str | None]
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)


@dataclass(frozen=True)
class AuthContext:
    """The caller's user and session, resolved once per request."""

    user: User
    session: Session

    @property
    def token(self) -> AuthToken:
        return AuthToken(self.session.token)


class SessionView(CamelModel):
    """Session information (API representation)."""

    id: str = Field(..., description="Session ID")
    token: str = Field(..., description="Session token")
    user_id: str
    expires_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, session: Session) -> "SessionView":
        return cls(
            id=session.id,
            token=session.token,
            user_id=session.user_id,
            expires_at=session.expires_at,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
