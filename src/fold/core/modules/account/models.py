from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fold.core.db import Base, IdMixin, TimestampMixin

CREDENTIAL_PROVIDER = "credential"


class Account(IdMixin, TimestampMixin, Base):
    """A credential or identity-provider binding of a user.

    ``password`` is only set for the credential provider, OAuth tokens only
    for external providers. One user may own several accounts (linking).
    """

    __tablename__ = "account"
    __table_args__ = (UniqueConstraint("provider_id", "account_id"),)

    account_id: Mapped[str]
    provider_id: Mapped[str]
    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)
    access_token: Mapped[str | None]
    refresh_token: Mapped[str | None]
    id_token: Mapped[str | None]
    access_token_expires_at: Mapped[datetime | None]
    refresh_token_expires_at: Mapped[datetime | None]
    scope: Mapped[str | None]
    password: Mapped[str | None]  # bcrypt hash


@dataclass(frozen=True)
class OAuthTokens:
    access_token: str | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    access_token_expires_at: datetime | None = None
    scope: str | None = None
