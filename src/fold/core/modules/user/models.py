from datetime import datetime

from pydantic import Field
from sqlalchemy.orm import Mapped, mapped_column

from fold.core.db import Base, IdMixin, TimestampMixin
from fold.core.views import CamelModel


class User(IdMixin, TimestampMixin, Base):
    """Identity record shared by every credential and session of a person."""

    __tablename__ = "user"

    name: Mapped[str]
    email: Mapped[str] = mapped_column(unique=True)
    email_verified: Mapped[bool] = mapped_column(default=False)
    image: Mapped[str | None]  # avatar URL


class UserView(CamelModel):
    """User profile (API representation)."""

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    avatar: str | None = Field(None, description="Avatar URL")
    email_verified: bool = Field(..., description="Whether the email address has been verified")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            avatar=user.image,
            email_verified=user.email_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
