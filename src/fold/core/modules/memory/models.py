"""Journal content created by the seed script.

A memory or story page carries at most one media item. The item is stored as
a (kind, url) pair guarded by a CHECK constraint, so "video and image at
once" cannot be persisted.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fold.core.db import Base, IdMixin
from fold.utils import now


class MediaKind(StrEnum):
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"


class Visibility(StrEnum):
    PRIVATE = "private"
    FRIENDS = "friends"
    PUBLIC = "public"


@dataclass(frozen=True)
class Media:
    kind: MediaKind
    url: str


MEDIA_PAIR_CHECK = "(media_kind IS NULL) = (media_url IS NULL)"


class MediaMixin:
    media_kind: Mapped[MediaKind | None] = mapped_column(Enum(MediaKind, native_enum=False, length=16))
    media_url: Mapped[str | None]

    @property
    def media(self) -> Media | None:
        if self.media_kind is None or self.media_url is None:
            return None
        return Media(kind=self.media_kind, url=self.media_url)

    @media.setter
    def media(self, value: Media | None) -> None:
        self.media_kind = value.kind if value else None
        self.media_url = value.url if value else None


class Memory(IdMixin, MediaMixin, Base):
    """Mood-tagged journal entry."""

    __tablename__ = "memory"
    __table_args__ = (
        CheckConstraint(MEDIA_PAIR_CHECK, name="ck_memory_single_media"),
        CheckConstraint("mood BETWEEN -2 AND 2", name="ck_memory_mood_range"),
    )

    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)
    mood: Mapped[int]
    text_content: Mapped[str]
    visibility: Mapped[Visibility] = mapped_column(Enum(Visibility, native_enum=False, length=16))
    location_name: Mapped[str | None]
    latitude: Mapped[float | None]
    longitude: Mapped[float | None]
    created_at: Mapped[datetime] = mapped_column(default=now)


class Story(IdMixin, Base):
    """Ordered collection of pages."""

    __tablename__ = "story"

    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)
    title: Mapped[str]
    visibility: Mapped[Visibility] = mapped_column(Enum(Visibility, native_enum=False, length=16))
    created_at: Mapped[datetime] = mapped_column(default=now)

    pages: Mapped[list["StoryPage"]] = relationship(
        back_populates="story",
        order_by="StoryPage.page_number",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class StoryPage(IdMixin, MediaMixin, Base):
    __tablename__ = "story_page"
    __table_args__ = (
        CheckConstraint(MEDIA_PAIR_CHECK, name="ck_story_page_single_media"),
        UniqueConstraint("story_id", "page_number"),
    )

    story_id: Mapped[str] = mapped_column(ForeignKey("story.id", ondelete="CASCADE"), index=True)
    page_number: Mapped[int]
    page_text: Mapped[str]

    story: Mapped[Story] = relationship(back_populates="pages")


class Badge(IdMixin, Base):
    """Achievement awarded to a user."""

    __tablename__ = "badge"

    user_id: Mapped[str] = mapped_column(ForeignKey("user.id", ondelete="CASCADE"), index=True)
    name: Mapped[str]
    slug: Mapped[str] = mapped_column(unique=True)
    description: Mapped[str]
    icon_url: Mapped[str | None]
    created_at: Mapped[datetime] = mapped_column(default=now)
