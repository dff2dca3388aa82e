"""Populate the database with a demo user and sample journal content.

Run with ``fold-seed``. The demo user is reused when it already exists, the
content is added on every run.
"""

import asyncio
import random
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta

import structlog

from fold.config import Config
from fold.core.core import Core
from fold.core.modules.memory.models import Badge, Media, MediaKind, Memory, Story, StoryPage, Visibility
from fold.core.modules.user.models import User
from fold.logging import setup_logging
from fold.utils import generate_id, now

logger = structlog.get_logger(__name__)

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "Password123!"  # noqa: S105
DEMO_NAME = "Demo User"

MEMORY_COUNT = 50
STORY_COUNT = 15
MAX_PAGES_PER_STORY = 5
MEMORY_MEDIA_PROBABILITY = 0.7
LOCATION_PROBABILITY = 0.2

BLOB_BASE = "https://viqwjhprxs3j5sad.public.blob.vercel-storage.com"
MEDIA_URLS: dict[MediaKind, list[str]] = {
    MediaKind.VIDEO: [
        f"{BLOB_BASE}/videoplayback%20%283%29.mp4",
        f"{BLOB_BASE}/videoplayback%20%284%29.mp4",
        f"{BLOB_BASE}/bablesh-bNrGuCB1VLBnkjOwTYsxg86va3uTws.mp4",
    ],
    MediaKind.IMAGE: [
        f"{BLOB_BASE}/cat-images/1-llBttGXF2kvot7YHz0XLt5yFCldbUx.png",
        f"{BLOB_BASE}/cat-images/10-2HFRv4Pzg7t3dAwdUfexHU91MWl7xk.png",
        f"{BLOB_BASE}/cat-images/100-S3PlR1pscjVqKKYqZwjizC8VOFMb0c.png",
        f"{BLOB_BASE}/cat-images/12-0afFeP9R1Tk41dK5wvBJnONR18u0yr.png",
        f"{BLOB_BASE}/cat-images/14-Uh3S3l0RkwHkWIGHXf47SauHsZOSlT.png",
        f"{BLOB_BASE}/cat-images/15-rvfuQ9s2BN25V0Cq8uHXTxD1XCCOH9.png",
    ],
    MediaKind.AUDIO: [
        f"{BLOB_BASE}/cat-images/Adri%C3%A1n%20Berenguer%20-%20Premiere.mp3",
        f"{BLOB_BASE}/cat-images/BalloonPlanet%20-%20Iron%20Caravan.mp3",
        f"{BLOB_BASE}/cat-images/Roie%20Shpigler%20-%20Until%20We%E2%80%99re%20Gone.mp3",
        f"{BLOB_BASE}/cat-images/Yehezkel%20Raz%20-%20Ballerina.mp3",
    ],
}

MOODS = [-2, -1, 0, 1, 2]
LOCATION = ("San Francisco, CA", 37.7749, -122.4194)
BADGES = [
    ("First Post", "first-post"),
    ("Memory Maker", "memory-maker"),
    ("Storyteller", "story-teller"),
    ("Vlogger", "vlogger"),
    ("Photographer", "photographer"),
]


@dataclass(frozen=True)
class SeedSummary:
    user_id: str
    memories: int
    stories: int
    pages: int
    badges: int


def random_date(rng: random.Random, start: datetime, end: datetime) -> datetime:
    return start + timedelta(seconds=rng.random() * max((end - start).total_seconds(), 0))


def media_of_kind(rng: random.Random, kind: MediaKind) -> Media:
    return Media(kind=kind, url=rng.choice(MEDIA_URLS[kind]))


def random_memory_media(rng: random.Random) -> Media | None:
    """70% of memories carry one media item of a uniformly chosen kind."""
    if rng.random() >= MEMORY_MEDIA_PROBABILITY:
        return None
    return media_of_kind(rng, rng.choice(list(MediaKind)))


def random_page_media(rng: random.Random) -> Media | None:
    """Video 20%, otherwise image 40%, otherwise audio 30%, otherwise nothing."""
    if rng.random() < 0.2:
        return media_of_kind(rng, MediaKind.VIDEO)
    if rng.random() < 0.4:
        return media_of_kind(rng, MediaKind.IMAGE)
    if rng.random() < 0.3:
        return media_of_kind(rng, MediaKind.AUDIO)
    return None


def build_memories(rng: random.Random, user_id: str, start: datetime, end: datetime) -> list[Memory]:
    memories = []
    for i in range(MEMORY_COUNT):
        media = random_memory_media(rng)
        mood = rng.choice(MOODS)
        location_name, latitude, longitude = LOCATION if rng.random() < LOCATION_PROBABILITY else (None, None, None)
        memories.append(
            Memory(
                user_id=user_id,
                mood=mood,
                text_content=f"Memory #{i + 1}: Feeling {mood} today. {'Attached some media.' if media else 'Just thoughts.'}",
                visibility=Visibility.PRIVATE,
                media=media,
                location_name=location_name,
                latitude=latitude,
                longitude=longitude,
                created_at=random_date(rng, start, end),
            )
        )
    return memories


def build_stories(rng: random.Random, user_id: str, start: datetime, end: datetime) -> list[Story]:
    stories = []
    for i in range(STORY_COUNT):
        pages = [
            StoryPage(page_number=number, page_text=f"Page {number}: Exploring the world.", media=random_page_media(rng))
            for number in range(1, rng.randint(1, MAX_PAGES_PER_STORY) + 1)
        ]
        stories.append(
            Story(
                user_id=user_id,
                title=f"My Adventures - Chapter {i + 1}",
                visibility=Visibility.PRIVATE,
                created_at=random_date(rng, start, end),
                pages=pages,
            )
        )
    return stories


def build_badges(rng: random.Random, user_id: str) -> list[Badge]:
    # Slugs are unique across runs, so each seed run awards a fresh set
    return [
        Badge(
            user_id=user_id,
            name=name,
            slug=f"{slug}-{generate_id()[:12]}",
            description=f"Awarded for being a great {name}",
            icon_url=rng.choice(MEDIA_URLS[MediaKind.IMAGE]),
        )
        for name, slug in BADGES
    ]


async def ensure_demo_user(core: Core) -> User:
    user = await core.services.user.find_user_by_email(DEMO_EMAIL)
    if user is not None:
        logger.info("demo_user_exists", user_id=user.id)
        return user

    context = await core.services.auth.sign_up_email(DEMO_NAME, DEMO_EMAIL, DEMO_PASSWORD)
    await core.services.session.invalidate_session(context.token)
    logger.info("demo_user_created", user_id=context.user.id, email=DEMO_EMAIL)
    return context.user


async def seed(core: Core, rng: random.Random) -> SeedSummary:
    user = await ensure_demo_user(core)
    start, end = datetime(2025, 1, 1, tzinfo=UTC), now()

    memories = build_memories(rng, user.id, start, end)
    stories = build_stories(rng, user.id, start, end)
    badges = build_badges(rng, user.id)

    async with core.db() as db:
        db.add_all([*memories, *stories, *badges])
        await db.commit()

    summary = SeedSummary(
        user_id=user.id,
        memories=len(memories),
        stories=len(stories),
        pages=sum(len(story.pages) for story in stories),
        badges=len(badges),
    )
    logger.info("seed_completed", **asdict(summary))
    return summary


async def run_seed(config: Config) -> SeedSummary:
    core = Core(config)
    async with core.lifespan():
        return await seed(core, random.Random())


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    asyncio.run(run_seed(config))


if __name__ == "__main__":
    main()
