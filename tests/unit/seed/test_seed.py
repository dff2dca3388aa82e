"""Tests for the demo data seed."""

import random
from datetime import UTC, datetime

from sqlalchemy import func, select

from fold.core.modules.memory.models import Badge, MediaKind, Memory, Story, StoryPage
from fold.seed import (
    BADGES,
    DEMO_EMAIL,
    MAX_PAGES_PER_STORY,
    MEDIA_URLS,
    MEMORY_COUNT,
    STORY_COUNT,
    build_badges,
    build_memories,
    build_stories,
    media_of_kind,
    random_date,
    seed,
)

START = datetime(2025, 1, 1, tzinfo=UTC)
END = datetime(2025, 6, 1, tzinfo=UTC)


class TestBuilders:
    """Tests for the in-memory content builders."""

    def test_media_of_kind_uses_matching_urls(self):
        rng = random.Random(1)
        for kind in MediaKind:
            media = media_of_kind(rng, kind)
            assert media.kind is kind
            assert media.url in MEDIA_URLS[kind]

    def test_random_date_within_range(self):
        rng = random.Random(2)
        for _ in range(20):
            assert START <= random_date(rng, START, END) <= END

    def test_memories(self):
        """Test that memories carry at most one media item and a valid mood."""
        memories = build_memories(random.Random(3), "user-1", START, END)
        assert len(memories) == MEMORY_COUNT
        for memory in memories:
            assert -2 <= memory.mood <= 2
            assert (memory.media_kind is None) == (memory.media_url is None)
        assert any(memory.media is not None for memory in memories)

    def test_story_pages_numbered_from_one(self):
        stories = build_stories(random.Random(4), "user-1", START, END)
        assert len(stories) == STORY_COUNT
        for story in stories:
            numbers = [page.page_number for page in story.pages]
            assert numbers == list(range(1, len(numbers) + 1))
            assert 1 <= len(numbers) <= MAX_PAGES_PER_STORY

    def test_badge_slugs_unique(self):
        rng = random.Random(5)
        slugs = [badge.slug for badge in build_badges(rng, "user-1") + build_badges(rng, "user-1")]
        assert len(slugs) == len(set(slugs)) == 2 * len(BADGES)


class TestSeed:
    """Tests for seeding a database."""

    def test_seed_populates_database(self, run_core):
        async def scenario(core):
            summary = await seed(core, random.Random(6))
            async with core.db() as db:
                counts = {
                    model.__tablename__: (await db.execute(select(func.count()).select_from(model))).scalar_one()
                    for model in (Memory, Story, StoryPage, Badge)
                }
            return summary, counts

        summary, counts = run_core(scenario)
        assert counts == {
            "memory": MEMORY_COUNT,
            "story": STORY_COUNT,
            "story_page": summary.pages,
            "badge": len(BADGES),
        }

    def test_demo_user_reused_and_can_sign_in(self, run_core):
        """Test that a second run keeps the same demo user."""

        async def scenario(core):
            first = await seed(core, random.Random(7))
            second = await seed(core, random.Random(8))
            context = await core.services.auth.sign_in_email(DEMO_EMAIL, "Password123!")
            return first, second, context

        first, second, context = run_core(scenario)
        assert first.user_id == second.user_id == context.user.id
