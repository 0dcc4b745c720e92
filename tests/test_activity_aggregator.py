from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import ActivityFetchError
from core.models import ActivityWindowBundle, ImageAttention, TextAttention
from core.settings import FocusSettings
from processing.activity_aggregator import (
    PARAGRAPH_SEPARATOR,
    ActivityAggregator,
    concatenate_text_attention,
)

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def text(record_id, url, body, minute):
    return TextAttention(
        id=record_id,
        user_id="alice",
        url=url,
        text=body,
        timestamp=BASE + timedelta(minutes=minute),
    )


class InMemorySource:
    """Activity source over plain lists; kinds listed in `failing` raise"""

    def __init__(self, texts=(), images=(), failing=()):
        self.texts = list(texts)
        self.images = list(images)
        self.failing = set(failing)
        self.limits = {}

    def _check(self, kind):
        if kind in self.failing:
            raise ConnectionError(f"{kind} unavailable")

    async def get_website_visits(self, user_id, start, end):
        self._check("website_visits")
        return []

    async def get_text_attention(self, user_id, start, end):
        self._check("text")
        return list(self.texts)

    async def get_image_attention(self, user_id, start, end, limit=None):
        self._check("images")
        self.limits["images"] = limit
        return list(self.images)

    async def get_video_attention(self, user_id, start, end, limit=None):
        self._check("videos")
        self.limits["videos"] = limit
        return []

    async def get_audio_attention(self, user_id, start, end, limit=None):
        self._check("audio")
        self.limits["audio"] = limit
        return []


# ============ concatenate_text_attention ============


def test_groups_by_url_in_first_seen_order():
    groups = concatenate_text_attention(
        [
            text(1, "https://b", "b-late", 4),
            text(2, "https://a", "a-only", 1),
            text(3, "https://b", "b-early", 2),
        ]
    )

    assert [g.url for g in groups] == ["https://b", "https://a"]
    assert groups[0].texts == ["b-early", "b-late"]
    assert groups[0].concatenated_text == f"b-early{PARAGRAPH_SEPARATOR}b-late"
    assert groups[0].timestamps == [BASE + timedelta(minutes=2), BASE + timedelta(minutes=4)]


def test_large_gaps_are_still_joined():
    groups = concatenate_text_attention(
        [text(1, "https://a", "morning", 0), text(2, "https://a", "evening", 480)]
    )

    assert len(groups) == 1
    assert groups[0].concatenated_text == "morning\n\nevening"


def test_no_text_gives_no_groups():
    assert concatenate_text_attention([]) == []


# ============ fetch_window ============


async def test_caps_keep_most_recent_images():
    images = [
        ImageAttention(
            id=i,
            user_id="alice",
            url=f"https://img/{i}",
            title=f"image {i}",
            caption="",
            timestamp=BASE + timedelta(minutes=i),
        )
        for i in range(4)
    ]
    source = InMemorySource(images=images)
    aggregator = ActivityAggregator(source, settings=FocusSettings(max_images=2))

    bundle = await aggregator.fetch_window("alice", BASE, BASE + timedelta(minutes=10))

    assert [image.id for image in bundle.images] == [3, 2]
    assert source.limits == {"images": 2, "videos": 5, "audio": 5}


async def test_partial_failure_leaves_kind_empty():
    source = InMemorySource(texts=[text(1, "https://a", "hello", 1)], failing={"images", "audio"})
    aggregator = ActivityAggregator(source, settings=FocusSettings())

    bundle = await aggregator.fetch_window("alice", BASE, BASE + timedelta(minutes=10))

    assert bundle.images == []
    assert bundle.audio == []
    assert len(bundle.text_groups) == 1
    assert bundle.total_count == 1


async def test_total_failure_raises_activity_fetch_error():
    source = InMemorySource(failing=set(ActivityAggregator.KINDS))
    aggregator = ActivityAggregator(source, settings=FocusSettings())

    with pytest.raises(ActivityFetchError) as exc_info:
        await aggregator.fetch_window("alice", BASE, BASE + timedelta(minutes=10))

    assert exc_info.value.user_id == "alice"


async def test_bundle_from_database(db):
    start = BASE
    end = BASE + timedelta(minutes=10)
    await db.attention.record_website_visit(
        "alice", "https://a", "Rust Book", opened_at=BASE + timedelta(minutes=1)
    )
    await db.attention.record_text_attention("alice", "https://a", "ownership", BASE + timedelta(minutes=2))
    await db.attention.record_text_attention("alice", "https://a", "borrowing", BASE + timedelta(minutes=3))
    await db.attention.record_video_attention(
        "alice", "vid1", "Rust in 100s", "Fireship", BASE + timedelta(minutes=4)
    )
    # Outside the window
    await db.attention.record_text_attention("alice", "https://a", "stale", BASE - timedelta(minutes=1))
    # Another user
    await db.attention.record_text_attention("bob", "https://b", "pasta", BASE + timedelta(minutes=2))

    bundle = await ActivityAggregator(db.attention, settings=FocusSettings()).fetch_window(
        "alice", start, end
    )

    assert len(bundle.website_visits) == 1
    assert len(bundle.text_groups) == 1
    assert bundle.text_groups[0].concatenated_text == "ownership\n\nborrowing"
    assert [video.video_id for video in bundle.videos] == ["vid1"]
    assert bundle.earliest_timestamp(end) == BASE + timedelta(minutes=1)


def test_earliest_timestamp_defaults_when_empty():
    bundle = ActivityWindowBundle(user_id="alice", window_start=BASE, window_end=BASE)

    assert bundle.is_empty
    assert bundle.earliest_timestamp(BASE) == BASE
