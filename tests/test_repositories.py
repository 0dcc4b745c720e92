from datetime import datetime, timedelta, timezone

import pytest

from core.db import DatabaseManager, get_db, switch_database
from core.exceptions import FocusSessionNotFoundError
from core.models import FocusSession, TimeSegment
from migrations import MigrationRunner

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def session(session_id="s1", user_id="alice", last_updated=BASE, **overrides):
    fields = dict(
        id=session_id,
        user_id=user_id,
        item="Rust",
        keywords=["Rust"],
        time_spent=[TimeSegment(start=BASE - timedelta(minutes=5))],
        last_updated=last_updated,
        model_used="tiny-model",
        trace_id="trace-1",
    )
    fields.update(overrides)
    return FocusSession(**fields)


# ============ Migrations ============


def test_migrations_apply_once(tmp_path):
    db_path = tmp_path / "focus.db"
    runner = MigrationRunner(db_path)

    assert runner.run_migrations() == 1
    assert runner.run_migrations() == 0

    status = runner.get_migration_status()
    assert status["applied_count"] == 1
    assert status["pending_count"] == 0
    assert status["applied"][0]["version"] == "0001"


def test_database_manager_starts_empty(db):
    counts = db.get_table_counts()

    assert set(counts) == {
        "focus_sessions",
        "website_visits",
        "text_attention",
        "image_attention",
        "video_attention",
        "audio_attention",
    }
    assert all(count == 0 for count in counts.values())


def test_reopening_existing_database_runs_no_migrations(tmp_path):
    DatabaseManager(tmp_path / "focus.db")

    assert MigrationRunner(tmp_path / "focus.db").run_migrations() == 0


# ============ Focus sessions ============


async def test_create_and_read_back(db):
    created = await db.focus_sessions.create_session(session())

    assert created.id == "s1"
    assert created.keywords == ["Rust"]
    assert created.time_spent == [TimeSegment(start=BASE - timedelta(minutes=5))]
    assert created.last_updated == BASE
    assert created.is_active
    assert await db.focus_sessions.get_by_id("s1") == created


async def test_latest_session_is_most_recently_updated(db):
    await db.focus_sessions.create_session(session("old", last_updated=BASE))
    await db.focus_sessions.create_session(session("new", last_updated=BASE + timedelta(minutes=1)))
    await db.focus_sessions.create_session(session("other-user", user_id="bob"))

    latest = await db.focus_sessions.find_latest_session("alice")

    assert latest.id == "new"
    assert await db.focus_sessions.find_latest_session("carol") is None


async def test_update_replaces_given_fields_only(db):
    await db.focus_sessions.create_session(session())
    end = BASE + timedelta(minutes=2)

    updated = await db.focus_sessions.update_session(
        "s1",
        time_spent=[TimeSegment(start=BASE - timedelta(minutes=5), end=end)],
        last_updated=end,
    )

    assert updated.time_spent[-1].end == end
    assert updated.last_updated == end
    assert updated.item == "Rust"
    assert updated.keywords == ["Rust"]
    assert not updated.is_active


async def test_update_missing_session_raises(db):
    with pytest.raises(FocusSessionNotFoundError):
        await db.focus_sessions.update_session("missing", item="Rust")


async def test_history_pages_newest_first(db):
    for minute in range(5):
        await db.focus_sessions.create_session(
            session(f"s{minute}", last_updated=BASE + timedelta(minutes=minute))
        )

    first_page = await db.focus_sessions.get_history("alice", limit=2)
    second_page = await db.focus_sessions.get_history("alice", limit=2, offset=2)

    assert [s.id for s in first_page] == ["s4", "s3"]
    assert [s.id for s in second_page] == ["s2", "s1"]


# ============ Attention ============


async def test_window_bounds_are_inclusive(db):
    await db.attention.record_text_attention("alice", "https://a", "at start", BASE)
    await db.attention.record_text_attention("alice", "https://a", "at end", BASE + timedelta(minutes=5))
    await db.attention.record_text_attention("alice", "https://a", "after", BASE + timedelta(minutes=6))

    records = await db.attention.get_text_attention("alice", BASE, BASE + timedelta(minutes=5))

    assert [r.text for r in records] == ["at end", "at start"]


async def test_capped_queries_return_most_recent(db):
    for minute in range(4):
        await db.attention.record_audio_attention(
            "alice", f"https://pod/{minute}", f"episode {minute}", "summary", BASE + timedelta(minutes=minute)
        )

    capped = await db.attention.get_audio_attention("alice", BASE, BASE + timedelta(hours=1), limit=2)
    uncapped = await db.attention.get_audio_attention("alice", BASE, BASE + timedelta(hours=1))

    assert [a.title for a in capped] == ["episode 3", "episode 2"]
    assert len(uncapped) == 4


async def test_active_users_across_all_kinds(db):
    await db.attention.record_website_visit("alice", "https://a", "A", opened_at=BASE)
    await db.attention.record_image_attention("bob", "https://img", "cat", "a cat", BASE)
    await db.attention.record_video_attention("carol", "v1", "talk", "chan", BASE, caption="hi")
    await db.attention.record_audio_attention("dave", "https://pod", "ep", "sum", BASE)
    await db.attention.record_text_attention("erin", "https://t", "old", BASE - timedelta(hours=2))

    users = await db.attention.get_active_user_ids(BASE - timedelta(hours=1))

    assert users == ["alice", "bob", "carol", "dave"]


def test_switch_database_points_global_manager_at_new_file(tmp_path):
    target = tmp_path / "nested" / "other.db"

    assert switch_database(str(target)) is True
    assert get_db().db_path == target
    assert target.exists()
