from datetime import datetime, timedelta, timezone

from core.events import register_focus_listener
from core.models import FocusSession, TimeSegment
from services.focus_service import (
    end_user_focus,
    get_active_focus,
    get_focus_history,
    to_snapshot,
)

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_session(session_id, last_updated, segments):
    return FocusSession(
        id=session_id,
        user_id="alice",
        item="Rust",
        keywords=["Rust"],
        time_spent=segments,
        last_updated=last_updated,
        model_used="tiny-model",
    )


def test_open_session_window_ends_now():
    session = make_session("s1", BASE, [TimeSegment(start=BASE - timedelta(minutes=5))])
    now = BASE + timedelta(minutes=1)

    snapshot = to_snapshot(session, now)

    assert snapshot.is_active
    assert snapshot.window_start == BASE - timedelta(minutes=5)
    assert snapshot.window_end == now
    assert snapshot.time_spent[0].end is None


def test_closed_session_window_ends_at_last_segment():
    session = make_session(
        "s1",
        BASE,
        [
            TimeSegment(start=BASE - timedelta(minutes=30), end=BASE - timedelta(minutes=20)),
            TimeSegment(start=BASE - timedelta(minutes=10), end=BASE),
        ],
    )

    snapshot = to_snapshot(session, BASE + timedelta(hours=1))

    assert not snapshot.is_active
    assert snapshot.window_start == BASE - timedelta(minutes=30)
    assert snapshot.window_end == BASE
    assert snapshot.to_payload()["windowEnd"].startswith("2024-05-01T12:00:00")


async def test_active_focus_is_latest_session(db):
    await db.focus_sessions.create_session(
        make_session("old", BASE, [TimeSegment(start=BASE, end=BASE + timedelta(minutes=1))])
    )
    await db.focus_sessions.create_session(
        make_session("new", BASE + timedelta(minutes=2), [TimeSegment(start=BASE + timedelta(minutes=2))])
    )

    snapshot = await get_active_focus("alice", db=db)

    assert snapshot.id == "new"
    assert snapshot.is_active
    assert await get_active_focus("nobody", db=db) is None


async def test_history_respects_limit_and_offset(db):
    for minute in range(3):
        await db.focus_sessions.create_session(
            make_session(
                f"s{minute}",
                BASE + timedelta(minutes=minute),
                [TimeSegment(start=BASE, end=BASE + timedelta(minutes=minute))],
            )
        )

    assert [s.id for s in await get_focus_history("alice", limit=2, db=db)] == ["s2", "s1"]
    assert [s.id for s in await get_focus_history("alice", limit=2, offset=2, db=db)] == ["s0"]
    assert await get_focus_history("alice", limit=0, db=db) == []


async def test_active_focus_is_none_once_latest_session_ended(db):
    await db.focus_sessions.create_session(
        make_session("s1", BASE, [TimeSegment(start=BASE - timedelta(minutes=5), end=BASE)])
    )

    assert await get_active_focus("alice", db=db) is None


async def test_history_can_leave_out_open_session(db):
    await db.focus_sessions.create_session(
        make_session("closed", BASE, [TimeSegment(start=BASE - timedelta(minutes=5), end=BASE)])
    )
    await db.focus_sessions.create_session(
        make_session("open", BASE + timedelta(minutes=1), [TimeSegment(start=BASE)])
    )

    everything = await get_focus_history("alice", db=db)
    ended_only = await get_focus_history("alice", include_active=False, db=db)

    assert [s.id for s in everything] == ["open", "closed"]
    assert [s.id for s in ended_only] == ["closed"]


async def test_end_user_focus_closes_open_segment_and_emits(db):
    events = []
    register_focus_listener(events.append)
    await db.focus_sessions.create_session(
        make_session("s1", BASE, [TimeSegment(start=BASE - timedelta(minutes=5))])
    )
    end = BASE + timedelta(minutes=3)

    snapshot = await end_user_focus("alice", db=db, now=end)

    assert snapshot.id == "s1"
    assert not snapshot.is_active
    assert snapshot.window_end == end
    stored = await db.focus_sessions.get_by_id("s1")
    assert stored.time_spent[-1].end == end
    assert stored.last_updated == end
    assert stored.item == "Rust"
    assert [event.change_type for event in events] == ["ended"]
    assert events[0].focus.id == "s1"


async def test_end_user_focus_without_open_session_does_nothing(db):
    events = []
    register_focus_listener(events.append)
    await db.focus_sessions.create_session(
        make_session("s1", BASE, [TimeSegment(start=BASE - timedelta(minutes=5), end=BASE)])
    )

    assert await end_user_focus("alice", db=db, now=BASE + timedelta(minutes=1)) is None
    assert await end_user_focus("nobody", db=db) is None

    stored = await db.focus_sessions.get_by_id("s1")
    assert stored.last_updated == BASE
    assert events == []
