import asyncio
from datetime import datetime, timedelta, timezone

from agents.focus_session_agent import FocusSessionAgent
from core.events import register_focus_listener
from core.focus_scheduler import FocusScheduler, LastTickStore
from core.models import FocusAction, FocusDecision
from processing.activity_aggregator import ActivityAggregator

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class StaticUsers:
    def __init__(self, users):
        self.users = list(users)
        self.since = []

    async def get_active_user_ids(self, since):
        self.since.append(since)
        return list(self.users)


class BrokenDiscovery:
    async def get_active_user_ids(self, since):
        raise ConnectionError("activity store unreachable")


class RecordingAgent:
    """Returns canned decisions and remembers the window fallbacks it was given"""

    def __init__(self, decisions=None, failing=()):
        self.decisions = decisions or {}
        self.failing = set(failing)
        self.calls = []

    async def process_user(self, user_id, fallback_start=None, now=None):
        self.calls.append((user_id, fallback_start, now))
        if user_id in self.failing:
            raise RuntimeError(f"fetch failed for {user_id}")
        return self.decisions.get(user_id, FocusDecision.no_activity())


class BlockingAgent:
    def __init__(self):
        self.calls = 0
        self.release = asyncio.Event()

    async def process_user(self, user_id, fallback_start=None, now=None):
        self.calls += 1
        await self.release.wait()
        return FocusDecision.no_activity()


class FailingActivityFor:
    """Delegates to the real repository except for one user, whose reads all fail"""

    def __init__(self, repository, failing_user):
        self.repository = repository
        self.failing_user = failing_user

    def _guard(self, user_id):
        if user_id == self.failing_user:
            raise ConnectionError("activity store unreachable")

    async def get_website_visits(self, user_id, start, end):
        self._guard(user_id)
        return await self.repository.get_website_visits(user_id, start, end)

    async def get_text_attention(self, user_id, start, end):
        self._guard(user_id)
        return await self.repository.get_text_attention(user_id, start, end)

    async def get_image_attention(self, user_id, start, end, limit=None):
        self._guard(user_id)
        return await self.repository.get_image_attention(user_id, start, end, limit)

    async def get_video_attention(self, user_id, start, end, limit=None):
        self._guard(user_id)
        return await self.repository.get_video_attention(user_id, start, end, limit)

    async def get_audio_attention(self, user_id, start, end, limit=None):
        self._guard(user_id)
        return await self.repository.get_audio_attention(user_id, start, end, limit)


async def settle(rounds: int = 10):
    for _ in range(rounds):
        await asyncio.sleep(0)


# ============ LastTickStore ============


async def test_last_tick_store_roundtrip():
    store = LastTickStore()

    assert await store.get("alice") is None
    await store.set("alice", BASE)
    assert await store.get("alice") == BASE
    assert await store.snapshot() == {"alice": BASE}

    await store.clear()
    assert await store.snapshot() == {}


# ============ tick ============


async def test_tick_counts_outcomes():
    agent = RecordingAgent(
        decisions={
            "a": FocusDecision(action=FocusAction.CREATED),
            "b": FocusDecision(action=FocusAction.UPDATED),
            "c": FocusDecision(action=FocusAction.CLOSED),
        },
        failing={"e"},
    )
    scheduler = FocusScheduler(agent, StaticUsers(["a", "b", "c", "d", "e"]))

    stats = await scheduler.tick(now=BASE)

    assert stats.users == 5
    assert (stats.created, stats.updated, stats.closed) == (1, 1, 1)
    assert stats.no_activity == 1
    assert stats.failed == 1
    assert stats.started_at == BASE
    assert scheduler.stats["ticks_run"] == 1
    assert scheduler.stats["last_tick"] is stats


async def test_discovery_uses_lookback():
    source = StaticUsers([])
    scheduler = FocusScheduler(
        RecordingAgent(), source, discovery_lookback=timedelta(minutes=30)
    )

    stats = await scheduler.tick(now=BASE)

    assert stats.users == 0
    assert source.since == [BASE - timedelta(minutes=30)]


async def test_discovery_failure_aborts_tick_without_raising():
    agent = RecordingAgent()
    scheduler = FocusScheduler(agent, BrokenDiscovery())

    assert await scheduler.tick(now=BASE) is None
    assert scheduler.stats["ticks_failed"] == 1
    assert agent.calls == []


async def test_overlapping_tick_is_skipped():
    agent = BlockingAgent()
    scheduler = FocusScheduler(agent, StaticUsers(["alice"]))

    first = asyncio.create_task(scheduler.tick(now=BASE))
    await settle()
    assert agent.calls == 1

    assert await scheduler.tick(now=BASE) is None
    assert scheduler.stats["ticks_skipped"] == 1
    assert agent.calls == 1

    agent.release.set()
    stats = await first
    assert stats.no_activity == 1

    # Guard is released once the first tick finishes
    assert await scheduler.tick(now=BASE) is not None


async def test_last_tick_recorded_only_for_successful_users():
    tick_state = LastTickStore()
    agent = RecordingAgent(failing={"bob"})
    scheduler = FocusScheduler(agent, StaticUsers(["alice", "bob"]), tick_state=tick_state)

    await scheduler.tick(now=BASE)

    assert await tick_state.snapshot() == {"alice": BASE}


async def test_last_tick_is_next_fallback_start():
    agent = RecordingAgent()
    scheduler = FocusScheduler(agent, StaticUsers(["alice"]))

    await scheduler.tick(now=BASE)
    await scheduler.tick(now=BASE + timedelta(seconds=5))

    assert agent.calls[0] == ("alice", None, BASE)
    assert agent.calls[1] == ("alice", BASE, BASE + timedelta(seconds=5))


async def test_one_user_failure_does_not_affect_another(db, classifier, settings):
    events = []
    register_focus_listener(events.append)

    await db.attention.record_text_attention(
        "alice", "https://a", "borrow checker", BASE - timedelta(minutes=1)
    )
    await db.attention.record_text_attention(
        "bob", "https://b", "pasta", BASE - timedelta(minutes=1)
    )

    agent = FocusSessionAgent(
        store=db.focus_sessions,
        aggregator=ActivityAggregator(FailingActivityFor(db.attention, "bob"), settings=settings),
        classifier=classifier,
        settings=settings,
    )
    tick_state = LastTickStore()
    scheduler = FocusScheduler(agent, db.attention, tick_state=tick_state)

    stats = await scheduler.tick(now=BASE)

    assert stats.users == 2
    assert stats.created == 1
    assert stats.failed == 1
    assert await db.focus_sessions.find_latest_session("alice") is not None
    assert await db.focus_sessions.find_latest_session("bob") is None
    assert [(e.change_type, e.user_id) for e in events] == [("created", "alice")]
    assert await tick_state.get("bob") is None


# ============ control surface ============


async def test_start_runs_immediate_tick_and_stop_cancels():
    agent = RecordingAgent()
    scheduler = FocusScheduler(agent, StaticUsers(["alice"]), interval_seconds=60)

    assert scheduler.get_config() == {"intervalMs": 60000, "isRunning": False}

    await scheduler.start()
    await settle()

    assert scheduler.is_running()
    assert scheduler.get_config()["isRunning"] is True
    assert scheduler.stats["ticks_run"] == 1
    assert len(agent.calls) == 1

    await scheduler.stop()

    assert not scheduler.is_running()
    assert scheduler.get_config()["isRunning"] is False


async def test_start_twice_keeps_single_loop():
    scheduler = FocusScheduler(RecordingAgent(), StaticUsers([]), interval_seconds=60)

    await scheduler.start()
    task = scheduler._loop_task
    await scheduler.start()

    assert scheduler._loop_task is task
    await scheduler.stop()


async def test_pause_skips_ticks_until_resumed():
    agent = RecordingAgent()
    scheduler = FocusScheduler(agent, StaticUsers(["alice"]), interval_seconds=0.01)

    await scheduler.start()
    scheduler.pause()
    await asyncio.sleep(0.05)
    calls_while_paused = len(agent.calls)
    await asyncio.sleep(0.05)

    assert len(agent.calls) == calls_while_paused

    scheduler.resume()
    await asyncio.sleep(0.05)
    assert len(agent.calls) > calls_while_paused

    await scheduler.stop()


async def test_overrunning_tick_skips_the_next_scheduled_tick():
    agent = BlockingAgent()
    scheduler = FocusScheduler(agent, StaticUsers(["alice"]), interval_seconds=0.01)

    await scheduler.start()
    await asyncio.sleep(0.05)

    # The first tick is still blocked, so every later start is skipped
    assert agent.calls == 1
    assert scheduler.stats["ticks_skipped"] >= 2
    assert scheduler.stats["ticks_run"] == 0

    agent.release.set()
    await asyncio.sleep(0.05)

    assert scheduler.stats["ticks_run"] >= 2
    assert agent.calls >= 2

    await scheduler.stop()


async def test_stop_cancels_blocked_tick():
    agent = BlockingAgent()
    scheduler = FocusScheduler(agent, StaticUsers(["alice"]), interval_seconds=60)

    await scheduler.start()
    await settle()
    assert agent.calls == 1

    await scheduler.stop()

    assert scheduler._tick_tasks == set()
    assert scheduler.stats["ticks_run"] == 0
    # Guard is released by the cancelled tick
    assert scheduler._ticking is False


def test_pause_is_noop_when_stopped():
    scheduler = FocusScheduler(RecordingAgent(), StaticUsers([]))

    scheduler.pause()

    assert scheduler.is_paused is False
