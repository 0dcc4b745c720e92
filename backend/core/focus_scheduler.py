"""
FocusScheduler - recurring focus evaluation across all active users

Each tick discovers users with recent activity, evaluates every user
concurrently and records per-tick outcome counts. A user's failure never
affects the other users in the same tick.
"""

import asyncio
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Set

from core.logger import get_logger
from core.models import FocusDecision, TickStats
from core.protocols import ActivitySourceProtocol
from core.timeutils import utc_now
from models.responses import SchedulerConfigData

logger = get_logger(__name__)


class LastTickStore:
    """
    Per-user time of the last successful evaluation

    Only used as a fallback window start for users without a session; the
    persisted session's last_updated always takes precedence.
    """

    def __init__(self):
        self._times: Dict[str, datetime] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: str) -> Optional[datetime]:
        async with self._lock:
            return self._times.get(user_id)

    async def set(self, user_id: str, timestamp: datetime) -> None:
        async with self._lock:
            self._times[user_id] = timestamp

    async def snapshot(self) -> Dict[str, datetime]:
        async with self._lock:
            return dict(self._times)

    async def clear(self) -> None:
        async with self._lock:
            self._times.clear()


class FocusScheduler:
    """Drives FocusSessionAgent on a fixed interval"""

    def __init__(
        self,
        agent,
        activity_source: ActivitySourceProtocol,
        tick_state: Optional[LastTickStore] = None,
        interval_seconds: float = 5,
        discovery_lookback: timedelta = timedelta(hours=1),
    ):
        """
        Args:
            agent: FocusSessionAgent (anything with process_user)
            activity_source: Used for candidate user discovery
            tick_state: Per-user last tick times, a fresh store by default
            interval_seconds: Seconds between ticks
            discovery_lookback: How far back a user's activity makes them a candidate
        """
        self.agent = agent
        self.activity_source = activity_source
        self.tick_state = tick_state if tick_state is not None else LastTickStore()
        self.interval_seconds = interval_seconds
        self.discovery_lookback = discovery_lookback

        # Running state
        self._running = False
        self.is_paused = False
        self._ticking = False
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()

        # Statistics
        self.stats: Dict[str, Any] = {
            "ticks_run": 0,
            "ticks_skipped": 0,
            "ticks_failed": 0,
            "last_tick_time": None,
            "last_tick": None,
        }

        logger.debug(
            f"FocusScheduler initialized (interval: {interval_seconds}s, "
            f"discovery lookback: {discovery_lookback})"
        )

    def is_running(self) -> bool:
        return self._running

    def get_config(self) -> Dict[str, Any]:
        """Scheduler settings as {intervalMs, isRunning}"""
        return SchedulerConfigData(
            interval_ms=int(self.interval_seconds * 1000),
            is_running=self._running,
        ).to_payload()

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self.stats)
        last_tick = stats.get("last_tick")
        if isinstance(last_tick, TickStats):
            stats["last_tick"] = last_tick.model_dump()
        return stats

    async def start(self):
        """Run one tick immediately, then one every interval"""
        if self._running:
            logger.warning("FocusScheduler is already running")
            return

        self._running = True
        self._loop_task = asyncio.create_task(self._periodic_tick())

        logger.info(f"FocusScheduler started (interval: {self.interval_seconds}s)")

    async def stop(self):
        """Stop the loop; in-flight ticks are cancelled"""
        if not self._running:
            return

        self._running = False
        self.is_paused = False

        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        for task in list(self._tick_tasks):
            task.cancel()
        if self._tick_tasks:
            await asyncio.gather(*self._tick_tasks, return_exceptions=True)
        self._tick_tasks.clear()

        logger.info("FocusScheduler stopped")

    def pause(self):
        """Pause ticking (system sleep)"""
        if not self._running:
            return

        self.is_paused = True
        logger.debug("FocusScheduler paused")

    def resume(self):
        """Resume ticking (system wake)"""
        if not self._running:
            return

        self.is_paused = False
        logger.debug("FocusScheduler resumed")

    async def _periodic_tick(self):
        # Ticks start on a fixed-rate schedule; one that overruns makes the
        # next start hit the re-entrancy guard and count as skipped
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while self._running:
            try:
                if self.is_paused:
                    logger.debug("FocusScheduler paused, skipping tick")
                else:
                    self._launch_tick()

                next_run += self.interval_seconds
                # Missed deadlines are dropped, not replayed
                next_run = max(next_run, loop.time())
                await asyncio.sleep(next_run - loop.time())
            except asyncio.CancelledError:
                logger.debug("Focus tick task cancelled")
                break
            except Exception as e:
                logger.error(f"Focus tick task exception: {e}", exc_info=True)
                await asyncio.sleep(self.interval_seconds)

    def _launch_tick(self):
        task = asyncio.create_task(self.tick())
        self._tick_tasks.add(task)
        task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task):
        self._tick_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Focus tick failed: {exc}", exc_info=exc)

    async def tick(self, now: Optional[datetime] = None) -> Optional[TickStats]:
        """
        Evaluate every candidate user once

        Returns:
            TickStats for the tick, or None when skipped because another tick
            is still running or when user discovery failed
        """
        if self._ticking:
            self.stats["ticks_skipped"] += 1
            logger.debug("Previous focus tick still running, skipping")
            return None

        self._ticking = True
        try:
            return await self._run_tick(now or utc_now())
        finally:
            self._ticking = False

    async def _run_tick(self, now: datetime) -> Optional[TickStats]:
        started = time.monotonic()

        try:
            user_ids = await self.activity_source.get_active_user_ids(
                now - self.discovery_lookback
            )
        except Exception as e:
            self.stats["ticks_failed"] += 1
            logger.error(f"❌ Focus tick aborted, user discovery failed: {e}", exc_info=True)
            return None

        stats = TickStats(started_at=now, users=len(user_ids))

        if user_ids:
            results = await asyncio.gather(
                *(self._process_user(user_id, now) for user_id in user_ids),
                return_exceptions=True,
            )
            await self._record_results(stats, user_ids, results, now)

        stats.duration_ms = int((time.monotonic() - started) * 1000)

        self.stats["ticks_run"] += 1
        self.stats["last_tick_time"] = now
        self.stats["last_tick"] = stats

        if user_ids:
            logger.info(
                f"Focus tick: {stats.users} users, {stats.created} created, "
                f"{stats.updated} updated, {stats.closed} closed, "
                f"{stats.no_activity} no activity, {stats.failed} failed "
                f"({stats.duration_ms}ms)"
            )
        else:
            logger.debug("Focus tick: no active users")

        return stats

    async def _process_user(self, user_id: str, now: datetime) -> FocusDecision:
        fallback_start = await self.tick_state.get(user_id)
        return await self.agent.process_user(user_id, fallback_start=fallback_start, now=now)

    async def _record_results(
        self,
        stats: TickStats,
        user_ids: List[str],
        results: List[Any],
        now: datetime,
    ) -> None:
        for user_id, result in zip(user_ids, results):
            if isinstance(result, BaseException):
                stats.failed += 1
                logger.error(
                    f"❌ Focus evaluation failed for user {user_id}: {result}",
                    exc_info=result,
                )
                continue

            stats.record(result.action)
            await self.tick_state.set(user_id, now)


def create_focus_scheduler(db=None, settings=None, classifier=None) -> FocusScheduler:
    """
    Wire a scheduler from the configured database, settings and classifier

    Args:
        db: DatabaseManager, defaults to get_db()
        settings: FocusSettings, defaults to get_focus_settings()
        classifier: Focus classifier, defaults to the LLM-backed one
    """
    from agents.focus_session_agent import FocusSessionAgent
    from core.db import get_db
    from core.settings import get_focus_settings
    from llm.focus_classifier import FocusClassifier
    from processing.activity_aggregator import ActivityAggregator

    db = db or get_db()
    settings = settings or get_focus_settings()
    classifier = classifier or FocusClassifier(settings=settings)

    agent = FocusSessionAgent(
        store=db.focus_sessions,
        aggregator=ActivityAggregator(db.attention, settings=settings),
        classifier=classifier,
        settings=settings,
    )
    return FocusScheduler(
        agent,
        db.attention,
        tick_state=LastTickStore(),
        interval_seconds=settings.interval_seconds,
        discovery_lookback=settings.discovery_lookback,
    )
