"""
FocusSessionAgent - per-user focus session state machine

Turns one user's activity window into a focus decision:
- No activity (or no clear topic): nothing changes
- Open session, no drift: merge the new keyword and re-summarize the label
- Open session, drift: close the live segment; the new topic is opened on a later tick
- No open session: create a new session for the detected topic
"""

import uuid
from datetime import datetime
from typing import List, Optional

from core.events import emit_for_action
from core.logger import get_logger
from core.models import (
    ActivityWindowBundle,
    FocusAction,
    FocusDecision,
    FocusSession,
    TimeSegment,
)
from core.protocols import FocusClassifierProtocol, FocusSessionStoreProtocol
from core.settings import FocusSettings, get_focus_settings
from core.timeutils import utc_now
from processing.activity_aggregator import ActivityAggregator

logger = get_logger(__name__)


def merge_keywords(
    new_keyword: str, keywords: List[str], limit: Optional[int] = None
) -> List[str]:
    """
    Put the new keyword first and drop later duplicates, ignoring case

    merge_keywords("b", ["a", "B"]) -> ["b", "a"]

    Args:
        new_keyword: Latest topic, always kept
        keywords: Existing keywords, most recent first
        limit: Keep at most this many
    """
    merged: List[str] = []
    seen = set()
    for keyword in [new_keyword, *keywords]:
        key = keyword.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        merged.append(keyword.strip())
    if limit is not None:
        merged = merged[:limit]
    return merged


def close_open_segment(time_spent: List[TimeSegment], end: datetime) -> List[TimeSegment]:
    """Copy of time_spent with the trailing open segment ended at `end`"""
    closed = [segment.model_copy() for segment in time_spent]
    if closed and closed[-1].is_open:
        closed[-1] = TimeSegment(start=closed[-1].start, end=end)
    return closed


class FocusSessionAgent:
    """Evaluates activity windows against each user's latest focus session"""

    def __init__(
        self,
        store: FocusSessionStoreProtocol,
        aggregator: ActivityAggregator,
        classifier: FocusClassifierProtocol,
        settings: Optional[FocusSettings] = None,
    ):
        self.store = store
        self.aggregator = aggregator
        self.classifier = classifier
        self.settings = settings or get_focus_settings()

    async def evaluate(
        self,
        user_id: str,
        previous_session: Optional[FocusSession],
        bundle: ActivityWindowBundle,
        now: Optional[datetime] = None,
    ) -> FocusDecision:
        """
        Run one state machine step

        Args:
            user_id: User being evaluated
            previous_session: User's latest session, open or closed
            bundle: Activity in the evaluation window
            now: Evaluation time, defaults to the current UTC time

        Returns:
            FocusDecision describing what changed
        """
        now = now or utc_now()

        if bundle.is_empty:
            return FocusDecision.no_activity()

        # A session without a live segment has already ended
        if previous_session is not None and not previous_session.is_active:
            previous_session = None

        drifted = False
        if previous_session is not None:
            drifted = await self.classifier.detect_drift(
                previous_session.item, previous_session.keywords, bundle
            )

        topic = await self.classifier.detect_topic(bundle)
        if topic is None:
            logger.debug(f"No clear focus for user {user_id} in {bundle.total_count} records")
            return FocusDecision.no_activity("no_topic")

        if previous_session is not None and drifted:
            return await self._close(previous_session, topic, now)

        if previous_session is not None:
            return await self._merge(previous_session, topic, now)

        return await self._create(user_id, topic, bundle, now)

    async def _close(
        self, session: FocusSession, topic: str, now: datetime
    ) -> FocusDecision:
        closed = await self.store.update_session(
            session.id,
            time_spent=close_open_segment(session.time_spent, now),
            last_updated=now,
        )
        logger.info(
            f"Focus drift for user {session.user_id}: closed '{session.item}' "
            f"({session.id}), new topic '{topic}'"
        )
        return FocusDecision.closed(closed)

    async def _merge(
        self, session: FocusSession, topic: str, now: datetime
    ) -> FocusDecision:
        keywords = merge_keywords(topic, session.keywords, limit=self.settings.max_keywords)
        item = await self.classifier.summarize(keywords[: self.settings.summary_keywords])

        updated = await self.store.update_session(
            session.id,
            item=item,
            keywords=keywords,
            last_updated=now,
        )
        logger.debug(
            f"Focus continued for user {session.user_id}: '{item}' keywords={keywords}"
        )
        return FocusDecision.updated(updated)

    async def _create(
        self,
        user_id: str,
        topic: str,
        bundle: ActivityWindowBundle,
        now: datetime,
    ) -> FocusDecision:
        session = FocusSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            item=topic,
            keywords=[topic],
            time_spent=[TimeSegment(start=bundle.earliest_timestamp(now))],
            last_updated=now,
            model_used=self.classifier.model_name,
            trace_id=uuid.uuid4().hex,
        )
        created = await self.store.create_session(session)
        logger.info(f"New focus session for user {user_id}: '{topic}' ({created.id})")
        return FocusDecision.created(created)

    def resolve_window_start(
        self,
        latest: Optional[FocusSession],
        fallback_start: Optional[datetime],
        now: datetime,
    ) -> datetime:
        """Latest session's last_updated, else the last tick time, else the default lookback"""
        if latest is not None:
            return latest.last_updated
        if fallback_start is not None:
            return fallback_start
        return now - self.settings.default_window

    async def process_user(
        self,
        user_id: str,
        fallback_start: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> FocusDecision:
        """
        Fetch the user's window, evaluate it and notify listeners

        Store and activity errors propagate to the caller.

        Args:
            user_id: User to process
            fallback_start: Window start used when the user has no session yet
            now: Window end and evaluation time
        """
        now = now or utc_now()

        latest = await self.store.find_latest_session(user_id)
        window_start = self.resolve_window_start(latest, fallback_start, now)

        bundle = await self.aggregator.fetch_window(user_id, window_start, now)
        decision = await self.evaluate(user_id, latest, bundle, now=now)

        if decision.action != FocusAction.NO_ACTIVITY:
            emit_for_action(user_id, decision.action, decision.session)

        return decision
