"""
Focus Service - read-side queries over focus sessions plus a manual end
Returns snapshots suitable for the real-time layer and operator tooling
"""

from datetime import datetime
from typing import List, Optional

from agents.focus_session_agent import close_open_segment
from core.db import get_db
from core.events import emit_focus_changed
from core.logger import get_logger
from core.models import FocusSession
from core.timeutils import utc_now
from models.responses import FocusSnapshot

logger = get_logger(__name__)


def to_snapshot(session: FocusSession, now: Optional[datetime] = None) -> FocusSnapshot:
    return FocusSnapshot.from_session(session, now)


async def get_active_focus(user_id: str, db=None) -> Optional[FocusSnapshot]:
    """
    Snapshot of the user's open session

    Returns:
        FocusSnapshot, or None if the user's latest session has ended or
        the user has no session yet
    """
    db = db or get_db()
    session = await db.focus_sessions.find_latest_session(user_id)
    if session is None or not session.is_active:
        return None
    return to_snapshot(session)


async def get_focus_history(
    user_id: str,
    limit: int = 10,
    offset: int = 0,
    include_active: bool = True,
    db=None,
) -> List[FocusSnapshot]:
    """
    Most recent sessions first

    Args:
        user_id: User to query
        limit: Page size
        offset: Sessions to skip
        include_active: False drops the open session from the page
    """
    if limit <= 0:
        return []

    db = db or get_db()
    sessions = await db.focus_sessions.get_history(user_id, limit=limit, offset=offset)
    if not include_active:
        sessions = [session for session in sessions if not session.is_active]
    logger.debug(f"Loaded {len(sessions)} focus sessions for user {user_id}")
    return [to_snapshot(session) for session in sessions]


async def end_user_focus(
    user_id: str, db=None, now: Optional[datetime] = None
) -> Optional[FocusSnapshot]:
    """
    Close the user's open session at `now` and emit an "ended" event

    Returns:
        Snapshot of the closed session, or None if nothing was open
    """
    db = db or get_db()
    now = now or utc_now()

    session = await db.focus_sessions.find_latest_session(user_id)
    if session is None or not session.is_active:
        logger.debug(f"No open focus session to end for user {user_id}")
        return None

    closed = await db.focus_sessions.update_session(
        session.id,
        time_spent=close_open_segment(session.time_spent, now),
        last_updated=now,
    )
    logger.info(f"Focus ended manually for user {user_id}: '{closed.item}' ({closed.id})")
    emit_focus_changed(user_id, "ended", closed)
    return to_snapshot(closed, now)
