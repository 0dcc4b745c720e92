"""
FocusSessions Repository - Handles focus session persistence
Sessions are queried most-recent-first per user and written one decision at a time
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.exceptions import FocusSessionNotFoundError
from core.logger import get_logger
from core.models import FocusSession, TimeSegment
from core.sqls import queries
from core.timeutils import from_epoch_ms, parse_iso, to_epoch_ms, to_iso

from .base import BaseRepository

logger = get_logger(__name__)


def _dump_time_spent(segments: List[TimeSegment]) -> str:
    return json.dumps(
        [
            {
                "start": to_epoch_ms(segment.start),
                "end": to_epoch_ms(segment.end) if segment.end is not None else None,
            }
            for segment in segments
        ]
    )


def _load_time_spent(raw: Optional[str]) -> List[TimeSegment]:
    if not raw:
        return []
    return [
        TimeSegment(
            start=from_epoch_ms(segment["start"]),
            end=from_epoch_ms(segment["end"]) if segment.get("end") is not None else None,
        )
        for segment in json.loads(raw)
    ]


class FocusSessionsRepository(BaseRepository):
    """Repository for managing focus sessions in the database"""

    def __init__(self, db_path: Path):
        super().__init__(db_path)

    def _row_to_session(self, row: sqlite3.Row) -> FocusSession:
        return FocusSession(
            id=row["id"],
            user_id=row["user_id"],
            item=row["item"],
            keywords=json.loads(row["keywords"]) if row["keywords"] else [],
            time_spent=_load_time_spent(row["time_spent"]),
            last_updated=parse_iso(row["last_updated"]),
            model_used=row["model_used"] or "",
            trace_id=row["trace_id"],
        )

    async def find_latest_session(self, user_id: str) -> Optional[FocusSession]:
        """Get the most recently updated session for a user, open or closed"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.SELECT_LATEST_FOCUS_SESSION, (user_id,))
                row = cursor.fetchone()

            return self._row_to_session(row) if row else None

        except Exception as e:
            logger.error(f"Failed to get latest focus session for user {user_id}: {e}", exc_info=True)
            raise

    async def get_by_id(self, session_id: str) -> Optional[FocusSession]:
        """Get focus session by ID"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.SELECT_FOCUS_SESSION_BY_ID, (session_id,))
                row = cursor.fetchone()

            return self._row_to_session(row) if row else None

        except Exception as e:
            logger.error(f"Failed to get focus session {session_id}: {e}", exc_info=True)
            raise

    async def get_history(
        self, user_id: str, limit: int = 10, offset: int = 0
    ) -> List[FocusSession]:
        """Get a user's sessions, most recently updated first"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.SELECT_FOCUS_SESSION_HISTORY, (user_id, limit, offset)
                )
                rows = cursor.fetchall()

            return [self._row_to_session(row) for row in rows]

        except Exception as e:
            logger.error(f"Failed to get focus history for user {user_id}: {e}", exc_info=True)
            raise

    async def create_session(self, session: FocusSession) -> FocusSession:
        """Insert a new focus session"""
        try:
            with self._get_conn() as conn:
                conn.execute(
                    queries.INSERT_FOCUS_SESSION,
                    (
                        session.id,
                        session.user_id,
                        session.item,
                        json.dumps(session.keywords),
                        _dump_time_spent(session.time_spent),
                        to_iso(session.last_updated),
                        session.model_used,
                        session.trace_id,
                    ),
                )
                conn.commit()

                cursor = conn.execute(queries.SELECT_FOCUS_SESSION_BY_ID, (session.id,))
                row = cursor.fetchone()

            logger.debug(f"Created focus session {session.id} for user {session.user_id}: {session.item}")
            return self._row_to_session(row)

        except Exception as e:
            logger.error(f"Failed to create focus session {session.id}: {e}", exc_info=True)
            raise

    async def update_session(
        self,
        session_id: str,
        *,
        item: Optional[str] = None,
        keywords: Optional[List[str]] = None,
        time_spent: Optional[List[TimeSegment]] = None,
        last_updated: Optional[datetime] = None,
    ) -> FocusSession:
        """
        Update the given fields of a focus session in a single statement

        Args:
            session_id: Session to update
            item: New label
            keywords: Full replacement keyword list
            time_spent: Full replacement segment list
            last_updated: New last-updated timestamp

        Returns:
            The stored session after the update

        Raises:
            FocusSessionNotFoundError: No session has this ID
        """
        fields: Dict[str, Any] = {}
        if item is not None:
            fields["item"] = item
        if keywords is not None:
            fields["keywords"] = json.dumps(keywords)
        if time_spent is not None:
            fields["time_spent"] = _dump_time_spent(time_spent)
        if last_updated is not None:
            fields["last_updated"] = to_iso(last_updated)

        try:
            with self._get_conn() as conn:
                if fields:
                    set_clause = ", ".join(f"{key} = ?" for key in fields)
                    cursor = conn.execute(
                        f"UPDATE focus_sessions SET {set_clause} WHERE id = ?",
                        [*fields.values(), session_id],
                    )
                    if cursor.rowcount == 0:
                        conn.rollback()
                        raise FocusSessionNotFoundError(session_id)
                    conn.commit()

                cursor = conn.execute(queries.SELECT_FOCUS_SESSION_BY_ID, (session_id,))
                row = cursor.fetchone()

            if row is None:
                raise FocusSessionNotFoundError(session_id)

            logger.debug(f"Updated focus session {session_id}: {list(fields.keys())}")
            return self._row_to_session(row)

        except FocusSessionNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Failed to update focus session {session_id}: {e}", exc_info=True)
            raise
