"""
Attention Repository - Read and record user attention activity
Covers website visits plus text, image, video and audio attention records
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.logger import get_logger
from core.models import (
    AudioAttention,
    ImageAttention,
    TextAttention,
    VideoAttention,
    WebsiteVisit,
)
from core.sqls import queries
from core.timeutils import parse_iso, to_iso

from .base import BaseRepository

logger = get_logger(__name__)

# SQLite treats a negative LIMIT as "no limit"
NO_LIMIT = -1


class AttentionRepository(BaseRepository):
    """Repository for attention records, queried by user and inclusive time range"""

    def __init__(self, db_path: Path):
        super().__init__(db_path)

    # ==================== Window queries ====================

    async def get_website_visits(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[WebsiteVisit]:
        """Get website visits opened within [start, end]"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.SELECT_WEBSITE_VISITS_IN_WINDOW,
                    (user_id, to_iso(start), to_iso(end)),
                )
                rows = cursor.fetchall()

            return [
                WebsiteVisit(
                    id=row["id"],
                    user_id=row["user_id"],
                    url=row["url"],
                    title=row["title"],
                    summary=row["summary"],
                    active_time_ms=row["active_time_ms"] or 0,
                    opened_at=parse_iso(row["opened_at"]),
                )
                for row in rows
            ]

        except Exception as e:
            logger.error(f"Failed to get website visits for user {user_id}: {e}", exc_info=True)
            raise

    async def get_text_attention(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[TextAttention]:
        """Get text attention records within [start, end]"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.SELECT_TEXT_ATTENTION_IN_WINDOW,
                    (user_id, to_iso(start), to_iso(end)),
                )
                rows = cursor.fetchall()

            return [
                TextAttention(
                    id=row["id"],
                    user_id=row["user_id"],
                    url=row["url"],
                    text=row["text"],
                    timestamp=parse_iso(row["timestamp"]),
                )
                for row in rows
            ]

        except Exception as e:
            logger.error(f"Failed to get text attention for user {user_id}: {e}", exc_info=True)
            raise

    async def get_image_attention(
        self, user_id: str, start: datetime, end: datetime, limit: Optional[int] = None
    ) -> List[ImageAttention]:
        """Get the most recent image attention records within [start, end]"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.SELECT_IMAGE_ATTENTION_IN_WINDOW,
                    (user_id, to_iso(start), to_iso(end), NO_LIMIT if limit is None else limit),
                )
                rows = cursor.fetchall()

            return [
                ImageAttention(
                    id=row["id"],
                    user_id=row["user_id"],
                    url=row["url"],
                    title=row["title"],
                    caption=row["caption"],
                    timestamp=parse_iso(row["timestamp"]),
                )
                for row in rows
            ]

        except Exception as e:
            logger.error(f"Failed to get image attention for user {user_id}: {e}", exc_info=True)
            raise

    async def get_video_attention(
        self, user_id: str, start: datetime, end: datetime, limit: Optional[int] = None
    ) -> List[VideoAttention]:
        """Get the most recent video attention records within [start, end]"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.SELECT_VIDEO_ATTENTION_IN_WINDOW,
                    (user_id, to_iso(start), to_iso(end), NO_LIMIT if limit is None else limit),
                )
                rows = cursor.fetchall()

            return [
                VideoAttention(
                    id=row["id"],
                    user_id=row["user_id"],
                    video_id=row["video_id"],
                    title=row["title"],
                    channel_name=row["channel_name"],
                    caption=row["caption"],
                    timestamp=parse_iso(row["timestamp"]),
                )
                for row in rows
            ]

        except Exception as e:
            logger.error(f"Failed to get video attention for user {user_id}: {e}", exc_info=True)
            raise

    async def get_audio_attention(
        self, user_id: str, start: datetime, end: datetime, limit: Optional[int] = None
    ) -> List[AudioAttention]:
        """Get the most recent audio attention records within [start, end]"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.SELECT_AUDIO_ATTENTION_IN_WINDOW,
                    (user_id, to_iso(start), to_iso(end), NO_LIMIT if limit is None else limit),
                )
                rows = cursor.fetchall()

            return [
                AudioAttention(
                    id=row["id"],
                    user_id=row["user_id"],
                    url=row["url"],
                    title=row["title"],
                    summary=row["summary"],
                    timestamp=parse_iso(row["timestamp"]),
                )
                for row in rows
            ]

        except Exception as e:
            logger.error(f"Failed to get audio attention for user {user_id}: {e}", exc_info=True)
            raise

    async def get_active_user_ids(self, since: datetime) -> List[str]:
        """Get distinct users with any attention record at or after since"""
        since_iso = to_iso(since)
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.SELECT_ACTIVE_USER_IDS, (since_iso,) * 5)
                rows = cursor.fetchall()

            return sorted(row["user_id"] for row in rows)

        except Exception as e:
            logger.error(f"Failed to get active users since {since_iso}: {e}", exc_info=True)
            raise

    # ==================== Recording ====================

    async def record_website_visit(
        self,
        user_id: str,
        url: str,
        title: str,
        opened_at: datetime,
        summary: Optional[str] = None,
        active_time_ms: int = 0,
    ) -> int:
        """Record a website visit, returns its row ID"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                queries.INSERT_WEBSITE_VISIT,
                (user_id, url, title, summary, active_time_ms, to_iso(opened_at)),
            )
            conn.commit()
            return cursor.lastrowid

    async def record_text_attention(
        self, user_id: str, url: str, text: str, timestamp: datetime
    ) -> int:
        """Record a read text fragment, returns its row ID"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                queries.INSERT_TEXT_ATTENTION,
                (user_id, url, text, to_iso(timestamp)),
            )
            conn.commit()
            return cursor.lastrowid

    async def record_image_attention(
        self, user_id: str, url: str, title: str, caption: str, timestamp: datetime
    ) -> int:
        """Record a viewed image, returns its row ID"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                queries.INSERT_IMAGE_ATTENTION,
                (user_id, url, title, caption, to_iso(timestamp)),
            )
            conn.commit()
            return cursor.lastrowid

    async def record_video_attention(
        self,
        user_id: str,
        video_id: str,
        title: str,
        channel_name: str,
        timestamp: datetime,
        caption: Optional[str] = None,
    ) -> int:
        """Record a watched video, returns its row ID"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                queries.INSERT_VIDEO_ATTENTION,
                (user_id, video_id, title, channel_name, caption, to_iso(timestamp)),
            )
            conn.commit()
            return cursor.lastrowid

    async def record_audio_attention(
        self, user_id: str, url: str, title: str, summary: str, timestamp: datetime
    ) -> int:
        """Record listened audio, returns its row ID"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                queries.INSERT_AUDIO_ATTENTION,
                (user_id, url, title, summary, to_iso(timestamp)),
            )
            conn.commit()
            return cursor.lastrowid
