"""
Type protocols for the engine's collaborators

The session store, the activity source and the focus classifier are consumed
through these Protocols so the state machine and scheduler never depend on a
concrete database or language-model provider.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from core.models import (
    ActivityWindowBundle,
    AudioAttention,
    FocusSession,
    ImageAttention,
    TextAttention,
    TimeSegment,
    VideoAttention,
    WebsiteVisit,
)

# ==================== Persistence Protocols ====================


class FocusSessionStoreProtocol(Protocol):
    """Durable storage for focus sessions"""

    async def find_latest_session(self, user_id: str) -> Optional[FocusSession]:
        """Most recently updated session for the user, open or closed"""
        ...

    async def create_session(self, session: FocusSession) -> FocusSession:
        """Insert a new session"""
        ...

    async def update_session(
        self,
        session_id: str,
        *,
        item: Optional[str] = None,
        keywords: Optional[List[str]] = None,
        time_spent: Optional[List[TimeSegment]] = None,
        last_updated: Optional[datetime] = None,
    ) -> FocusSession:
        """Atomically update the given fields and return the stored session"""
        ...


class ActivitySourceProtocol(Protocol):
    """Read-only attention queries by user and inclusive time range"""

    async def get_website_visits(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[WebsiteVisit]:
        ...

    async def get_text_attention(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[TextAttention]:
        ...

    async def get_image_attention(
        self, user_id: str, start: datetime, end: datetime, limit: Optional[int] = None
    ) -> List[ImageAttention]:
        ...

    async def get_video_attention(
        self, user_id: str, start: datetime, end: datetime, limit: Optional[int] = None
    ) -> List[VideoAttention]:
        ...

    async def get_audio_attention(
        self, user_id: str, start: datetime, end: datetime, limit: Optional[int] = None
    ) -> List[AudioAttention]:
        ...

    async def get_active_user_ids(self, since: datetime) -> List[str]:
        """Distinct users with any attention record at or after since"""
        ...


# ==================== Classifier Protocol ====================


class FocusClassifierProtocol(Protocol):
    """
    Language-model backed focus questions

    Implementations must never raise: provider failures become
    drift=False, topic=None and summary=first keyword.
    """

    @property
    def model_name(self) -> str:
        ...

    async def detect_drift(
        self,
        previous_item: str,
        previous_keywords: List[str],
        bundle: ActivityWindowBundle,
    ) -> bool:
        ...

    async def detect_topic(self, bundle: ActivityWindowBundle) -> Optional[str]:
        ...

    async def summarize(self, keywords: List[str]) -> str:
        ...
