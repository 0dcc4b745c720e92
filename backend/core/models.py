"""
Core data models
Focus sessions, attention records, window bundles and engine decisions
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# ============ Focus Sessions ============


class TimeSegment(BaseModel):
    """One interval of a focus session; end=None marks the live interval"""

    start: datetime
    end: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end is None


class FocusSession(BaseModel):
    """A period during which a user's detected topic stays the same"""

    id: str
    user_id: str
    item: str
    keywords: List[str] = Field(default_factory=list)  # Most recent first, unique
    time_spent: List[TimeSegment] = Field(default_factory=list)
    last_updated: datetime  # Also the next window start for this user
    model_used: str = ""
    trace_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return bool(self.time_spent) and self.time_spent[-1].is_open

    def open_segment(self) -> Optional[TimeSegment]:
        if self.is_active:
            return self.time_spent[-1]
        return None


# ============ Attention Records ============


class WebsiteVisit(BaseModel):
    id: int
    user_id: str
    url: str
    title: str
    summary: Optional[str] = None
    active_time_ms: int = 0
    opened_at: datetime


class TextAttention(BaseModel):
    id: int
    user_id: str
    url: str
    text: str
    timestamp: datetime


class ImageAttention(BaseModel):
    id: int
    user_id: str
    url: str
    title: str
    caption: str
    timestamp: datetime


class VideoAttention(BaseModel):
    id: int
    user_id: str
    video_id: str
    title: str
    channel_name: str
    caption: Optional[str] = None
    timestamp: datetime


class AudioAttention(BaseModel):
    id: int
    user_id: str
    url: str
    title: str
    summary: str
    timestamp: datetime


class TextGroup(BaseModel):
    """Text attention records from one URL joined into a single block"""

    url: str
    texts: List[str]
    concatenated_text: str
    timestamps: List[datetime]


class ActivityWindowBundle(BaseModel):
    """Normalized view of one user's activity in [window_start, window_end]"""

    user_id: str
    window_start: datetime
    window_end: datetime
    website_visits: List[WebsiteVisit] = Field(default_factory=list)
    text_groups: List[TextGroup] = Field(default_factory=list)
    images: List[ImageAttention] = Field(default_factory=list)
    videos: List[VideoAttention] = Field(default_factory=list)
    audio: List[AudioAttention] = Field(default_factory=list)

    @property
    def total_count(self) -> int:
        return (
            len(self.website_visits)
            + len(self.text_groups)
            + len(self.images)
            + len(self.videos)
            + len(self.audio)
        )

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0

    def earliest_timestamp(self, default: datetime) -> datetime:
        """Earliest activity time across every kind, or default when none is earlier"""
        candidates = [visit.opened_at for visit in self.website_visits]
        for group in self.text_groups:
            candidates.extend(group.timestamps)
        candidates.extend(image.timestamp for image in self.images)
        candidates.extend(video.timestamp for video in self.videos)
        candidates.extend(clip.timestamp for clip in self.audio)
        return min([default, *candidates])


# ============ Engine Decisions ============


class FocusAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    CLOSED = "closed"
    NO_ACTIVITY = "no_activity"


class FocusDecision(BaseModel):
    """Outcome of one state machine evaluation for one user"""

    action: FocusAction
    session: Optional[FocusSession] = None
    reason: Optional[str] = None

    @classmethod
    def no_activity(cls, reason: str = "no_activity") -> "FocusDecision":
        return cls(action=FocusAction.NO_ACTIVITY, reason=reason)

    @classmethod
    def created(cls, session: FocusSession) -> "FocusDecision":
        return cls(action=FocusAction.CREATED, session=session)

    @classmethod
    def updated(cls, session: FocusSession) -> "FocusDecision":
        return cls(action=FocusAction.UPDATED, session=session)

    @classmethod
    def closed(cls, session: FocusSession) -> "FocusDecision":
        return cls(action=FocusAction.CLOSED, session=session)


class TickStats(BaseModel):
    """Per-tick outcome counts"""

    started_at: datetime
    users: int = 0
    created: int = 0
    updated: int = 0
    closed: int = 0
    no_activity: int = 0
    failed: int = 0
    duration_ms: int = 0

    def record(self, action: FocusAction) -> None:
        if action == FocusAction.CREATED:
            self.created += 1
        elif action == FocusAction.UPDATED:
            self.updated += 1
        elif action == FocusAction.CLOSED:
            self.closed += 1
        else:
            self.no_activity += 1
