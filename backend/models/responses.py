"""
Outward-facing models
Snapshots and events consumed by the real-time layer and operator tooling
"""

from datetime import datetime
from typing import List, Literal, Optional

from core.models import FocusSession
from core.timeutils import to_epoch_ms, utc_now
from models.base import BaseModel


class TimeSegmentData(BaseModel):
    """Segment with epoch-millisecond bounds"""

    start: int
    end: Optional[int] = None


class FocusSnapshot(BaseModel):
    """Read-only view of a focus session"""

    id: str
    user_id: str
    item: str
    keywords: List[str]
    time_spent: List[TimeSegmentData]
    is_active: bool
    window_start: datetime
    window_end: datetime
    last_updated: datetime
    model_used: str
    trace_id: Optional[str] = None

    @classmethod
    def from_session(
        cls, session: FocusSession, now: Optional[datetime] = None
    ) -> "FocusSnapshot":
        """
        Build a snapshot; the window spans the first segment start to the last
        segment end (or now while the session is open)
        """
        now = now or utc_now()
        segments = session.time_spent
        last = segments[-1] if segments else None

        return cls(
            id=session.id,
            user_id=session.user_id,
            item=session.item,
            keywords=list(session.keywords),
            time_spent=[
                TimeSegmentData(
                    start=to_epoch_ms(segment.start),
                    end=to_epoch_ms(segment.end) if segment.end is not None else None,
                )
                for segment in segments
            ],
            is_active=session.is_active,
            window_start=segments[0].start if segments else session.last_updated,
            window_end=last.end if last is not None and last.end is not None else now,
            last_updated=session.last_updated,
            model_used=session.model_used,
            trace_id=session.trace_id,
        )


FocusChangeType = Literal["created", "updated", "ended"]


class FocusChangeEvent(BaseModel):
    """Domain event emitted after every created/updated/closed decision"""

    user_id: str
    change_type: FocusChangeType
    focus: Optional[FocusSnapshot] = None
    timestamp: datetime


class SchedulerConfigData(BaseModel):
    """Scheduler control surface view"""

    interval_ms: int
    is_running: bool
