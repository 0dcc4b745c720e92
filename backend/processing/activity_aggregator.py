"""
Activity Aggregator
Builds one user's ActivityWindowBundle from every attention kind
"""

import asyncio
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from core.exceptions import ActivityFetchError
from core.logger import get_logger
from core.models import ActivityWindowBundle, TextAttention, TextGroup
from core.protocols import ActivitySourceProtocol
from core.settings import FocusSettings, get_focus_settings

logger = get_logger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"

# Reads further apart than this on one URL are still joined; the gap is only logged
TEXT_CONCAT_THRESHOLD = timedelta(minutes=5)


def concatenate_text_attention(records: List[TextAttention]) -> List[TextGroup]:
    """
    Join text attention records per URL

    Records are grouped by URL (first-seen order), sorted by timestamp inside
    each group and joined with a paragraph separator. Groups are never split on
    time gaps.
    """
    grouped: Dict[str, List[TextAttention]] = OrderedDict()
    for record in records:
        grouped.setdefault(record.url, []).append(record)

    groups: List[TextGroup] = []
    for url, url_records in grouped.items():
        url_records.sort(key=lambda r: r.timestamp)

        for previous, current in zip(url_records, url_records[1:]):
            gap = current.timestamp - previous.timestamp
            if gap > TEXT_CONCAT_THRESHOLD:
                logger.debug(f"Joining text on {url} across a {gap} gap")

        texts = [r.text for r in url_records]
        groups.append(
            TextGroup(
                url=url,
                texts=texts,
                concatenated_text=PARAGRAPH_SEPARATOR.join(texts),
                timestamps=[r.timestamp for r in url_records],
            )
        )

    return groups


def _most_recent(records: list, cap: int) -> list:
    return sorted(records, key=lambda r: r.timestamp, reverse=True)[:cap]


class ActivityAggregator:
    """Fetches and normalizes a user's activity window"""

    KINDS = ("website_visits", "text", "images", "videos", "audio")

    def __init__(
        self,
        source: ActivitySourceProtocol,
        settings: Optional[FocusSettings] = None,
    ):
        self.source = source
        self.settings = settings or get_focus_settings()

    async def fetch_window(
        self, user_id: str, window_start: datetime, window_end: datetime
    ) -> ActivityWindowBundle:
        """
        Fetch all activity in [window_start, window_end]

        A kind that fails to load is logged and left empty; if every kind
        fails, ActivityFetchError is raised so the caller can retry next tick.

        Args:
            user_id: User to fetch for
            window_start: Inclusive lower bound
            window_end: Inclusive upper bound

        Returns:
            Normalized bundle
        """
        results = await asyncio.gather(
            self.source.get_website_visits(user_id, window_start, window_end),
            self.source.get_text_attention(user_id, window_start, window_end),
            self.source.get_image_attention(
                user_id, window_start, window_end, limit=self.settings.max_images
            ),
            self.source.get_video_attention(
                user_id, window_start, window_end, limit=self.settings.max_videos
            ),
            self.source.get_audio_attention(
                user_id, window_start, window_end, limit=self.settings.max_audio
            ),
            return_exceptions=True,
        )

        failures = {
            kind: result
            for kind, result in zip(self.KINDS, results)
            if isinstance(result, BaseException)
        }
        if len(failures) == len(self.KINDS):
            first = next(iter(failures.values()))
            raise ActivityFetchError(user_id, str(first)) from first

        for kind, error in failures.items():
            logger.warning(f"Failed to fetch {kind} for user {user_id}, continuing without it: {error}")

        visits, texts, images, videos, audio = (
            [] if isinstance(result, BaseException) else list(result) for result in results
        )

        bundle = ActivityWindowBundle(
            user_id=user_id,
            window_start=window_start,
            window_end=window_end,
            website_visits=visits,
            text_groups=concatenate_text_attention(texts),
            images=_most_recent(images, self.settings.max_images),
            videos=_most_recent(videos, self.settings.max_videos),
            audio=_most_recent(audio, self.settings.max_audio),
        )

        logger.debug(
            f"Activity window for user {user_id}: {len(visits)} visits, "
            f"{len(bundle.text_groups)} text groups, {len(bundle.images)} images, "
            f"{len(bundle.videos)} videos, {len(bundle.audio)} audio"
        )
        return bundle
