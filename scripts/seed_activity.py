#!/usr/bin/env python3
"""
Seed demo attention records for local runs

Writes a short reading session about one topic for the given user, spread
over the last few minutes, so the scheduler has something to evaluate.

Usage:
    python scripts/seed_activity.py [user_id] [topic]
"""

import asyncio
import sys
from datetime import timedelta
from pathlib import Path

# Add backend to path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from config.loader import get_config
from core.db import get_db
from core.logger import get_logger, setup_logging_from_config
from core.timeutils import utc_now

logger = get_logger(__name__)

DEFAULT_USER = "demo-user"
DEFAULT_TOPIC = "Rust"


async def seed(user_id: str, topic: str):
    db = get_db()
    now = utc_now()
    slug = topic.lower().replace(" ", "-")
    url = f"https://example.com/articles/{slug}"

    await db.attention.record_website_visit(
        user_id=user_id,
        url=url,
        title=f"Getting started with {topic}",
        opened_at=now - timedelta(minutes=4),
        summary=f"An introduction to {topic} and its core ideas",
        active_time_ms=180_000,
    )

    paragraphs = [
        f"{topic} makes a few core ideas explicit from the first chapter.",
        f"Most {topic} examples build on those ideas step by step.",
        f"Experienced {topic} users rely on the same patterns daily.",
    ]
    for minutes_ago, text in zip((3, 2, 1), paragraphs):
        await db.attention.record_text_attention(
            user_id=user_id,
            url=url,
            text=text,
            timestamp=now - timedelta(minutes=minutes_ago),
        )

    await db.attention.record_video_attention(
        user_id=user_id,
        video_id=f"demo-{slug}",
        title=f"{topic} in 10 minutes",
        channel_name="Demo Channel",
        timestamp=now - timedelta(minutes=1),
        caption=f"A quick tour of {topic}",
    )

    counts = db.get_table_counts()
    logger.info("=" * 60)
    logger.info(f"Seeded activity for {user_id} about '{topic}'")
    for table, count in counts.items():
        logger.info(f"  {table}: {count}")
    logger.info("=" * 60)


def main():
    """Entry point"""
    setup_logging_from_config(get_config())
    user_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_USER
    topic = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_TOPIC
    asyncio.run(seed(user_id, topic))


if __name__ == "__main__":
    main()
