#!/usr/bin/env python3
"""
Run the focus scheduler until interrupted

Focus changes are logged as they are emitted. Stop with Ctrl-C.

Usage:
    python scripts/run_focus_scheduler.py [db_path]
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from config.loader import get_config
from core.db import switch_database
from core.events import register_focus_listener
from core.focus_scheduler import create_focus_scheduler
from core.logger import get_logger, setup_logging_from_config
from llm.manager import get_llm_manager

logger = get_logger(__name__)


def log_focus_change(event):
    focus = event.focus
    logger.info(
        f"[{event.change_type}] user={event.user_id} "
        f"item={focus.item if focus else None} "
        f"keywords={focus.keywords if focus else []}"
    )


async def run():
    scheduler = create_focus_scheduler()
    register_focus_listener(log_focus_change)

    await scheduler.start()
    logger.info(f"Scheduler config: {scheduler.get_config()}")
    logger.info(f"LLM: {get_llm_manager().get_active_model_info()}")

    try:
        while scheduler.is_running():
            await asyncio.sleep(1)
    finally:
        await scheduler.stop()
        logger.info("=" * 60)
        logger.info(f"Scheduler stats: {scheduler.get_stats()}")
        logger.info("=" * 60)


def main():
    """Entry point"""
    setup_logging_from_config(get_config())
    if len(sys.argv) > 1 and not switch_database(sys.argv[1]):
        sys.exit(1)

    logger.info("Starting focus scheduler...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
    logger.info("Done!")


if __name__ == "__main__":
    main()
