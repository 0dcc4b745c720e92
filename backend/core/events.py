"""
Focus change event sending
Used to notify the real-time layer of focus session changes
"""

import asyncio
import inspect
from typing import Any, Callable, List, Optional, Set

from core.logger import get_logger
from core.models import FocusAction, FocusSession
from core.timeutils import utc_now
from models.responses import FocusChangeEvent, FocusChangeType, FocusSnapshot

logger = get_logger(__name__)

FocusListener = Callable[[FocusChangeEvent], Any]

_listeners: List[FocusListener] = []
# Strong references so fire-and-forget listener tasks are not garbage collected
_pending_tasks: Set["asyncio.Task[Any]"] = set()

CHANGE_TYPES = {
    FocusAction.CREATED: "created",
    FocusAction.UPDATED: "updated",
    FocusAction.CLOSED: "ended",
}


def register_focus_listener(listener: FocusListener) -> Callable[[], None]:
    """
    Register a listener for focus change events

    Listeners may be plain callables or coroutine functions. Returns a
    function that unregisters the listener.
    """
    _listeners.append(listener)
    logger.debug(f"Registered focus listener: {getattr(listener, '__name__', listener)}")
    return lambda: unregister_focus_listener(listener)


def unregister_focus_listener(listener: FocusListener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def clear_focus_listeners() -> None:
    _listeners.clear()


def _on_task_done(task: "asyncio.Task[Any]") -> None:
    _pending_tasks.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"❌ [events] Async focus listener failed: {task.exception()}")


def _emit(event: FocusChangeEvent) -> bool:
    """Deliver an event to every listener; one failing listener does not stop the rest"""
    if not _listeners:
        logger.debug(f"[events] No focus listeners registered, dropping {event.change_type} event")
        return False

    delivered = True
    for listener in list(_listeners):
        try:
            result = listener(event)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                _pending_tasks.add(task)
                task.add_done_callback(_on_task_done)
        except Exception as exc:
            delivered = False
            logger.error(f"❌ [events] Focus listener failed: {exc}", exc_info=True)

    return delivered


def emit_focus_changed(
    user_id: str,
    change_type: FocusChangeType,
    session: Optional[FocusSession],
) -> bool:
    """
    Send a focus change event

    Args:
        user_id: Owner of the session
        change_type: "created", "updated" or "ended"
        session: Session after the change

    Returns:
        True if every listener accepted the event, False otherwise
    """
    now = utc_now()
    event = FocusChangeEvent(
        user_id=user_id,
        change_type=change_type,
        focus=FocusSnapshot.from_session(session, now) if session is not None else None,
        timestamp=now,
    )

    success = _emit(event)
    if success:
        logger.debug(
            f"✅ Focus {change_type} event sent for user {user_id}: "
            f"{session.id if session else None}"
        )
    return success


def emit_for_action(
    user_id: str, action: FocusAction, session: Optional[FocusSession]
) -> bool:
    """Emit the change event matching a state machine action; no_activity emits nothing"""
    change_type = CHANGE_TYPES.get(action)
    if change_type is None:
        return False
    return emit_focus_changed(user_id, change_type, session)
