"""
Engine exception types
"""


class FocusEngineError(Exception):
    """Base class for focus engine errors"""


class ActivityFetchError(FocusEngineError):
    """Activity source could not be read; the user's window is retried next tick"""

    def __init__(self, user_id: str, message: str):
        super().__init__(f"Activity fetch failed for user {user_id}: {message}")
        self.user_id = user_id


class FocusSessionNotFoundError(FocusEngineError):
    """Update targeted a focus session that does not exist"""

    def __init__(self, session_id: str):
        super().__init__(f"Focus session not found: {session_id}")
        self.session_id = session_id
