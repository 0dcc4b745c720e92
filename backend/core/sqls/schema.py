"""
Database schema definitions
Contains all CREATE TABLE and CREATE INDEX statements
"""

# Table creation statements
CREATE_FOCUS_SESSIONS_TABLE = """
    CREATE TABLE IF NOT EXISTS focus_sessions (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        item TEXT NOT NULL,
        keywords TEXT NOT NULL,
        time_spent TEXT NOT NULL,
        last_updated TEXT NOT NULL,
        model_used TEXT NOT NULL DEFAULT '',
        trace_id TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_WEBSITE_VISITS_TABLE = """
    CREATE TABLE IF NOT EXISTS website_visits (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        url TEXT NOT NULL,
        title TEXT NOT NULL,
        summary TEXT,
        active_time_ms INTEGER NOT NULL DEFAULT 0,
        opened_at TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_TEXT_ATTENTION_TABLE = """
    CREATE TABLE IF NOT EXISTS text_attention (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        url TEXT NOT NULL,
        text TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_IMAGE_ATTENTION_TABLE = """
    CREATE TABLE IF NOT EXISTS image_attention (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        url TEXT NOT NULL,
        title TEXT NOT NULL,
        caption TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_VIDEO_ATTENTION_TABLE = """
    CREATE TABLE IF NOT EXISTS video_attention (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        video_id TEXT NOT NULL,
        title TEXT NOT NULL,
        channel_name TEXT NOT NULL,
        caption TEXT,
        timestamp TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

CREATE_AUDIO_ATTENTION_TABLE = """
    CREATE TABLE IF NOT EXISTS audio_attention (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        url TEXT NOT NULL,
        title TEXT NOT NULL,
        summary TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
"""

# Index creation statements
CREATE_FOCUS_SESSIONS_USER_UPDATED_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_focus_sessions_user_updated
    ON focus_sessions(user_id, last_updated DESC)
"""

CREATE_WEBSITE_VISITS_USER_TIME_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_website_visits_user_opened
    ON website_visits(user_id, opened_at)
"""

CREATE_TEXT_ATTENTION_USER_TIME_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_text_attention_user_time
    ON text_attention(user_id, timestamp)
"""

CREATE_IMAGE_ATTENTION_USER_TIME_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_image_attention_user_time
    ON image_attention(user_id, timestamp)
"""

CREATE_VIDEO_ATTENTION_USER_TIME_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_video_attention_user_time
    ON video_attention(user_id, timestamp)
"""

CREATE_AUDIO_ATTENTION_USER_TIME_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_audio_attention_user_time
    ON audio_attention(user_id, timestamp)
"""

ALL_TABLES = [
    CREATE_FOCUS_SESSIONS_TABLE,
    CREATE_WEBSITE_VISITS_TABLE,
    CREATE_TEXT_ATTENTION_TABLE,
    CREATE_IMAGE_ATTENTION_TABLE,
    CREATE_VIDEO_ATTENTION_TABLE,
    CREATE_AUDIO_ATTENTION_TABLE,
]

ALL_INDEXES = [
    CREATE_FOCUS_SESSIONS_USER_UPDATED_INDEX,
    CREATE_WEBSITE_VISITS_USER_TIME_INDEX,
    CREATE_TEXT_ATTENTION_USER_TIME_INDEX,
    CREATE_IMAGE_ATTENTION_USER_TIME_INDEX,
    CREATE_VIDEO_ATTENTION_USER_TIME_INDEX,
    CREATE_AUDIO_ATTENTION_USER_TIME_INDEX,
]
