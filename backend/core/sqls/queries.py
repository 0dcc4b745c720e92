"""
Database query SQL statements
Contains all SELECT, INSERT, UPDATE statements
"""

# Focus sessions queries
INSERT_FOCUS_SESSION = """
    INSERT INTO focus_sessions (
        id, user_id, item, keywords, time_spent, last_updated, model_used, trace_id
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""

SELECT_FOCUS_SESSION_BY_ID = """
    SELECT id, user_id, item, keywords, time_spent, last_updated, model_used, trace_id
    FROM focus_sessions
    WHERE id = ?
"""

SELECT_LATEST_FOCUS_SESSION = """
    SELECT id, user_id, item, keywords, time_spent, last_updated, model_used, trace_id
    FROM focus_sessions
    WHERE user_id = ?
    ORDER BY last_updated DESC, created_at DESC
    LIMIT 1
"""

SELECT_FOCUS_SESSION_HISTORY = """
    SELECT id, user_id, item, keywords, time_spent, last_updated, model_used, trace_id
    FROM focus_sessions
    WHERE user_id = ?
    ORDER BY last_updated DESC, created_at DESC
    LIMIT ? OFFSET ?
"""

# Attention insert queries
INSERT_WEBSITE_VISIT = """
    INSERT INTO website_visits (user_id, url, title, summary, active_time_ms, opened_at)
    VALUES (?, ?, ?, ?, ?, ?)
"""

INSERT_TEXT_ATTENTION = """
    INSERT INTO text_attention (user_id, url, text, timestamp)
    VALUES (?, ?, ?, ?)
"""

INSERT_IMAGE_ATTENTION = """
    INSERT INTO image_attention (user_id, url, title, caption, timestamp)
    VALUES (?, ?, ?, ?, ?)
"""

INSERT_VIDEO_ATTENTION = """
    INSERT INTO video_attention (user_id, video_id, title, channel_name, caption, timestamp)
    VALUES (?, ?, ?, ?, ?, ?)
"""

INSERT_AUDIO_ATTENTION = """
    INSERT INTO audio_attention (user_id, url, title, summary, timestamp)
    VALUES (?, ?, ?, ?, ?)
"""

# Attention window queries (inclusive bounds, newest first)
SELECT_WEBSITE_VISITS_IN_WINDOW = """
    SELECT id, user_id, url, title, summary, active_time_ms, opened_at
    FROM website_visits
    WHERE user_id = ? AND opened_at >= ? AND opened_at <= ?
    ORDER BY opened_at DESC
"""

SELECT_TEXT_ATTENTION_IN_WINDOW = """
    SELECT id, user_id, url, text, timestamp
    FROM text_attention
    WHERE user_id = ? AND timestamp >= ? AND timestamp <= ?
    ORDER BY timestamp DESC
"""

SELECT_IMAGE_ATTENTION_IN_WINDOW = """
    SELECT id, user_id, url, title, caption, timestamp
    FROM image_attention
    WHERE user_id = ? AND timestamp >= ? AND timestamp <= ?
    ORDER BY timestamp DESC
    LIMIT ?
"""

SELECT_VIDEO_ATTENTION_IN_WINDOW = """
    SELECT id, user_id, video_id, title, channel_name, caption, timestamp
    FROM video_attention
    WHERE user_id = ? AND timestamp >= ? AND timestamp <= ?
    ORDER BY timestamp DESC
    LIMIT ?
"""

SELECT_AUDIO_ATTENTION_IN_WINDOW = """
    SELECT id, user_id, url, title, summary, timestamp
    FROM audio_attention
    WHERE user_id = ? AND timestamp >= ? AND timestamp <= ?
    ORDER BY timestamp DESC
    LIMIT ?
"""

# Candidate discovery across every attention kind
SELECT_ACTIVE_USER_IDS = """
    SELECT user_id FROM website_visits WHERE opened_at >= ?
    UNION
    SELECT user_id FROM text_attention WHERE timestamp >= ?
    UNION
    SELECT user_id FROM image_attention WHERE timestamp >= ?
    UNION
    SELECT user_id FROM video_attention WHERE timestamp >= ?
    UNION
    SELECT user_id FROM audio_attention WHERE timestamp >= ?
"""

TABLE_COUNT_QUERIES = {
    "focus_sessions": "SELECT COUNT(*) as count FROM focus_sessions",
    "website_visits": "SELECT COUNT(*) as count FROM website_visits",
    "text_attention": "SELECT COUNT(*) as count FROM text_attention",
    "image_attention": "SELECT COUNT(*) as count FROM image_attention",
    "video_attention": "SELECT COUNT(*) as count FROM video_attention",
    "audio_attention": "SELECT COUNT(*) as count FROM audio_attention",
}
