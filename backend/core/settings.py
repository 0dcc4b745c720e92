"""
Focus engine settings
Typed view of the [focus] configuration section
"""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field

from core.logger import get_logger

logger = get_logger(__name__)


class FocusSettings(BaseModel):
    """Scheduler timing, evaluation windows and classifier input caps"""

    interval_seconds: float = Field(default=5, gt=0)
    discovery_lookback_minutes: float = Field(default=60, gt=0)
    default_window_minutes: float = Field(default=10, gt=0)
    max_images: int = Field(default=10, ge=0)
    max_videos: int = Field(default=5, ge=0)
    max_audio: int = Field(default=5, ge=0)
    text_preview_chars: int = Field(default=500, gt=0)
    caption_preview_chars: int = Field(default=200, gt=0)
    max_keywords: int = Field(default=20, gt=0)
    summary_keywords: int = Field(default=10, gt=0)

    @property
    def discovery_lookback(self) -> timedelta:
        return timedelta(minutes=self.discovery_lookback_minutes)

    @property
    def default_window(self) -> timedelta:
        return timedelta(minutes=self.default_window_minutes)

    @classmethod
    def from_config(cls, config) -> "FocusSettings":
        """Build from a ConfigLoader; unknown keys are ignored, missing keys use defaults"""
        section = config.get("focus", {}) or {}
        known = {key: value for key, value in section.items() if key in cls.model_fields}
        return cls(**known)


# Global instance
_focus_settings: Optional[FocusSettings] = None


def get_focus_settings() -> FocusSettings:
    """Get global FocusSettings built from the loaded configuration"""
    global _focus_settings
    if _focus_settings is None:
        from config.loader import get_config

        _focus_settings = FocusSettings.from_config(get_config())
        logger.debug(f"Focus settings loaded: {_focus_settings.model_dump()}")
    return _focus_settings
