"""
LLM-based Focus Classifier

Answers the three focus questions the session state machine asks:
has the topic drifted, what is the current topic, and what label summarizes
a keyword list. Provider failures never escape; each question has a safe
default answer.
"""

import re
from typing import Any, Dict, List, Optional

from core.logger import get_logger
from core.models import ActivityWindowBundle
from core.settings import FocusSettings, get_focus_settings

from .manager import LLMManager, get_llm_manager
from .prompt_manager import PromptManager, get_prompt_manager

logger = get_logger(__name__)

# Responses meaning "no topic", matched as whole words anywhere in the answer
NON_ANSWER_PATTERNS = (
    "null",
    "n/a",
    "unknown",
    "undefined",
    "none",
    "cannot determine",
    "unable to determine",
    "not enough",
    "insufficient",
)

NON_ANSWER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in NON_ANSWER_PATTERNS) + r")\b", re.IGNORECASE
)

MAX_TOPIC_WORDS = 3
UNKNOWN_SUMMARY = "Unknown"


def format_activity_content(
    bundle: ActivityWindowBundle,
    text_preview_chars: int = 500,
    caption_preview_chars: int = 200,
) -> str:
    """
    Render an activity bundle into the prompt's attention section

    Args:
        bundle: Window bundle to render
        text_preview_chars: Characters kept from each concatenated text group
        caption_preview_chars: Characters kept from each video caption

    Returns:
        Multi-section plain text
    """
    sections: List[str] = []

    if bundle.website_visits:
        sections.append("Websites:")
        for visit in bundle.website_visits:
            active_minutes = int(visit.active_time_ms / 60000 + 0.5)
            sections.append(f'- "{visit.title}" ({active_minutes}min)')
            if visit.summary:
                sections.append(f"  {visit.summary}")

    if bundle.text_groups:
        sections.append("\nText Content:")
        for group in bundle.text_groups:
            sections.append(f"- From {group.url}:")
            sections.append(f"  {group.concatenated_text[:text_preview_chars]}...")

    if bundle.images:
        sections.append("\nImages:")
        for image in bundle.images:
            sections.append(f"- {image.title}: {image.caption}")

    if bundle.videos:
        sections.append("\nYouTube:")
        for video in bundle.videos:
            sections.append(f'- "{video.title}" by {video.channel_name}')
            if video.caption:
                sections.append(f"  {video.caption[:caption_preview_chars]}...")

    if bundle.audio:
        sections.append("\nAudio:")
        for clip in bundle.audio:
            sections.append(f'- "{clip.title}": {clip.summary}')

    return "\n".join(sections)


def parse_drift_answer(content: str) -> bool:
    """Only an explicit 'yes' counts as drift"""
    return content.strip().strip(".!\"'").lower() == "yes"


def sanitize_topic(content: str) -> Optional[str]:
    """
    Clean a topic answer

    Returns:
        Topic of at most three words, or None for non-answers
    """
    cleaned = content.strip().replace(".", "", 1).strip().strip("\"'`*").strip()
    if not cleaned:
        return None

    if NON_ANSWER_RE.search(cleaned):
        return None

    words = cleaned.split()
    return " ".join(words[:MAX_TOPIC_WORDS])


class FocusClassifier:
    """LLM-backed implementation of FocusClassifierProtocol"""

    def __init__(
        self,
        llm_manager: Optional[LLMManager] = None,
        prompt_manager: Optional[PromptManager] = None,
        settings: Optional[FocusSettings] = None,
    ):
        self.llm_manager = llm_manager or get_llm_manager()
        self.prompt_manager = prompt_manager or get_prompt_manager()
        self.settings = settings or get_focus_settings()

    @property
    def model_name(self) -> str:
        try:
            return self.llm_manager.model_name
        except Exception as e:
            logger.warning(f"Could not resolve active model name: {e}")
            return ""

    def _format(self, bundle: ActivityWindowBundle) -> str:
        return format_activity_content(
            bundle,
            text_preview_chars=self.settings.text_preview_chars,
            caption_preview_chars=self.settings.caption_preview_chars,
        )

    async def _ask(self, category: str, request_type: str, **fields: Any) -> str:
        """Fill the category's template and return the raw answer text"""
        template = self.prompt_manager.get_prompt(category, "user_prompt_template")
        prompt = template.format(**fields).strip()
        messages: List[Dict[str, Any]] = [{"role": "user", "content": prompt}]

        response = await self.llm_manager.chat_completion(
            messages,
            max_tokens=self.prompt_manager.get_max_tokens(category),
            request_type=request_type,
        )
        return (response.get("content") or "").strip()

    async def detect_drift(
        self,
        previous_item: str,
        previous_keywords: List[str],
        bundle: ActivityWindowBundle,
    ) -> bool:
        """
        Check whether current activity moved to a different general subject

        Returns:
            True only for an explicit "yes"; False when related, ambiguous or on error
        """
        try:
            answer = await self._ask(
                "focus_drift",
                "focus_drift",
                previous_item=previous_item,
                previous_keywords=", ".join(previous_keywords),
                attention_content=self._format(bundle),
            )
            drifted = parse_drift_answer(answer)
            logger.debug(f"Drift answer '{answer}' -> {drifted} (previous: {previous_item})")
            return drifted
        except Exception as e:
            logger.error(f"Error detecting focus drift: {e}", exc_info=True)
            return False

    async def detect_topic(self, bundle: ActivityWindowBundle) -> Optional[str]:
        """
        Detect the dominant current topic

        Returns:
            Short keyword, or None when no clear focus or on error
        """
        try:
            answer = await self._ask(
                "focus_topic",
                "focus_topic",
                attention_content=self._format(bundle),
            )
            topic = sanitize_topic(answer)
            logger.debug(f"Topic answer '{answer}' -> {topic}")
            return topic
        except Exception as e:
            logger.error(f"Error detecting focus area: {e}", exc_info=True)
            return None

    async def summarize(self, keywords: List[str]) -> str:
        """
        Summarize keywords into one short label

        Returns:
            Label of at most three words, or the first keyword on error,
            empty answer or non-answer
        """
        fallback = keywords[0] if keywords else UNKNOWN_SUMMARY
        if not keywords:
            return fallback

        try:
            answer = await self._ask(
                "focus_summary",
                "focus_summary",
                keywords=", ".join(keywords),
            )
            return sanitize_topic(answer) or fallback
        except Exception as e:
            logger.error(f"Error summarizing focus: {e}", exc_info=True)
            return fallback
