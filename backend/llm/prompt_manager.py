"""
Prompt Manager - loads prompt templates from config/prompts_<language>.toml
"""

from pathlib import Path
from typing import Any, Dict, Optional

import toml

from core.logger import get_logger

logger = get_logger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "config"


class PromptManager:
    """Prompt template lookup by category and key"""

    def __init__(self, language: str = "en", prompts_dir: Optional[Path] = None):
        self.language = language
        self.prompts_dir = prompts_dir or PROMPTS_DIR
        self._prompts: Dict[str, Dict[str, Any]] = self._load()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        prompt_file = self.prompts_dir / f"prompts_{self.language}.toml"
        if not prompt_file.exists():
            logger.warning(f"Prompt file not found for '{self.language}', falling back to English")
            prompt_file = self.prompts_dir / "prompts_en.toml"

        with open(prompt_file, "r", encoding="utf-8") as f:
            prompts = toml.load(f)

        logger.debug(f"✓ Loaded {len(prompts)} prompt categories from {prompt_file.name}")
        return prompts

    def get_prompt(self, category: str, key: str) -> str:
        """
        Get a prompt template

        Raises:
            KeyError: Category or key missing
        """
        return self._prompts[category][key]

    def get_max_tokens(self, category: str, default: int = 16) -> int:
        return int(self._prompts.get(category, {}).get("max_tokens", default))


# Global instance
_prompt_manager: Optional[PromptManager] = None


def get_prompt_manager() -> PromptManager:
    """Get global PromptManager instance"""
    global _prompt_manager
    if _prompt_manager is None:
        _prompt_manager = PromptManager()
    return _prompt_manager
