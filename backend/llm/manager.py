"""
LLM Manager - Centralized LLM request management
Ensures all services use the latest configured model
"""

import time
from typing import Any, Dict, List, Optional

from core.logger import get_logger

from .client import LLMClient

logger = get_logger(__name__)


class LLMManager:
    """
    Centralized LLM request manager

    All LLM requests go through this manager instead of creating LLMClient
    instances directly, so every caller shares one configured client.
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self._client = client
        logger.debug("LLMManager initialized")

    def _ensure_client(self) -> LLMClient:
        if self._client is None:
            self._client = LLMClient()
            logger.debug("Created new LLMClient instance")
        return self._client

    @property
    def model_name(self) -> str:
        """Identifier of the model requests are sent to"""
        return self._ensure_client().model

    async def chat_completion(
        self, messages: List[Dict[str, Any]], **kwargs
    ) -> Dict[str, Any]:
        """
        Send chat completion request using the configured model

        Args:
            messages: Conversation message list
            **kwargs: Additional parameters (max_tokens, temperature, request_type)

        Returns:
            LLM response
        """
        client = self._ensure_client()
        return await client.chat_completion(messages, **kwargs)

    def get_active_model_info(self) -> Dict[str, Any]:
        client = self._ensure_client()
        return {
            "provider": client.provider,
            "model": client.model,
            "base_url": client.base_url,
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Check if LLM service is available

        Returns:
            Dict with 'available' (bool), 'latency_ms' (int), and optional 'error' (str)
        """
        start_time = time.perf_counter()
        try:
            client = self._ensure_client()
            result = await client.chat_completion(
                messages=[{"role": "user", "content": "hi"}],
                max_tokens=1,
                temperature=0.0,
                request_type="health_check",
            )
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            return {
                "available": True,
                "latency_ms": latency_ms,
                "model": result.get("model", client.model),
                "provider": client.provider,
            }
        except Exception as e:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            logger.warning(f"LLM health check failed: {e}")
            return {
                "available": False,
                "latency_ms": latency_ms,
                "error": str(e),
            }


# Global singleton instance
_llm_manager: Optional[LLMManager] = None


def get_llm_manager() -> LLMManager:
    """Get the global LLM manager instance"""
    global _llm_manager
    if _llm_manager is None:
        _llm_manager = LLMManager()
    return _llm_manager
