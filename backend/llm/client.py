"""
LLM Client - OpenAI-compatible chat completions over httpx
"""

from typing import Any, Dict, List, Optional

import httpx

from config.loader import get_config
from core.logger import get_logger

logger = get_logger(__name__)


class LLMClientError(Exception):
    """Transport or provider failure for a chat completion request"""


class LLMClient:
    """Chat completion client for any OpenAI-compatible endpoint"""

    def __init__(
        self,
        config=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: ConfigLoader to read the [llm] section from (global config by default)
            transport: Optional httpx transport, used to stub the provider in tests
        """
        self._config = config
        self._transport = transport
        self.reload_config()

    def reload_config(self) -> None:
        """Re-read the [llm] section"""
        config = self._config or get_config()
        self.provider: str = config.get("llm.provider", "openai")
        self.base_url: str = (config.get("llm.base_url", "") or "").rstrip("/")
        self.api_key: str = config.get("llm.api_key", "") or ""
        self.model: str = config.get("llm.model", "") or ""
        self.timeout = float(config.get("llm.timeout", 30.0))
        self.temperature = float(config.get("llm.temperature", 0.2))
        logger.debug(f"LLM client configured: provider={self.provider}, model={self.model}")

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        request_type: str = "general",
    ) -> Dict[str, Any]:
        """
        Send a chat completion request

        Args:
            messages: Conversation message list
            max_tokens: Completion token limit
            temperature: Sampling temperature (configured default when None)
            request_type: Label used in logs

        Returns:
            Dict with content, model and usage

        Raises:
            LLMClientError: On transport errors, non-2xx status or malformed body
        """
        if not self.base_url or not self.model:
            raise LLMClientError("LLM base_url and model must be configured")

        url = f"{self.base_url}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise LLMClientError(f"{request_type} request failed: {exc.__class__.__name__}: {exc}") from exc

        if response.status_code >= 400:
            detail = response.text[:500] if response.text else ""
            raise LLMClientError(
                f"{request_type} request failed: HTTP {response.status_code} {detail}".strip()
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"].get("content") or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMClientError(f"{request_type} response malformed: {exc}") from exc

        logger.debug(f"LLM {request_type} completed ({len(content)} chars)")

        return {
            "content": content,
            "model": data.get("model", self.model),
            "usage": data.get("usage", {}),
        }
