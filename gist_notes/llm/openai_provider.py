"""
Direct HTTP provider for OpenAI-compatible chat-completion APIs
"""

from typing import Optional

import aiohttp

from ..logging_config import get_logger
from .base import LLMProvider, LLMResponse

logger = get_logger("llm.openai")


class OpenAICompatibleProvider(LLMProvider):
    """Talks to ``<base_url>/chat/completions`` over aiohttp."""

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def __init__(self, api_key: str, model: str, **kwargs):
        super().__init__(api_key, model, **kwargs)
        self.base_url = (kwargs.get("base_url") or self.DEFAULT_BASE_URL).rstrip("/")
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        self.validate_config()

        if not self.session:
            await self.__aenter__()

        payload = {
            "model": self.model,
            "messages": self.build_messages(prompt, system),
            "temperature": 0.2,
            **kwargs,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.debug("POST %s/chat/completions model=%s", self.base_url, self.model)
        try:
            async with self.session.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
            ) as response:
                response.raise_for_status()
                data = await response.json()
        except aiohttp.ClientError as e:
            raise RuntimeError(f"Chat completion request failed: {e}") from e

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise RuntimeError(f"Malformed chat completion response: {data!r}") from e

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage=data.get("usage"),
            finish_reason=choice.get("finish_reason"),
        )
