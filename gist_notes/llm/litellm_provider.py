"""
LiteLLM provider implementation
"""

from typing import Optional

import litellm

from ..logging_config import get_logger
from .base import LLMProvider, LLMResponse

logger = get_logger("llm.litellm")


class LiteLLMProvider(LLMProvider):
    """LiteLLM-based provider (OpenAI, OpenRouter, local servers, ...)"""

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        self.validate_config()

        call_kwargs = {
            "temperature": 0.2,
            "max_tokens": 1500,
            **kwargs,
        }
        if json_mode:
            call_kwargs["response_format"] = {"type": "json_object"}
        if "base_url" in self.config:
            call_kwargs["api_base"] = self.config["base_url"]

        logger.debug("Completion request: model=%s, prompt_len=%d", self.model, len(prompt))
        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=self.build_messages(prompt, system),
                api_key=self.api_key,
                timeout=self.timeout,
                **call_kwargs,
            )
        except Exception as e:
            raise RuntimeError(f"LiteLLM generation failed: {e}") from e

        choice = response.choices[0]
        usage = None
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": getattr(response.usage, "prompt_tokens", 0),
                "completion_tokens": getattr(response.usage, "completion_tokens", 0),
                "total_tokens": getattr(response.usage, "total_tokens", 0),
            }

        return LLMResponse(
            content=choice.message.content or "",
            model=self.model,
            usage=usage,
            finish_reason=getattr(choice, "finish_reason", None),
        )
