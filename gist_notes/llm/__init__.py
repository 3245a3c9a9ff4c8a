"""
Chat-completion providers used by the summarizer
"""

from .base import LLMProvider, LLMResponse
from .factory import LLMProviderFactory, LLMProviderType
from .litellm_provider import LiteLLMProvider
from .openai_provider import OpenAICompatibleProvider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMProviderFactory",
    "LLMProviderType",
    "LiteLLMProvider",
    "OpenAICompatibleProvider",
]
