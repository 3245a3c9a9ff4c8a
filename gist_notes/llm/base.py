"""
Base LLM provider interface
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class LLMResponse:
    """Standardized LLM response structure"""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


class LLMProvider(ABC):
    """Abstract base class for chat-completion providers"""

    def __init__(self, api_key: str, model: str, **kwargs):
        self.api_key = api_key
        self.model = model
        self.config = kwargs
        self.timeout = kwargs.get("timeout", 60)

    @staticmethod
    def build_messages(prompt: str, system: Optional[str] = None) -> List[Dict[str, str]]:
        """Chat messages for an optional system prompt plus one user turn."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        """Generate a completion.

        ``json_mode`` asks the model for a single JSON object.
        Transport failures raise ``RuntimeError``.
        """
        pass

    def validate_config(self) -> bool:
        """Validate provider configuration and credentials."""
        if not self.api_key:
            raise ValueError(f"API key is required for {type(self).__name__}")
        if not self.model:
            raise ValueError(f"Model is required for {type(self).__name__}")
        return True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass
