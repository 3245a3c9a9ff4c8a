"""
Thin wrapper around litellm for computing text embeddings.
"""

import os
from typing import Protocol

import numpy as np

from ..errors import EmbeddingError
from ..logging_config import get_logger

logger = get_logger("embedding")

MAX_INPUT_CHARS = 8000


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers (allows easy test mocking)."""

    async def embed(self, text: str) -> np.ndarray: ...


class LiteLLMEmbeddingClient:
    """Embedding client using litellm."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        api_base: str | None = None,
    ):
        self.model = model
        self.api_key = api_key or os.getenv("OPENAI_API_KEY", "")
        self.api_base = api_base or os.getenv("OPENAI_BASE_URL") or None

    async def embed(self, text: str) -> np.ndarray:
        """Compute embedding for text using litellm.

        Raises:
            EmbeddingError: the provider failed or returned an empty vector.
        """
        import litellm

        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        logger.debug("Embedding request: model=%s, input_len=%d", self.model, len(text))
        kwargs = {"api_key": self.api_key}
        if self.api_base:
            kwargs["api_base"] = self.api_base
        try:
            response = await litellm.aembedding(
                model=self.model,
                input=[text[:MAX_INPUT_CHARS]],
                **kwargs,
            )
            vector = response.data[0]["embedding"]
        except Exception as e:
            raise EmbeddingError(
                f"Embedding request failed: {e}", {"model": self.model}
            ) from e

        result = np.array(vector or [], dtype=np.float64)
        if result.size == 0:
            raise EmbeddingError("Embedding provider returned an empty vector", {"model": self.model})
        logger.debug("Embedding success: dim=%d", result.shape[0])
        return result
