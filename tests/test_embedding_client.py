"""
Tests for the litellm embedding client
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from gist_notes.clustering.embedding_client import LiteLLMEmbeddingClient
from gist_notes.errors import EmbeddingError


def embedding_response(vector):
    response = MagicMock()
    response.data = [{"embedding": vector}]
    return response


class TestLiteLLMEmbeddingClient:
    @patch('litellm.aembedding')
    @pytest.mark.asyncio
    async def test_embed_success(self, mock_aembedding):
        mock_aembedding.return_value = embedding_response([0.1, 0.2, 0.3])

        client = LiteLLMEmbeddingClient(model="text-embedding-3-small", api_key="k")
        vector = await client.embed("hello world")

        np.testing.assert_array_almost_equal(vector, [0.1, 0.2, 0.3])
        assert vector.dtype == np.float64
        kwargs = mock_aembedding.call_args.kwargs
        assert kwargs["model"] == "text-embedding-3-small"
        assert kwargs["input"] == ["hello world"]
        assert kwargs["api_key"] == "k"

    @pytest.mark.asyncio
    async def test_empty_text(self):
        with pytest.raises(EmbeddingError, match="empty text"):
            await LiteLLMEmbeddingClient(api_key="k").embed("   ")

    @patch('litellm.aembedding')
    @pytest.mark.asyncio
    async def test_empty_vector_is_failure(self, mock_aembedding):
        mock_aembedding.return_value = embedding_response([])

        with pytest.raises(EmbeddingError, match="empty vector"):
            await LiteLLMEmbeddingClient(api_key="k").embed("hello")

    @patch('litellm.aembedding')
    @pytest.mark.asyncio
    async def test_provider_error(self, mock_aembedding):
        mock_aembedding.side_effect = Exception("timeout")

        with pytest.raises(EmbeddingError, match="timeout") as exc_info:
            await LiteLLMEmbeddingClient(api_key="k", model="m").embed("hello")
        assert exc_info.value.details == {"model": "m"}
