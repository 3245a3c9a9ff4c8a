"""
Tests for LLM providers
"""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from gist_notes.llm.base import LLMProvider, LLMResponse
from gist_notes.llm.factory import LLMProviderFactory, LLMProviderType
from gist_notes.llm.litellm_provider import LiteLLMProvider
from gist_notes.llm.openai_provider import OpenAICompatibleProvider


def litellm_response(content="Generated response", usage=True):
    mock_response = MagicMock()
    mock_choice = MagicMock()
    mock_choice.message.content = content
    mock_choice.finish_reason = "stop"
    mock_response.choices = [mock_choice]
    if usage:
        mock_response.usage = MagicMock()
        mock_response.usage.prompt_tokens = 10
        mock_response.usage.completion_tokens = 5
        mock_response.usage.total_tokens = 15
    else:
        mock_response.usage = None
    return mock_response


class TestLLMResponse:
    """Test LLMResponse dataclass"""

    def test_llm_response_defaults(self):
        """Test LLMResponse with default values"""
        response = LLMResponse(content="Test", model="test")

        assert response.usage is None
        assert response.finish_reason is None


class TestLLMProvider:
    """Test base LLMProvider class"""

    def test_abstract_methods(self):
        """Test that base class requires implementation of abstract methods"""
        with pytest.raises(TypeError):
            LLMProvider("test_key", "test_model")

    def test_build_messages(self):
        assert LLMProvider.build_messages("hi") == [{"role": "user", "content": "hi"}]
        assert LLMProvider.build_messages("hi", system="sys") == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]


class TestLiteLLMProvider:
    """Test LiteLLM provider"""

    def test_initialization(self):
        provider = LiteLLMProvider("test_key", "test_model")

        assert provider.api_key == "test_key"
        assert provider.model == "test_model"
        assert provider.config == {}
        assert provider.timeout == 60

    def test_validate_config_missing_key(self):
        provider = LiteLLMProvider("", "test_model")

        with pytest.raises(ValueError, match="API key is required"):
            provider.validate_config()

    def test_validate_config_missing_model(self):
        provider = LiteLLMProvider("test_key", "")

        with pytest.raises(ValueError, match="Model is required"):
            provider.validate_config()

    @patch('litellm.acompletion')
    @pytest.mark.asyncio
    async def test_generate_success(self, mock_acompletion):
        """Test successful generation"""
        mock_acompletion.return_value = litellm_response()

        provider = LiteLLMProvider("test_key", "test_model")
        response = await provider.generate("Test prompt")

        assert response.content == "Generated response"
        assert response.model == "test_model"
        assert response.usage == {
            "prompt_tokens": 10,
            "completion_tokens": 5,
            "total_tokens": 15
        }
        assert response.finish_reason == "stop"

        mock_acompletion.assert_called_once_with(
            model="test_model",
            messages=[{"role": "user", "content": "Test prompt"}],
            api_key="test_key",
            timeout=60,
            temperature=0.2,
            max_tokens=1500,
        )

    @patch('litellm.acompletion')
    @pytest.mark.asyncio
    async def test_generate_json_mode_with_system(self, mock_acompletion):
        """Test system prompt and JSON response format"""
        mock_acompletion.return_value = litellm_response("{}")

        provider = LiteLLMProvider("test_key", "test_model", base_url="http://localhost:4000")
        await provider.generate("Prompt", system="Be precise", json_mode=True, temperature=0.0)

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["messages"][0] == {"role": "system", "content": "Be precise"}
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["api_base"] == "http://localhost:4000"
        assert kwargs["temperature"] == 0.0

    @patch('litellm.acompletion')
    @pytest.mark.asyncio
    async def test_generate_missing_usage(self, mock_acompletion):
        mock_acompletion.return_value = litellm_response(usage=False)

        response = await LiteLLMProvider("test_key", "test_model").generate("Test prompt")

        assert response.usage is None

    @patch('litellm.acompletion')
    @pytest.mark.asyncio
    async def test_generate_failure(self, mock_acompletion):
        mock_acompletion.side_effect = Exception("rate limited")

        with pytest.raises(RuntimeError, match="rate limited"):
            await LiteLLMProvider("test_key", "test_model").generate("Test prompt")


class TestOpenAICompatibleProvider:
    """Test the direct HTTP provider"""

    def test_initialization(self):
        provider = OpenAICompatibleProvider("test_key", "gpt-4o-mini")

        assert provider.base_url == "https://api.openai.com/v1"
        assert provider.session is None

    def test_custom_base_url(self):
        provider = OpenAICompatibleProvider("k", "m", base_url="http://localhost:8080/v1/")
        assert provider.base_url == "http://localhost:8080/v1"

    @patch('aiohttp.ClientSession.post')
    @pytest.mark.asyncio
    async def test_generate_success(self, mock_post):
        mock_response = MagicMock()
        mock_response.raise_for_status.return_value = None
        mock_response.json = AsyncMock(return_value={
            "choices": [{"message": {"content": "Generated response"}, "finish_reason": "stop"}],
            "model": "gpt-4o-mini-2024",
            "usage": {"prompt_tokens": 10, "completion_tokens": 5}
        })
        mock_post.return_value.__aenter__.return_value = mock_response

        provider = OpenAICompatibleProvider("test_key", "gpt-4o-mini")
        async with provider as p:
            response = await p.generate("Test prompt", system="sys", json_mode=True)

        assert response.content == "Generated response"
        assert response.model == "gpt-4o-mini-2024"
        assert response.usage == {"prompt_tokens": 10, "completion_tokens": 5}
        assert response.finish_reason == "stop"

        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.openai.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer test_key"
        assert kwargs["json"]["response_format"] == {"type": "json_object"}
        assert kwargs["json"]["messages"][0]["role"] == "system"

    @patch('aiohttp.ClientSession.post')
    @pytest.mark.asyncio
    async def test_generate_http_error(self, mock_post):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = aiohttp.ClientError("500")
        mock_post.return_value.__aenter__.return_value = mock_response

        async with OpenAICompatibleProvider("test_key", "m") as p:
            with pytest.raises(RuntimeError, match="request failed"):
                await p.generate("Test prompt")

    @patch('aiohttp.ClientSession.post')
    @pytest.mark.asyncio
    async def test_generate_malformed_body(self, mock_post):
        mock_response = MagicMock()
        mock_response.raise_for_status.return_value = None
        mock_response.json = AsyncMock(return_value={"choices": []})
        mock_post.return_value.__aenter__.return_value = mock_response

        async with OpenAICompatibleProvider("test_key", "m") as p:
            with pytest.raises(RuntimeError, match="Malformed"):
                await p.generate("Test prompt")

    @pytest.mark.asyncio
    async def test_context_manager(self):
        provider = OpenAICompatibleProvider("test_key", "m")

        async with provider as p:
            assert p.session is not None

        assert provider.session is None


class TestLLMProviderFactory:
    """Test LLM provider factory"""

    def test_create_litellm_provider(self):
        provider = LLMProviderFactory.create_provider(LLMProviderType.LITELLM, "test_key", "gpt-4")

        assert isinstance(provider, LiteLLMProvider)
        assert provider.model == "gpt-4"

    def test_create_openai_provider(self):
        provider = LLMProviderFactory.create_provider(LLMProviderType.OPENAI, "test_key", "gpt-4")

        assert isinstance(provider, OpenAICompatibleProvider)

    def test_create_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider type"):
            LLMProviderFactory.create_provider("unknown", "test_key", "gpt-4")

    @patch.dict(os.environ, {
        'OPENAI_API_KEY': 'test_key',
        'LLM_MODEL': 'gpt-4o',
        'LLM_PROVIDER': 'openai',
        'OPENAI_BASE_URL': 'http://localhost:8080/v1',
    }, clear=True)
    def test_from_env_openai(self):
        provider = LLMProviderFactory.from_env()

        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.api_key == "test_key"
        assert provider.model == "gpt-4o"
        assert provider.base_url == "http://localhost:8080/v1"

    @patch.dict(os.environ, {'OPENAI_API_KEY': 'test_key'}, clear=True)
    def test_from_env_default(self):
        provider = LLMProviderFactory.from_env()

        assert isinstance(provider, LiteLLMProvider)
        assert provider.model == "gpt-4o-mini"

    @patch.dict(os.environ, {'OPENAI_API_KEY': 'test_key', 'LLM_PROVIDER': 'invalid'}, clear=True)
    def test_from_env_invalid_provider(self):
        with pytest.raises(ValueError, match="Invalid provider type"):
            LLMProviderFactory.from_env()

    @patch.dict(os.environ, {'LLM_PROVIDER': 'litellm'}, clear=True)
    def test_from_env_missing_api_key(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY is required"):
            LLMProviderFactory.from_env()
