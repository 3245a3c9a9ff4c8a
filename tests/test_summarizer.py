"""
Tests for the summarization service
"""

import json

import pytest

from gist_notes.errors import SummarizationError
from gist_notes.models import SummaryResult
from gist_notes.summarizer import SUPER_CATEGORIES, SummarizationService

from tests.fixtures import FakeLLMProvider


def service_returning(content: str) -> SummarizationService:
    return SummarizationService(FakeLLMProvider(content=content))


class TestPrompts:
    def test_system_prompt_lists_super_categories(self):
        prompt = SummarizationService(FakeLLMProvider()).get_system_prompt()
        assert "canonical_name" in prompt
        for category in SUPER_CATEGORIES:
            assert category in prompt

    def test_user_prompt_defaults(self):
        prompt = SummarizationService(FakeLLMProvider()).get_user_prompt("hello")
        assert prompt.startswith("TRANSCRIPT:\nhello")
        assert "(none)" in prompt

    def test_user_prompt_with_instructions(self):
        prompt = SummarizationService(FakeLLMProvider()).get_user_prompt("hello", "be brief")
        assert "be brief" in prompt


class TestSummarize:
    @pytest.mark.asyncio
    async def test_success(self):
        provider = FakeLLMProvider(content=json.dumps({
            "summary": "Warming is accelerating.",
            "canonical_name": "Climate Change",
            "keywords": ["warming", "CO2"],
            "subjects": ["Science & Environment"],
        }))
        result = await SummarizationService(provider).summarize("transcript", "focus")

        assert result == SummaryResult(
            summary="Warming is accelerating.",
            canonical_name="Climate Change",
            keywords=["warming", "CO2"],
            subjects=["Science & Environment"],
        )
        assert provider.prompts[0]["json_mode"] is True
        assert provider.prompts[0]["temperature"] == 0.2
        assert "focus" in provider.prompts[0]["prompt"]

    @pytest.mark.asyncio
    async def test_json_inside_prose(self):
        content = 'Here you go:\n{"summary": "S", "canonical_name": "N"}\nThanks'
        result = await service_returning(content).summarize("t")

        assert result.summary == "S"
        assert result.keywords == []
        assert result.subjects == []

    @pytest.mark.asyncio
    async def test_non_list_fields_become_empty(self):
        content = json.dumps({"summary": "S", "canonical_name": "N", "keywords": "a, b"})
        result = await service_returning(content).summarize("t")
        assert result.keywords == []

    @pytest.mark.asyncio
    async def test_unparseable_falls_back(self):
        result = await service_returning("Just some plain text.").summarize("t")

        assert result.summary == "Just some plain text."
        assert result.canonical_name == "general"
        assert result.keywords == []
        assert result.subjects == []

    @pytest.mark.asyncio
    async def test_missing_canonical_name(self):
        with pytest.raises(SummarizationError, match="canonical_name"):
            await service_returning(json.dumps({"summary": "S"})).summarize("t")

    @pytest.mark.asyncio
    async def test_empty_response(self):
        with pytest.raises(SummarizationError, match="no content"):
            await service_returning("   ").summarize("t")

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        service = SummarizationService(FakeLLMProvider(error=RuntimeError("boom")))
        with pytest.raises(SummarizationError, match="boom") as exc_info:
            await service.summarize("t")
        assert exc_info.value.error_code == "summarization_failed"


class TestSummarizeMulti:
    @pytest.mark.asyncio
    async def test_topics_and_prominence(self):
        content = json.dumps({
            "full_summary": "A wide-ranging interview.",
            "topics": [
                {"summary": "A", "canonical_name": "Climate Change", "prominence": 60},
                {"summary": "B", "canonical_name": "Energy Policy", "prominence": 30},
                {"summary": "C", "canonical_name": "Electric Cars", "prominence": 10},
                {"summary": "D", "canonical_name": "Ignored", "prominence": 5},
            ],
        })
        result = await service_returning(content).summarize_multi("t")

        assert result.full_summary == "A wide-ranging interview."
        assert [t.canonical_name for t in result.topics] == [
            "Climate Change", "Energy Policy", "Electric Cars",
        ]
        assert [t.prominence for t in result.topics] == [60, 30, 10]
        assert [t.is_primary for t in result.topics] == [True, False, False]
        assert result.primary.canonical_name == "Climate Change"

    @pytest.mark.asyncio
    async def test_prominence_normalized(self):
        content = json.dumps({
            "full_summary": "F",
            "topics": [
                {"summary": "A", "canonical_name": "X", "prominence": 3},
                {"summary": "B", "canonical_name": "Y", "prominence": 1},
            ],
        })
        result = await service_returning(content).summarize_multi("t")
        assert [t.prominence for t in result.topics] == [75, 25]

    @pytest.mark.asyncio
    async def test_single_topic_shaped_answer(self):
        content = json.dumps({"summary": "S", "canonical_name": "N"})
        result = await service_returning(content).summarize_multi("t")

        assert len(result.topics) == 1
        assert result.topics[0].prominence == 100
        assert result.topics[0].is_primary is True
        assert result.full_summary == "S"

    @pytest.mark.asyncio
    async def test_unparseable_falls_back(self):
        result = await service_returning("plain").summarize_multi("t")

        assert result.full_summary == "plain"
        assert result.topics[0].canonical_name == "general"
        assert result.topics[0].prominence == 100

    @pytest.mark.asyncio
    async def test_topic_missing_fields(self):
        content = json.dumps({"full_summary": "F", "topics": [{"summary": "A"}]})
        with pytest.raises(SummarizationError):
            await service_returning(content).summarize_multi("t")


class TestNormalizeProminence:
    @pytest.mark.parametrize("values,expected", [
        ([50, 50], [50, 50]),
        ([1, 1, 1], [34, 33, 33]),
        ([0, 0], [50, 50]),
        ([200], [100]),
        ([], []),
    ])
    def test_normalize(self, values, expected):
        result = SummarizationService.normalize_prominence(values)
        assert result == expected
        if result:
            assert sum(result) == 100
