"""
Summarization service turning transcripts into tagged notes using LLM providers
"""
import json
from typing import Any, Dict, List, Optional

from .errors import SummarizationError
from .llm import LLMProvider, LLMProviderFactory
from .logging_config import get_logger
from .models import MultiTopicSummary, SubTopicSummary, SummaryResult

logger = get_logger("summarizer")

FALLBACK_CANONICAL_NAME = "general"
MAX_TOPICS = 3
MAX_TRANSCRIPT_CHARS = 48000

SUPER_CATEGORIES = [
    "World & Politics: Geopolitics, current affairs, government, diplomacy, law, human rights",
    "Society & Culture: Identity, norms, religion, lifestyle, media, social movements",
    "Science & Environment: Natural sciences, sustainability, climate, biology, earth systems",
    "Technology & Innovation: AI, software, hardware, digital systems, design, startups",
    "Economy & Work: Business, finance, markets, labor, economic theory",
    "History & Philosophy: Historical events, timelines, legacy systems, big ideas, ethics",
    "Health & Wellbeing: Physical/mental health, medicine, psychology, fitness",
    "Education & Learning: Schools, pedagogy, study techniques, lifelong learning, research methods",
]


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


class SummarizationService:
    """Service for summarizing transcripts using LLM providers"""

    def __init__(
        self,
        llm_provider: Optional[LLMProvider] = None,
        temperature: float = 0.2,
        max_tokens: int = 1500,
    ):
        """Initialize summarization service with specified LLM provider."""
        if llm_provider is None:
            self.llm_provider = LLMProviderFactory.from_env()
        else:
            self.llm_provider = llm_provider
        self.temperature = temperature
        self.max_tokens = max_tokens

    def get_system_prompt(self) -> str:
        categories = ",\n".join(f'  "{c}"' for c in SUPER_CATEGORIES)
        return f"""You are a precise note summarizer for a tagging app.
Return STRICT JSON with keys: summary, canonical_name, keywords (array), subjects (array).
- summary: 4-6 tight sentences (or 6-10 bullets if source is long).
- canonical_name: the single best subject label for this note (neutral, general), no hashtags.
- keywords: 5-12 short items (entities, noun phrases, actions).
- subjects: the SINGLE most fitting primary super-category from this list, optionally followed by up to TWO secondary ones that strongly apply:
{categories}
Output 1-3 category names, primary first (e.g. ["World & Politics", "Economy & Work"])."""

    def get_multi_topic_system_prompt(self) -> str:
        categories = ",\n".join(f'  "{c}"' for c in SUPER_CATEGORIES)
        return f"""You are a precise note summarizer for a tagging app.
The source may cover several distinct subjects. Identify the main one and at most two secondary ones.
Return STRICT JSON:
{{
  "full_summary": "4-6 sentence summary of the whole source",
  "topics": [
    {{
      "summary": "3-5 sentences covering only this topic",
      "canonical_name": "neutral, general subject label, no hashtags",
      "keywords": ["5-12 short items"],
      "subjects": ["1-3 super-categories, primary first"],
      "prominence": "integer 0-100, share of the source spent on this topic"
    }}
  ]
}}
List the most prominent topic first; prominences should add up to 100.
Super-categories:
{categories}"""

    def get_user_prompt(self, transcript: str, user_prompt: str = "") -> str:
        return (
            f"TRANSCRIPT:\n{transcript[:MAX_TRANSCRIPT_CHARS]}\n\n"
            f"EXTRA INSTRUCTIONS FROM USER (optional): {user_prompt or '(none)'}"
        )

    async def _complete(self, system: str, prompt: str) -> str:
        try:
            async with self.llm_provider as provider:
                response = await provider.generate(
                    prompt,
                    system=system,
                    json_mode=True,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
        except (RuntimeError, ValueError) as e:
            raise SummarizationError(f"Summarize request failed: {e}") from e

        content = (response.content or "").strip()
        if not content:
            raise SummarizationError("Summarize request returned no content")
        return content

    async def summarize(self, transcript: str, user_prompt: str = "") -> SummaryResult:
        """Summarize a transcript into one note."""
        logger.debug("Summarizing transcript (%d chars)", len(transcript))
        content = await self._complete(
            self.get_system_prompt(), self.get_user_prompt(transcript, user_prompt)
        )
        data = self.parse_llm_response(content)
        if data is None:
            logger.warning("Summary was not JSON; keeping raw text")
            return self.get_fallback_summary(content)
        return self._summary_from_dict(data, SummaryResult)

    async def summarize_multi(
        self, transcript: str, user_prompt: str = ""
    ) -> MultiTopicSummary:
        """Summarize a transcript into a primary topic plus up to two secondary ones."""
        logger.debug("Summarizing multi-topic transcript (%d chars)", len(transcript))
        content = await self._complete(
            self.get_multi_topic_system_prompt(), self.get_user_prompt(transcript, user_prompt)
        )
        data = self.parse_llm_response(content)
        if data is None:
            logger.warning("Multi-topic summary was not JSON; keeping raw text")
            fallback = self.get_fallback_summary(content)
            return MultiTopicSummary(
                full_summary=content,
                topics=[SubTopicSummary(
                    summary=fallback.summary,
                    canonical_name=fallback.canonical_name,
                    prominence=100,
                    is_primary=True,
                )],
            )

        raw_topics = data.get("topics")
        if not isinstance(raw_topics, list) or not raw_topics:
            # a single-topic shaped answer is still usable
            raw_topics = [data]

        topics = [
            self._summary_from_dict(item, SubTopicSummary)
            for item in raw_topics[:MAX_TOPICS]
            if isinstance(item, dict)
        ]
        if not topics:
            raise SummarizationError("Multi-topic summary contained no topics")

        prominences = [self._prominence(item) for item in raw_topics[:MAX_TOPICS] if isinstance(item, dict)]
        for topic, prominence in zip(topics, self.normalize_prominence(prominences)):
            topic.prominence = prominence
        topics[0].is_primary = True

        full_summary = str(data.get("full_summary") or "").strip() or topics[0].summary
        return MultiTopicSummary(full_summary=full_summary, topics=topics)

    def parse_llm_response(self, response_text: str) -> Optional[Dict[str, Any]]:
        """Extract the JSON object from LLM output; None when there is none."""
        json_start = response_text.find('{')
        json_end = response_text.rfind('}') + 1
        if json_start == -1 or json_end <= json_start:
            return None
        try:
            result = json.loads(response_text[json_start:json_end])
        except json.JSONDecodeError:
            return None
        return result if isinstance(result, dict) else None

    def _summary_from_dict(self, data: Dict[str, Any], cls):
        summary = str(data.get("summary") or "").strip()
        canonical = str(data.get("canonical_name") or "").strip()
        if not summary or not canonical:
            raise SummarizationError(
                "Summary JSON is missing summary or canonical_name",
                {"keys": sorted(data.keys())},
            )
        return cls(
            summary=summary,
            canonical_name=canonical,
            keywords=_string_list(data.get("keywords")),
            subjects=_string_list(data.get("subjects")),
        )

    @staticmethod
    def _prominence(item: Dict[str, Any]) -> float:
        try:
            return max(0.0, float(item.get("prominence", 0)))
        except (TypeError, ValueError):
            return 0.0

    @staticmethod
    def normalize_prominence(values: List[float]) -> List[int]:
        """Scale prominences to integers summing to 100; the first absorbs rounding."""
        if not values:
            return []
        total = sum(values)
        if total <= 0:
            values = [1.0] * len(values)
            total = float(len(values))
        scaled = [int(round(v * 100 / total)) for v in values]
        scaled[0] += 100 - sum(scaled)
        return scaled

    def get_fallback_summary(self, text: str) -> SummaryResult:
        """Wrap non-JSON model output as a note with a generic name."""
        return SummaryResult(
            summary=text,
            canonical_name=FALLBACK_CANONICAL_NAME,
            keywords=[],
            subjects=[],
        )
