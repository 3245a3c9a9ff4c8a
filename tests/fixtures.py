"""
Shared test fixtures for clustering, summarization and service tests
"""

import hashlib
from typing import Dict, List, Optional, Sequence

import numpy as np

from gist_notes.clustering.models import NoteSummary
from gist_notes.clustering.topic_store import TopicStore
from gist_notes.errors import EmbeddingError
from gist_notes.llm.base import LLMProvider, LLMResponse
from gist_notes.models import MultiTopicSummary, SubTopicSummary, SummaryResult


class FakeEmbeddingClient:
    """Returns deterministic embeddings for testing.

    ``cluster_map`` maps text substrings to fixed vectors; the first key
    found in the text wins. Other text gets a hash-based unit vector.
    """

    def __init__(
        self,
        cluster_map: Optional[Dict[str, Sequence[float]]] = None,
        dim: int = 4,
        fail_on: Optional[str] = None,
    ):
        self.cluster_map = cluster_map or {}
        self.dim = dim
        self.fail_on = fail_on
        self.calls: List[str] = []

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise EmbeddingError(f"embedding failed for {text[:20]!r}")
        for key, vec in self.cluster_map.items():
            if key in text:
                return np.array(vec, dtype=np.float64)
        h = hashlib.sha256(text.encode()).hexdigest()
        vec = np.array(
            [int(h[i:i + 2], 16) / 255.0 for i in range(0, self.dim * 2, 2)],
            dtype=np.float64,
        )
        return vec / (np.linalg.norm(vec) + 1e-10)


class FakeSummarizer:
    """Summarizer stand-in returning canned results keyed by transcript."""

    def __init__(
        self,
        results: Optional[Dict[str, SummaryResult]] = None,
        multi_results: Optional[Dict[str, MultiTopicSummary]] = None,
        error: Optional[Exception] = None,
    ):
        self.results = results or {}
        self.multi_results = multi_results or {}
        self.error = error
        self.calls: List[str] = []

    async def summarize(self, transcript: str, user_prompt: str = "") -> SummaryResult:
        self.calls.append(transcript)
        if self.error is not None:
            raise self.error
        return self.results[transcript]

    async def summarize_multi(self, transcript: str, user_prompt: str = "") -> MultiTopicSummary:
        self.calls.append(transcript)
        if self.error is not None:
            raise self.error
        return self.multi_results[transcript]


class FakeLLMProvider(LLMProvider):
    """LLM provider returning a fixed completion (or raising)."""

    def __init__(self, content: str = "", error: Optional[Exception] = None):
        super().__init__(api_key="test_key", model="test-model")
        self.content = content
        self.error = error
        self.prompts: List[Dict] = []

    async def generate(self, prompt, system=None, json_mode=False, **kwargs) -> LLMResponse:
        self.prompts.append({"prompt": prompt, "system": system, "json_mode": json_mode, **kwargs})
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model=self.model)


def create_summary_result(
    canonical_name: str = "Climate Change",
    summary: str = "A note about climate change.",
    keywords: Optional[List[str]] = None,
    subjects: Optional[List[str]] = None,
) -> SummaryResult:
    """Create a summary result"""
    return SummaryResult(
        summary=summary,
        canonical_name=canonical_name,
        keywords=keywords if keywords is not None else ["warming", "emissions"],
        subjects=subjects if subjects is not None else ["Science & Environment"],
    )


def create_multi_summary(
    topics: List[tuple],
    full_summary: str = "A video covering several subjects.",
) -> MultiTopicSummary:
    """Create a multi-topic summary from ``(canonical_name, summary, prominence)`` tuples"""
    subs = [
        SubTopicSummary(
            summary=summary,
            canonical_name=name,
            keywords=[],
            subjects=[],
            prominence=prominence,
            is_primary=(i == 0),
        )
        for i, (name, summary, prominence) in enumerate(topics)
    ]
    return MultiTopicSummary(full_summary=full_summary, topics=subs)


def make_note(
    note_id: str,
    embedding: Sequence[float],
    canonical: str = "",
    summary: Optional[str] = None,
    subjects: Optional[List[str]] = None,
) -> NoteSummary:
    """Create a bare note with a fixed id and embedding"""
    return NoteSummary(
        id=note_id,
        summary=summary or f"summary of {note_id}",
        embedding=list(embedding),
        canonical_suggested=canonical,
        subjects=subjects or [],
    )


def build_topic(
    store: TopicStore,
    name: str,
    embeddings: Sequence[Sequence[float]],
    label_embedding: Optional[Sequence[float]] = None,
    prefix: Optional[str] = None,
) -> str:
    """Create a topic holding one note per embedding; returns the topic id"""
    prefix = prefix or name.replace(" ", "_")
    topic = store.create_topic(name, embeddings[0], label_embedding)
    for i, emb in enumerate(embeddings):
        note = make_note(f"{prefix}_{i}", emb, canonical=name)
        store.add_note(note)
        store.attach_note(topic.id, note.id)
    return topic.id
