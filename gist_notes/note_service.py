"""
Note service: the single writer that turns transcripts into clustered notes.

Every ingestion runs in two phases. The network phase (summarize, embed)
touches no shared state, so a failure there leaves the store untouched.
The mutation phase runs under one ``asyncio.Lock`` and ends by persisting
the whole store, so concurrent ingestions see each other's topics.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .clustering.assignment import FALLBACK_TOPIC_NAME, AssignmentEngine, RenameOutcome
from .clustering.embedding_client import EmbeddingProvider
from .clustering.models import NoteSummary, SuperCategory, Topic
from .clustering.super_categories import assign_super_category, detach_topic
from .clustering.text_processing import label_embedding_text, normalize_tag_name
from .clustering.topic_store import new_id
from .config import Config, get_config
from .logging_config import get_logger
from .models import IngestResult, SummaryResult
from .storage import StoreRepository
from .summarizer import SummarizationService

logger = get_logger("note_service")


@dataclass
class _PreparedNote:
    """A summarized and embedded note waiting for the mutation phase"""
    note: NoteSummary
    label_embedding: List[float]


class NoteService:
    """Ingests, renames and moves notes; owns the store for its lifetime."""

    def __init__(
        self,
        summarizer: SummarizationService,
        embedder: EmbeddingProvider,
        repository: StoreRepository,
        config: Optional[Config] = None,
    ):
        self.summarizer = summarizer
        self.embedder = embedder
        self.repository = repository
        self.config = config or get_config()
        self.store = repository.load()
        self.engine = AssignmentEngine(self.store, self.config.clustering)
        self._lock = asyncio.Lock()

    # --- read accessors (copies; safe to hold across mutations) ---

    @property
    def topics(self) -> Dict[str, Topic]:
        return {k: v.model_copy(deep=True) for k, v in self.store.topics.items()}

    @property
    def notes(self) -> Dict[str, NoteSummary]:
        return {k: v.model_copy(deep=True) for k, v in self.store.notes.items()}

    @property
    def super_categories(self) -> Dict[str, SuperCategory]:
        return {k: v.model_copy(deep=True) for k, v in self.store.super_categories.items()}

    def notes_for_topic(self, topic_id: str) -> List[NoteSummary]:
        topic = self.store.get_topic(topic_id)
        return [
            self.store.notes[nid].model_copy(deep=True)
            for nid in topic.summary_ids
            if nid in self.store.notes
        ]

    def orphan_notes(self) -> List[NoteSummary]:
        return [note.model_copy(deep=True) for note in self.store.orphan_notes()]

    # --- network phase ---

    async def _embed(self, text: str) -> List[float]:
        vector = await self.embedder.embed(text)
        return np.asarray(vector, dtype=np.float64).tolist()

    async def _embed_label(self, name: str) -> List[float]:
        return await self._embed(label_embedding_text(normalize_tag_name(name) or FALLBACK_TOPIC_NAME))

    async def _prepare(self, result: SummaryResult, transcript: str, **fields) -> _PreparedNote:
        embedding, label_embedding = await asyncio.gather(
            self._embed(result.summary),
            self._embed_label(result.canonical_name),
        )
        note = NoteSummary(
            id=new_id("note"),
            transcript=transcript,
            summary=result.summary,
            embedding=embedding,
            canonical_suggested=result.canonical_name,
            keywords=list(result.keywords),
            subjects=list(result.subjects),
            **fields,
        )
        return _PreparedNote(note, label_embedding)

    # --- mutations ---

    async def ingest(
        self,
        transcript: str,
        user_prompt: str = "",
        multi_topic: bool = False,
        video_id: Optional[str] = None,
        original_url: Optional[str] = None,
        video_title: Optional[str] = None,
    ) -> IngestResult:
        """Summarize, embed and file a transcript as one note (or up to three).

        Raises:
            ValueError: the transcript is empty.
            SummarizationError, EmbeddingError: nothing was changed.
        """
        if not transcript or not transcript.strip():
            raise ValueError("Transcript is empty")

        source = {"video_id": video_id, "original_url": original_url, "video_title": video_title}

        if multi_topic:
            multi = await self.summarizer.summarize_multi(transcript, user_prompt)
            group_id = new_id("video")
            prepared = await asyncio.gather(*[
                self._prepare(
                    topic,
                    transcript,
                    full_summary=multi.full_summary if topic.is_primary else None,
                    prominence=topic.prominence,
                    video_group_id=group_id,
                    is_primary=topic.is_primary,
                    **source,
                )
                for topic in multi.topics
            ])
        else:
            result = await self.summarizer.summarize(transcript, user_prompt)
            prepared = [await self._prepare(result, transcript, **source)]

        async with self._lock:
            outcome = IngestResult()
            for item in prepared:
                decision = self.engine.assign(item.note, item.label_embedding)
                if decision.topic_id is not None:
                    assign_super_category(self.store, decision.topic_id, item.note.subjects)
                outcome.note_ids.append(item.note.id)
                outcome.topic_ids.append(decision.topic_id)
                outcome.evicted_note_ids.extend(decision.evicted_note_ids)
            self.repository.save(self.store)

        logger.info(
            "Ingested %d note(s) into topics %s", len(outcome.note_ids), outcome.topic_ids
        )
        return outcome

    def _release_if_empty(self, topic_id: str) -> None:
        topic = self.store.topics.get(topic_id)
        if topic is not None and not topic.summary_ids and topic.super_category_id:
            detach_topic(self.store, topic_id)

    async def rename_topic(
        self, topic_id: str, new_name: str, note_id: Optional[str] = None
    ) -> RenameOutcome:
        """Rename a topic, or split/move the edited note out of a larger one."""
        self.store.get_topic(topic_id)
        label_embedding = await self._embed_label(new_name)

        async with self._lock:
            outcome = self.engine.rename_topic(topic_id, new_name, label_embedding, note_id)
            if outcome.action == "split":
                note = self.store.get_note(note_id)
                assign_super_category(self.store, outcome.topic_id, note.subjects)
            if outcome.action in ("split", "moved"):
                self._release_if_empty(outcome.source_topic_id)
            self.repository.save(self.store)
        return outcome

    async def update_display_tag(self, topic_id: str, tag: Optional[str]) -> Topic:
        async with self._lock:
            topic = self.store.update_display_tag(topic_id, tag)
            self.repository.save(self.store)
            return topic.model_copy(deep=True)

    async def reassign_note(self, note_id: str, target_topic_id: str) -> List[str]:
        """Move a note to another topic. Returns ids evicted by the hard cap."""
        async with self._lock:
            source_id = self.store.get_note(note_id).topic_id
            evicted = self.engine.reassign_note(note_id, target_topic_id)
            if source_id is not None:
                self._release_if_empty(source_id)
            self.repository.save(self.store)
        return evicted

    async def clear_all(self) -> None:
        async with self._lock:
            self.store.clear()
            self.repository.clear()
        logger.info("Cleared all topics, notes and super categories")
