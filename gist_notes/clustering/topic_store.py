"""
In-memory topic/note state with centroid bookkeeping.
"""

import uuid
from typing import Dict, List, Optional

from ..logging_config import get_logger
from .models import NoteSummary, SuperCategory, Topic
from .text_processing import normalize_tag_name
from .vector_math import Vector, average_vectors, cosine_similarity

logger = get_logger("topic_store")


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class TopicStore:
    """Owns the Topic, Note and SuperCategory maps.

    Maps iterate in insertion order, which is the order used for
    tie-breaking during assignment. The store does no locking; callers
    serialize mutations (see ``NoteService``).
    """

    def __init__(
        self,
        topics: Optional[Dict[str, Topic]] = None,
        notes: Optional[Dict[str, NoteSummary]] = None,
        super_categories: Optional[Dict[str, SuperCategory]] = None,
    ):
        self._topics: Dict[str, Topic] = dict(topics or {})
        self._notes: Dict[str, NoteSummary] = dict(notes or {})
        self._super_categories: Dict[str, SuperCategory] = dict(super_categories or {})

    @property
    def topics(self) -> Dict[str, Topic]:
        return self._topics

    @property
    def notes(self) -> Dict[str, NoteSummary]:
        return self._notes

    @property
    def super_categories(self) -> Dict[str, SuperCategory]:
        return self._super_categories

    def get_topic(self, topic_id: str) -> Topic:
        try:
            return self._topics[topic_id]
        except KeyError:
            raise KeyError(f"Topic not found: {topic_id}") from None

    def get_note(self, note_id: str) -> NoteSummary:
        try:
            return self._notes[note_id]
        except KeyError:
            raise KeyError(f"Note not found: {note_id}") from None

    def create_topic(
        self,
        name: str,
        seed_embedding: Vector,
        label_embedding: Optional[Vector] = None,
    ) -> Topic:
        """Create an empty topic whose centroid is seeded from a note and its label."""
        label = list(label_embedding) if label_embedding is not None and len(label_embedding) else None
        seed = average_vectors([seed_embedding, label]) if label else list(seed_embedding)
        topic = Topic(
            id=new_id("topic"),
            name=normalize_tag_name(name),
            embedding=seed,
            label_embedding=label,
        )
        self._topics[topic.id] = topic
        logger.info("Created topic %s (%r)", topic.id, topic.name)
        return topic

    def add_note(self, note: NoteSummary) -> NoteSummary:
        """Register a note. Membership is established by ``attach_note``."""
        if note.id in self._notes:
            raise ValueError(f"Note already exists: {note.id}")
        note.topic_id = None
        self._notes[note.id] = note
        return note

    def member_embeddings(self, topic: Topic) -> List[List[float]]:
        """Embeddings of the topic's members, read from the note map."""
        vectors = []
        for note_id in topic.summary_ids:
            note = self._notes.get(note_id)
            if note is None or not note.embedding:
                logger.warning("Topic %s references missing note %s", topic.id, note_id)
                continue
            vectors.append(note.embedding)
        return vectors

    def recompute_centroid(self, topic_id: str) -> None:
        """Set the centroid to the mean of the member embeddings.

        An empty topic keeps its last centroid; nothing can reach it through
        its members any more.
        """
        topic = self.get_topic(topic_id)
        vectors = self.member_embeddings(topic)
        if vectors:
            topic.embedding = average_vectors(vectors)

    def attach_note(self, topic_id: str, note_id: str) -> Topic:
        topic = self.get_topic(topic_id)
        note = self.get_note(note_id)
        if note.topic_id and note.topic_id != topic_id:
            current = self._topics.get(note.topic_id)
            if current is not None and note_id in current.summary_ids:
                raise ValueError(
                    f"Note {note_id} still belongs to topic {note.topic_id}; detach it first"
                )
        if note_id not in topic.summary_ids:
            topic.summary_ids.append(note_id)
        note.topic_id = topic_id
        self.recompute_centroid(topic_id)
        logger.debug("Attached note %s to topic %s (size=%d)", note_id, topic_id, topic.size)
        return topic

    def detach_note(self, topic_id: str, note_id: str) -> Topic:
        topic = self.get_topic(topic_id)
        note = self.get_note(note_id)
        if note_id not in topic.summary_ids:
            raise ValueError(f"Note {note_id} is not a member of topic {topic_id}")
        topic.summary_ids.remove(note_id)
        if note.topic_id == topic_id:
            note.topic_id = None
        self.recompute_centroid(topic_id)
        logger.debug("Detached note %s from topic %s (size=%d)", note_id, topic_id, topic.size)
        return topic

    def add_alias(self, topic_id: str, candidate_name: str) -> bool:
        """Remember an alternative surface name. Returns True if it was added."""
        topic = self.get_topic(topic_id)
        cand_norm = normalize_tag_name(candidate_name)
        if not cand_norm or cand_norm == normalize_tag_name(topic.name):
            return False
        if any(normalize_tag_name(alias) == cand_norm for alias in topic.aliases):
            return False
        topic.aliases.append(candidate_name)
        logger.debug("Topic %s gained alias %r", topic_id, candidate_name)
        return True

    def rename_in_place(
        self,
        topic_id: str,
        new_name: str,
        label_embedding: Optional[Vector] = None,
        keep_old_as_alias: bool = False,
    ) -> Topic:
        topic = self.get_topic(topic_id)
        old_name = topic.name
        topic.name = normalize_tag_name(new_name)
        if keep_old_as_alias:
            self.add_alias(topic_id, old_name)
        if label_embedding is not None and len(label_embedding):
            topic.label_embedding = list(label_embedding)
        logger.info("Renamed topic %s: %r -> %r", topic_id, old_name, topic.name)
        return topic

    def update_display_tag(self, topic_id: str, tag: Optional[str]) -> Topic:
        topic = self.get_topic(topic_id)
        tag = (tag or "").strip()
        topic.display_tag = tag or None
        return topic

    def topics_by_normalized_name(
        self, name: str, exclude: Optional[str] = None
    ) -> List[str]:
        norm = normalize_tag_name(name)
        return [
            topic.id
            for topic in self._topics.values()
            if topic.id != exclude and normalize_tag_name(topic.name) == norm
        ]

    def find_outlier(self, topic_id: str) -> Optional[str]:
        """Member least similar to the centroid; the earliest member wins ties."""
        topic = self.get_topic(topic_id)
        worst_id: Optional[str] = None
        worst = float("inf")
        for note_id in topic.summary_ids:
            note = self._notes.get(note_id)
            if note is None:
                continue
            sim = cosine_similarity(note.embedding, topic.embedding)
            if sim < worst:
                worst = sim
                worst_id = note_id
        return worst_id

    def evict_outlier(self, topic_id: str) -> Optional[str]:
        """Detach the least representative member and clear its topic."""
        outlier = self.find_outlier(topic_id)
        if outlier is None:
            return None
        self.detach_note(topic_id, outlier)
        logger.info("Evicted note %s from topic %s", outlier, topic_id)
        return outlier

    def orphan_notes(self) -> List[NoteSummary]:
        """Notes without a topic (evicted by the hard cap)."""
        return [note for note in self._notes.values() if note.topic_id is None]

    def snapshot(self) -> dict:
        """Deep copy of the three maps for readers outside the writer."""
        return {
            "topics": {k: v.model_copy(deep=True) for k, v in self._topics.items()},
            "notes": {k: v.model_copy(deep=True) for k, v in self._notes.items()},
            "super_categories": {
                k: v.model_copy(deep=True) for k, v in self._super_categories.items()
            },
        }

    def reconcile(self) -> int:
        """Repair membership after the maps were loaded independently.

        Topics drop member ids with no note (or already claimed by an
        earlier topic); notes follow the topic that lists them and are left
        unfiled otherwise. Returns the number of repairs made.
        """
        repairs = 0
        claimed: Dict[str, str] = {}
        for topic in self._topics.values():
            kept = []
            for note_id in topic.summary_ids:
                if note_id not in self._notes or note_id in claimed:
                    logger.warning("Dropping member %s from topic %s", note_id, topic.id)
                    continue
                claimed[note_id] = topic.id
                kept.append(note_id)
            if len(kept) != len(topic.summary_ids):
                topic.summary_ids = kept
                self.recompute_centroid(topic.id)
                repairs += 1

        for note in self._notes.values():
            owner = claimed.get(note.id)
            if note.topic_id != owner:
                logger.warning(
                    "Note %s pointed at topic %s; now %s", note.id, note.topic_id, owner
                )
                note.topic_id = owner
                repairs += 1
        return repairs

    def clear(self) -> None:
        self._topics.clear()
        self._notes.clear()
        self._super_categories.clear()

    def check_invariants(self, tolerance: float = 1e-9) -> List[str]:
        """Return human-readable violations of the membership/centroid invariants."""
        problems = []
        members: Dict[str, str] = {}
        for topic in self._topics.values():
            if topic.name != normalize_tag_name(topic.name):
                problems.append(f"topic {topic.id} name {topic.name!r} is not normalized")
            if len(set(topic.summary_ids)) != len(topic.summary_ids):
                problems.append(f"topic {topic.id} lists a note twice")
            for note_id in topic.summary_ids:
                if note_id in members:
                    problems.append(
                        f"note {note_id} listed by {members[note_id]} and {topic.id}"
                    )
                members[note_id] = topic.id
                note = self._notes.get(note_id)
                if note is None:
                    problems.append(f"topic {topic.id} lists unknown note {note_id}")
                elif note.topic_id != topic.id:
                    problems.append(
                        f"note {note_id} points at {note.topic_id}, listed by {topic.id}"
                    )
            vectors = self.member_embeddings(topic)
            if vectors:
                expected = average_vectors(vectors)
                if len(expected) != len(topic.embedding) or max(
                    abs(x - y) for x, y in zip(expected, topic.embedding)
                ) > tolerance:
                    problems.append(f"topic {topic.id} centroid drifted")
        for note in self._notes.values():
            if note.topic_id is not None and members.get(note.id) != note.topic_id:
                problems.append(f"note {note.id} dangles on topic {note.topic_id}")
        return problems
