"""
Assignment engine: routes new notes to existing or new topics.

A note is matched lexically first (name/alias/token overlap), then by a
fused similarity score that blends content similarity with label
similarity, and otherwise seeds a new topic. Large topics require a higher
score to grow (soft cap) and shed their least representative member once
they exceed the hard cap.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..config import (
    DEFAULT_HARD_CAP_SIZE,
    DEFAULT_LABEL_WEIGHT,
    DEFAULT_LEXICAL_THRESHOLD,
    DEFAULT_NOTE_WEIGHT,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_SOFT_CAP_SIZE,
    DEFAULT_SOFT_CAP_THRESHOLD,
    ClusteringConfig,
)
from ..logging_config import get_logger
from .models import NoteSummary, Topic
from .text_processing import normalize_tag_name, resolve_by_name
from .topic_store import TopicStore
from .vector_math import Vector, cosine_similarity, label_prototype, topic_prototype

logger = get_logger("assignment")

__all__ = [
    "DEFAULT_HARD_CAP_SIZE",
    "DEFAULT_LABEL_WEIGHT",
    "DEFAULT_LEXICAL_THRESHOLD",
    "DEFAULT_NOTE_WEIGHT",
    "DEFAULT_SIMILARITY_THRESHOLD",
    "DEFAULT_SOFT_CAP_SIZE",
    "DEFAULT_SOFT_CAP_THRESHOLD",
    "FALLBACK_TOPIC_NAME",
    "AssignmentDecision",
    "AssignmentEngine",
    "RenameOutcome",
]

FALLBACK_TOPIC_NAME = "general"

TIER_LEXICAL = "lexical"
TIER_SIMILARITY = "similarity"
TIER_NEW = "new"


@dataclass
class AssignmentDecision:
    """Where a note ended up and why.

    ``topic_id`` is None when the hard cap evicted the note itself.
    """
    topic_id: Optional[str]
    tier: str
    score: float = 0.0
    created: bool = False
    alias_added: bool = False
    evicted_note_ids: List[str] = field(default_factory=list)


@dataclass
class RenameOutcome:
    """Result of a rename: in place, a split, or a move into an existing topic."""
    action: str  # 'renamed', 'split', 'moved' or 'unchanged'
    topic_id: str
    source_topic_id: str
    evicted_note_ids: List[str] = field(default_factory=list)


class AssignmentEngine:
    """Clustering policy over a ``TopicStore``."""

    def __init__(self, store: TopicStore, config: Optional[ClusteringConfig] = None):
        self.store = store
        self.config = config or ClusteringConfig()

    def _candidates(self) -> List[Topic]:
        # Empty topics (left behind by splits) no longer take part in matching
        return [topic for topic in self.store.topics.values() if topic.summary_ids]

    def fused_score(
        self, topic: Topic, note_embedding: Vector, label_embedding: Vector
    ) -> float:
        s_note = cosine_similarity(note_embedding, topic_prototype(topic))
        s_label = cosine_similarity(label_embedding, label_prototype(topic))
        return self.config.note_weight * s_note + self.config.label_weight * s_label

    def score_topics(
        self, note_embedding: Vector, label_embedding: Vector
    ) -> tuple[Optional[str], float]:
        """Best fused score over all topics; the first topic wins ties."""
        best_id: Optional[str] = None
        best_score = 0.0
        for topic in self._candidates():
            score = self.fused_score(topic, note_embedding, label_embedding)
            logger.debug("score topic=%s name=%r fused=%.4f", topic.id, topic.name, score)
            if score > best_score:
                best_score = score
                best_id = topic.id
        return best_id, best_score

    def threshold_for(self, topic: Topic) -> float:
        """Admission threshold, raised once a topic reaches the soft cap."""
        if topic.size >= self.config.soft_cap_size:
            return self.config.soft_cap_threshold
        return self.config.similarity_threshold

    def choose_topic(
        self,
        canonical_name: str,
        note_embedding: Vector,
        label_embedding: Vector,
    ) -> tuple[Optional[str], str, float]:
        """Pick a destination without mutating anything.

        Returns ``(topic_id, tier, score)``; ``topic_id`` is None when a new
        topic should be created.
        """
        best_id, best_score = self.score_topics(note_embedding, label_embedding)

        lexical_id = resolve_by_name(
            canonical_name, self._candidates(), self.config.lexical_threshold
        )
        if lexical_id is not None:
            lexical_topic = self.store.get_topic(lexical_id)
            return (
                lexical_id,
                TIER_LEXICAL,
                self.fused_score(lexical_topic, note_embedding, label_embedding),
            )

        if best_id is not None:
            threshold = self.threshold_for(self.store.get_topic(best_id))
            if best_score >= threshold:
                return best_id, TIER_SIMILARITY, best_score
            logger.debug(
                "best topic %s scored %.4f below threshold %.2f", best_id, best_score, threshold
            )

        return None, TIER_NEW, best_score

    def assign(self, note: NoteSummary, label_embedding: Vector) -> AssignmentDecision:
        """Register ``note`` and attach it to its topic.

        ``label_embedding`` is the embedding of the label text built from the
        note's normalized canonical name; it also seeds a new topic.
        """
        canonical = note.canonical_suggested
        if not normalize_tag_name(canonical):
            canonical = FALLBACK_TOPIC_NAME
        topic_id, tier, score = self.choose_topic(canonical, note.embedding, label_embedding)

        self.store.add_note(note)

        created = False
        alias_added = False
        if topic_id is None:
            name = normalize_tag_name(canonical) or FALLBACK_TOPIC_NAME
            topic_id = self.store.create_topic(name, note.embedding, label_embedding).id
            created = True
        else:
            topic = self.store.get_topic(topic_id)
            if normalize_tag_name(canonical) != normalize_tag_name(topic.name):
                alias_added = self.store.add_alias(topic_id, canonical)

        self.store.attach_note(topic_id, note.id)
        evicted = self.enforce_hard_cap(topic_id)

        logger.info(
            "Note %s -> topic %s via %s (score=%.4f%s)",
            note.id, topic_id, tier, score, f", evicted {evicted}" if evicted else "",
        )
        return AssignmentDecision(
            topic_id=note.topic_id,
            tier=tier,
            score=score,
            created=created,
            alias_added=alias_added,
            evicted_note_ids=evicted,
        )

    def enforce_hard_cap(self, topic_id: str) -> List[str]:
        """Evict outliers until the topic is within the hard cap."""
        evicted = []
        topic = self.store.get_topic(topic_id)
        while topic.size > self.config.hard_cap_size:
            note_id = self.store.evict_outlier(topic_id)
            if note_id is None:
                break
            evicted.append(note_id)
        return evicted

    def move_note(self, note_id: str, target_topic_id: str) -> List[str]:
        """Detach a note from its topic, attach it to another, apply the hard cap."""
        note = self.store.get_note(note_id)
        self.store.get_topic(target_topic_id)
        if note.topic_id == target_topic_id:
            return []
        source_id = note.topic_id
        if source_id is not None and source_id in self.store.topics:
            if note_id in self.store.topics[source_id].summary_ids:
                self.store.detach_note(source_id, note_id)
        self.store.attach_note(target_topic_id, note_id)
        logger.info("Moved note %s: %s -> %s", note_id, source_id, target_topic_id)
        return self.enforce_hard_cap(target_topic_id)

    def reassign_note(self, note_id: str, target_topic_id: str) -> List[str]:
        return self.move_note(note_id, target_topic_id)

    def rename_topic(
        self,
        topic_id: str,
        new_name: str,
        label_embedding: Optional[Vector] = None,
        note_id: Optional[str] = None,
    ) -> RenameOutcome:
        """Apply a user rename without relabelling unrelated members.

        A topic with a single member is renamed in place. For a larger topic
        only the edited note (``note_id``) changes hands: it moves into the
        topic already carrying the new name, or splits off into a new topic.
        """
        topic = self.store.get_topic(topic_id)
        target = normalize_tag_name(new_name)
        if not target:
            raise ValueError(f"Topic name normalizes to nothing: {new_name!r}")

        if topic.size <= 1:
            if target == topic.name:
                if label_embedding is not None and len(label_embedding):
                    topic.label_embedding = list(label_embedding)
                return RenameOutcome("unchanged", topic_id, topic_id)
            self.store.rename_in_place(
                topic_id,
                target,
                label_embedding,
                keep_old_as_alias=self._should_alias_old_name(topic, target),
            )
            return RenameOutcome("renamed", topic_id, topic_id)

        if note_id is None:
            raise ValueError(
                f"Topic {topic_id} has {topic.size} notes; name the note being renamed"
            )
        if note_id not in topic.summary_ids:
            raise ValueError(f"Note {note_id} is not a member of topic {topic_id}")
        if target == topic.name:
            return RenameOutcome("unchanged", topic_id, topic_id)

        existing = self.store.topics_by_normalized_name(target, exclude=topic_id)
        if existing:
            target_id = existing[0]
            evicted = self.move_note(note_id, target_id)
            return RenameOutcome("moved", target_id, topic_id, evicted)

        note = self.store.get_note(note_id)
        self.store.detach_note(topic_id, note_id)
        new_topic = self.store.create_topic(target, note.embedding, label_embedding)
        self.store.attach_note(new_topic.id, note_id)
        logger.info("Split note %s from topic %s into %s", note_id, topic_id, new_topic.id)
        return RenameOutcome("split", new_topic.id, topic_id)

    def _should_alias_old_name(self, topic: Topic, target: str) -> bool:
        # Only a never-edited name is worth remembering, and only when it
        # would not point at (or collide with) a different topic.
        if not topic.summary_ids:
            return False
        note = self.store.notes.get(topic.summary_ids[0])
        if note is None or normalize_tag_name(note.canonical_suggested) != topic.name:
            return False
        if self.store.topics_by_normalized_name(topic.name, exclude=topic.id):
            return False
        if self.store.topics_by_normalized_name(target, exclude=topic.id):
            return False
        return True
