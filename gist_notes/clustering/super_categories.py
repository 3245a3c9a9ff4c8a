"""
Super categories: broad buckets ("technology", "politics", ...) above topics.
"""

import hashlib
from typing import Optional, Sequence

from ..logging_config import get_logger
from .models import SuperCategory
from .text_processing import normalize_tag_name, resolve_by_name
from .topic_store import TopicStore, new_id

logger = get_logger("super_categories")

GENERAL = "general"

# keyword found in a topic name -> super category
KEYWORD_SUGGESTIONS = {
    "politics": "politics",
    "war": "politics",
    "conflict": "politics",
    "election": "politics",
    "government": "politics",
    "policy": "politics",
    "technology": "technology",
    "software": "technology",
    "ai": "technology",
    "programming": "technology",
    "computer": "technology",
    "digital": "technology",
    "science": "science",
    "research": "science",
    "study": "science",
    "biology": "science",
    "physics": "science",
    "chemistry": "science",
    "business": "business",
    "finance": "business",
    "economy": "business",
    "market": "business",
    "investment": "business",
    "startup": "business",
    "health": "health",
    "medicine": "health",
    "medical": "health",
    "fitness": "health",
    "wellness": "health",
    "education": "education",
    "learning": "education",
    "teaching": "education",
    "school": "education",
    "university": "education",
}

PALETTE = [
    "#3B82F6", "#EF4444", "#10B981", "#F59E0B", "#8B5CF6", "#06B6D4",
    "#84CC16", "#F97316", "#EC4899", "#6366F1", "#14B8A6", "#EAB308",
]


def suggest_super_category(topic_name: str) -> str:
    """Map a topic name to a broad category by whole-word keyword lookup."""
    words = normalize_tag_name(topic_name).split(" ")
    for keyword, category in KEYWORD_SUGGESTIONS.items():
        if keyword in words:
            return category
    return GENERAL


def color_for(name: str) -> str:
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return PALETTE[digest[0] % len(PALETTE)]


def _subject_name(subject: str) -> str:
    # "World & Politics: Geopolitics, current affairs" -> "World & Politics"
    return subject.split(":", 1)[0].strip()


def assign_super_category(
    store: TopicStore,
    topic_id: str,
    subjects: Sequence[str] = (),
) -> Optional[str]:
    """Link a topic to a super category, creating one if needed.

    The primary subject wins; without subjects the topic name is mapped
    through ``suggest_super_category``. A topic that already has a super
    category keeps it.
    """
    topic = store.get_topic(topic_id)
    if topic.super_category_id and topic.super_category_id in store.super_categories:
        return topic.super_category_id

    candidates = [_subject_name(s) for s in subjects if s and _subject_name(s)]
    raw_name = candidates[0] if candidates else suggest_super_category(topic.name)
    name = normalize_tag_name(raw_name) or GENERAL

    category_id = resolve_by_name(raw_name, store.super_categories.values())
    if category_id is None:
        category = SuperCategory(
            id=new_id("super"),
            name=name,
            display_tag=raw_name.strip(),
            color=color_for(name),
        )
        store.super_categories[category.id] = category
        logger.info("Created super category %s (%r)", category.id, name)
    else:
        category = store.super_categories[category_id]
        cand_norm = normalize_tag_name(raw_name)
        if cand_norm != category.name and not any(
            normalize_tag_name(a) == cand_norm for a in category.aliases
        ):
            category.aliases.append(raw_name)

    if topic_id not in category.topic_ids:
        category.topic_ids.append(topic_id)
    topic.super_category_id = category.id
    return category.id


def detach_topic(store: TopicStore, topic_id: str) -> None:
    """Drop a topic from its super category (used when a topic empties)."""
    topic = store.get_topic(topic_id)
    category = store.super_categories.get(topic.super_category_id or "")
    if category is not None and topic_id in category.topic_ids:
        category.topic_ids.remove(topic_id)
    topic.super_category_id = None
