"""
Pydantic models for persisted topics, notes and super categories
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

SCHEMA_VERSION = 2


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Topic(BaseModel):
    """A cluster of semantically related notes."""

    id: str
    name: str
    display_tag: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)
    embedding: List[float] = Field(default_factory=list)
    label_embedding: Optional[List[float]] = None
    summary_ids: List[str] = Field(default_factory=list)
    super_category_id: Optional[str] = None
    schema_version: int = SCHEMA_VERSION

    @property
    def size(self) -> int:
        return len(self.summary_ids)

    @property
    def label(self) -> str:
        """Name shown to users: the display tag when set, else the canonical name."""
        return self.display_tag or self.name


class NoteSummary(BaseModel):
    """One ingested and summarized unit of content."""

    id: str
    created_at: str = Field(default_factory=_now_iso)
    transcript: str = ""
    summary: str
    full_summary: Optional[str] = None
    embedding: List[float]
    topic_id: Optional[str] = None
    canonical_suggested: str = ""
    keywords: List[str] = Field(default_factory=list)
    subjects: List[str] = Field(default_factory=list)
    video_id: Optional[str] = None
    original_url: Optional[str] = None
    video_title: Optional[str] = None
    prominence: Optional[int] = Field(default=None, ge=0, le=100)
    video_group_id: Optional[str] = None
    is_primary: Optional[bool] = None
    schema_version: int = SCHEMA_VERSION


class SuperCategory(BaseModel):
    """A broad grouping of topics (e.g. "technology", "politics")."""

    id: str
    name: str
    display_tag: str = ""
    aliases: List[str] = Field(default_factory=list)
    topic_ids: List[str] = Field(default_factory=list)
    color: Optional[str] = None
    schema_version: int = SCHEMA_VERSION


# Legacy records were written with camelCase keys and no schema_version.
_TOPIC_KEYS = {
    "displayTag": "display_tag",
    "labelEmbedding": "label_embedding",
    "summaryIds": "summary_ids",
    "superCategoryId": "super_category_id",
    "categoryId": "super_category_id",
}

_NOTE_KEYS = {
    "createdAt": "created_at",
    "fullSummary": "full_summary",
    "topicId": "topic_id",
    "canonicalSuggested": "canonical_suggested",
    "videoId": "video_id",
    "originalUrl": "original_url",
    "videoTitle": "video_title",
    "videoGroupId": "video_group_id",
    "isPrimary": "is_primary",
}

_SUPER_CATEGORY_KEYS = {
    "displayTag": "display_tag",
    "topicIds": "topic_ids",
}


def _rename_keys(raw: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    record = {}
    for key, value in raw.items():
        new_key = mapping.get(key, key)
        # snake_case wins when a record carries both spellings
        if new_key in record and key != new_key:
            continue
        record[new_key] = value
    return record


def migrate_topic_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Upgrade a persisted topic record to the current schema."""
    if raw.get("schema_version") == SCHEMA_VERSION:
        return raw
    record = _rename_keys(raw, _TOPIC_KEYS)
    record.setdefault("aliases", [])
    record.setdefault("summary_ids", [])
    record.setdefault("embedding", [])
    if record.get("display_tag") == "":
        record["display_tag"] = None
    record.pop("exemplarIds", None)
    record["schema_version"] = SCHEMA_VERSION
    return record


def migrate_note_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Upgrade a persisted note record to the current schema."""
    if raw.get("schema_version") == SCHEMA_VERSION:
        return raw
    record = _rename_keys(raw, _NOTE_KEYS)
    created = record.get("created_at")
    if isinstance(created, (int, float)):
        # Epoch milliseconds
        record["created_at"] = datetime.fromtimestamp(
            created / 1000, tz=timezone.utc
        ).isoformat()
    record.setdefault("keywords", [])
    record.setdefault("subjects", [])
    record.setdefault("canonical_suggested", "")
    record.pop("segments", None)
    record["schema_version"] = SCHEMA_VERSION
    return record


def migrate_super_category_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Upgrade a persisted super-category record to the current schema."""
    if raw.get("schema_version") == SCHEMA_VERSION:
        return raw
    record = _rename_keys(raw, _SUPER_CATEGORY_KEYS)
    # Older records carried embeddings that are no longer used
    record.pop("embedding", None)
    record.pop("labelEmbedding", None)
    record.setdefault("aliases", [])
    record.setdefault("topic_ids", [])
    record["schema_version"] = SCHEMA_VERSION
    return record
