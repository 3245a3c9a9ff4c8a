"""
Result models for summarization and ingestion
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class SummaryResult:
    """Structured summary of a single-topic transcript"""
    summary: str
    canonical_name: str
    keywords: List[str] = field(default_factory=list)
    subjects: List[str] = field(default_factory=list)


@dataclass
class SubTopicSummary(SummaryResult):
    """One topic within a multi-topic transcript"""
    prominence: int = 0  # share of the source, 0-100
    is_primary: bool = False


@dataclass
class MultiTopicSummary:
    """A whole-source summary plus its one to three topics, primary first"""
    full_summary: str
    topics: List[SubTopicSummary] = field(default_factory=list)

    @property
    def primary(self) -> Optional[SubTopicSummary]:
        return self.topics[0] if self.topics else None


@dataclass
class IngestResult:
    """Notes created by one ingestion and where they landed (None if evicted on arrival)"""
    note_ids: List[str] = field(default_factory=list)
    topic_ids: List[Optional[str]] = field(default_factory=list)
    evicted_note_ids: List[str] = field(default_factory=list)
