"""
gist-notes: summarize transcripts into notes and cluster them into topics
"""
from .config import Config, get_config
from .errors import (
    EmbeddingError,
    GistNotesError,
    InvalidURLError,
    StoreCorruptionError,
    SummarizationError,
)
from .models import IngestResult, MultiTopicSummary, SubTopicSummary, SummaryResult
from .note_service import NoteService
from .storage import InMemoryStorage, JsonFileStorage, StoreRepository
from .summarizer import SummarizationService

__all__ = [
    'Config',
    'get_config',
    'GistNotesError',
    'SummarizationError',
    'EmbeddingError',
    'InvalidURLError',
    'StoreCorruptionError',
    'SummaryResult',
    'SubTopicSummary',
    'MultiTopicSummary',
    'IngestResult',
    'NoteService',
    'SummarizationService',
    'StoreRepository',
    'JsonFileStorage',
    'InMemoryStorage',
]
