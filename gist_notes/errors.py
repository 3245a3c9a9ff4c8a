"""
Error kinds raised by the ingestion pipeline and the persistence layer.
"""
from typing import Any, Optional


class GistNotesError(Exception):
    """Base error carrying a machine-readable code and optional details."""

    error_code = "gist_notes_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": str(self),
            "error_code": self.error_code,
            "details": self.details,
        }


class SummarizationError(GistNotesError):
    """The summarizer was unreachable or returned an unusable response."""

    error_code = "summarization_failed"


class EmbeddingError(GistNotesError):
    """The embedding provider failed or returned an empty vector."""

    error_code = "embedding_failed"


class InvalidURLError(GistNotesError):
    """A source URL could not be parsed into a video reference."""

    error_code = "invalid_url"


class StoreCorruptionError(GistNotesError):
    """A persisted map could not be decoded."""

    error_code = "store_corrupt"
