"""
Clustering core - incremental topic assignment for notes
"""

from .assignment import AssignmentDecision, AssignmentEngine, RenameOutcome
from .embedding_client import EmbeddingProvider, LiteLLMEmbeddingClient
from .models import NoteSummary, SuperCategory, Topic
from .topic_store import TopicStore

__all__ = [
    "AssignmentDecision",
    "AssignmentEngine",
    "RenameOutcome",
    "EmbeddingProvider",
    "LiteLLMEmbeddingClient",
    "NoteSummary",
    "SuperCategory",
    "Topic",
    "TopicStore",
]
