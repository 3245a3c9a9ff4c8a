"""
Vector helpers for comparing note embeddings with topic centroids.
"""

from typing import Sequence, Union

import numpy as np

from .models import Topic

Vector = Union[Sequence[float], np.ndarray]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Compute cosine similarity between two vectors.

    Returns 0.0 for empty vectors, mismatched lengths or a zero norm.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.size == 0 or vb.size == 0 or va.shape != vb.shape:
        return 0.0
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def average_vectors(vectors: Sequence[Vector]) -> list[float]:
    """Componentwise mean. All vectors must share one length."""
    if len(vectors) == 0:
        return []
    stacked = np.vstack([np.asarray(v, dtype=np.float64) for v in vectors])
    return stacked.mean(axis=0).tolist()


def topic_prototype(topic: Topic) -> list[float]:
    """Blend the content centroid with the label embedding, 50/50."""
    if topic.label_embedding:
        return average_vectors([topic.embedding, topic.label_embedding])
    return list(topic.embedding)


def label_prototype(topic: Topic) -> list[float]:
    """Vector a candidate label is compared against."""
    if topic.label_embedding:
        return list(topic.label_embedding)
    return topic_prototype(topic)
