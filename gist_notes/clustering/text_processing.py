"""
Name normalization and lexical topic resolution.

Embeddings miss near-duplicate names ("climate-change" vs "Climate Change",
"change climate"), so every candidate name is first checked with cheap,
deterministic string matching before any similarity score is consulted.
"""

import re
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from ..config import DEFAULT_LEXICAL_THRESHOLD
from .models import Topic

STOPWORDS = frozenset([
    "the", "a", "an", "of", "in", "on", "and", "to", "for",
    "with", "at", "by", "into", "from", "as",
])

_SEPARATORS = re.compile(r"[‐‑‒–—―−\-/_]")
_NON_ALNUM = re.compile(r"[^a-z0-9 ]")
_WHITESPACE = re.compile(r"\s+")
_CONSONANT = re.compile(r"[bcdfghjklmnpqrstvwxyz]")
_SIBILANT_ENDINGS = ("s", "x", "z", "ch", "sh")


class Named(Protocol):
    """Anything matchable by name: topics and super categories."""

    id: str
    name: str
    aliases: Sequence[str]


def normalize_tag_name(s: str) -> str:
    """Canonical key for exact-name matching.

    Lowercases, turns dashes/slashes/underscores into spaces, spells out
    ``&``, drops everything outside ``[a-z0-9 ]`` and collapses whitespace.
    """
    t = s.lower()
    t = _SEPARATORS.sub(" ", t)
    t = t.replace("&", " and ")
    t = _NON_ALNUM.sub(" ", t)
    return _WHITESPACE.sub(" ", t).strip()


def stem_word(word: str) -> str:
    """Crude suffix stripper, good enough to equate plurals and tenses."""
    if len(word) < 3:
        return word
    word = word.lower()

    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("es") and word[:-2].endswith(_SIBILANT_ENDINGS) and len(word) > 4:
        word = word[:-2]
    else:
        for suffix in ("ing", "ed", "ment", "ness", "ly", "s"):
            if suffix == "s" and word.endswith("ss"):
                continue
            if word.endswith(suffix) and len(word) > len(suffix) + 1:
                word = word[: -len(suffix)]
                break

    # stopp -> stop
    if len(word) > 2 and word[-1] == word[-2] and _CONSONANT.match(word[-1]):
        word = word[:-1]
    return word


def tokenize_core(s: str, stem: bool = True) -> set[str]:
    """Content tokens of a name, stopwords removed."""
    tokens = [w for w in normalize_tag_name(s).split(" ") if w and w not in STOPWORDS]
    if stem:
        tokens = [stem_word(w) for w in tokens]
    return set(tokens)


def same_token_set(a: str, b: str) -> bool:
    return tokenize_core(a) == tokenize_core(b)


def jaccard_token_sim(a: str, b: str) -> float:
    """Token-set overlap in [0, 1]; two empty sets count as identical."""
    ta = tokenize_core(a)
    tb = tokenize_core(b)
    if not ta and not tb:
        return 1.0
    union = ta | tb
    return len(ta & tb) / len(union)


def resolve_by_name(
    candidate: str,
    items: Iterable[Named],
    threshold: float = DEFAULT_LEXICAL_THRESHOLD,
) -> Optional[str]:
    """Three-tier lexical match; returns the id of the first confident hit.

    1. exact normalized name or alias
    2. identical token set
    3. best Jaccard overlap, if it reaches ``threshold``
    """
    items = list(items)
    norm = normalize_tag_name(candidate)

    for item in items:
        if normalize_tag_name(item.name) == norm:
            return item.id
        if any(normalize_tag_name(alias) == norm for alias in item.aliases):
            return item.id

    for item in items:
        if same_token_set(item.name, candidate):
            return item.id

    best_id: Optional[str] = None
    best = 0.0
    for item in items:
        score = jaccard_token_sim(item.name, candidate)
        if score > best:
            best = score
            best_id = item.id
    return best_id if best_id is not None and best >= threshold else None


def resolve_topic_by_name(
    candidate: str,
    topics: Mapping[str, Topic],
    threshold: float = DEFAULT_LEXICAL_THRESHOLD,
) -> Optional[str]:
    """Resolve a suggested topic name to an existing topic id, or None."""
    return resolve_by_name(candidate, topics.values(), threshold)


def label_embedding_text(name: str) -> str:
    """Wrap a short label in a fixed sentence so it embeds stably."""
    return (
        f"topic name: {name}\n"
        f"meaning: a subject category used to group notes about {name}"
    )


def trim_title(text: str, n: int = 80) -> str:
    t = text.replace("\n", " ").strip()
    return t[: n - 1] + "…" if len(t) > n else t
