"""
Keyword Relevance Scoring for Long-Term Memory

    score = keyword_overlap(query, content) * importance
            + min(access_count * 0.1, 0.5)

keyword_overlap counts the distinct query words longer than three characters
that occur as substrings of the lowercased content. Query words are split on
whitespace, lowercased and stripped of surrounding punctuation, so "name?"
matches "my name is".
"""

from __future__ import annotations

import string
from typing import Sequence

from agentcore.core import constants as C
from agentcore.memory.models import MemoryEntry

_STRIP_CHARS = string.punctuation + "“”‘’"


def query_keywords(query: str) -> frozenset[str]:
    words = (w.strip(_STRIP_CHARS) for w in query.lower().split())
    return frozenset(w for w in words if len(w) >= C.MIN_KEYWORD_LENGTH)


def keyword_overlap(keywords: frozenset[str], content: str) -> int:
    lowered = content.lower()
    return sum(1 for word in keywords if word in lowered)


def relevance_score(keywords: frozenset[str], entry: MemoryEntry) -> float:
    access_boost = min(entry.access_count * C.ACCESS_BOOST_PER_HIT, C.ACCESS_BOOST_CAP)
    return keyword_overlap(keywords, entry.content) * entry.importance + access_boost


def rank_entries(
    query: str,
    entries: Sequence[MemoryEntry],
    limit: int,
) -> list[int]:
    """
    Indices of the `limit` best entries, best first.

    Ties keep storage order (stable sort).
    """
    if limit <= 0 or not entries:
        return []
    keywords = query_keywords(query)
    scored = [(relevance_score(keywords, entry), index) for index, entry in enumerate(entries)]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [index for _, index in scored[:limit]]
