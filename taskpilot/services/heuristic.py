# =============================================
# File: taskpilot/services/heuristic.py
# Purpose: Lexical/tag-overlap scorer used when semantic vectors are unavailable
# =============================================
from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from .catalog import CatalogItem
from ..utils.taxonomy import TASK_TYPE_KEYWORDS, TASK_TYPE_TAGS, tag_overlaps

TEMPLATE_BONUS = 0.5


def query_keywords(text: str) -> List[str]:
    """Lowercase whitespace tokens longer than one character."""
    return [w for w in (text or "").lower().split() if len(w) > 1]


def score_item(
    item: CatalogItem,
    keywords: Sequence[str],
    task_type: str,
    liked_tags: Iterable[str] = (),
) -> float:
    text = f"{item.title} {item.description} {' '.join(item.tags)}".lower()
    score = 0.0

    for kw in keywords:
        if kw in text:
            score += 2

    for kw in TASK_TYPE_KEYWORDS.get(task_type, []):
        if kw.lower() in text:
            score += 1

    for tag in TASK_TYPE_TAGS.get(task_type, []):
        if tag_overlaps(tag, item.tags):
            score += 1.5

    for tag in liked_tags:
        if tag_overlaps(tag, item.tags):
            score += 2

    if item.type == "template":
        score += TEMPLATE_BONUS

    score += math.log10(item.clicks + 1) * 0.1
    score += math.log10(item.likes + 1) * 0.15
    return score


def score_by_keywords(
    query: str,
    task_type: str,
    candidates: Sequence[CatalogItem],
    liked_tags: Iterable[str] = (),
) -> List[Tuple[CatalogItem, float]]:
    """All candidates with their scores, best first; ties keep catalog order."""
    keywords = query_keywords(query)
    liked = list(liked_tags)
    scored = [(item, score_item(item, keywords, task_type, liked)) for item in candidates]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def rank_by_keywords(
    query: str,
    task_type: str,
    candidates: Sequence[CatalogItem],
    liked_tags: Iterable[str] = (),
    k: int = 5,
) -> List[CatalogItem]:
    return [item for item, _ in score_by_keywords(query, task_type, candidates, liked_tags)[:k]]
