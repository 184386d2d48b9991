# =============================================
# File: taskpilot/services/semantic.py
# Purpose: Embedding-based scorer with category, personalization and popularity boosts
# =============================================
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from .catalog import CatalogItem
from .heuristic import rank_by_keywords
from ..utils.taxonomy import TASK_TYPE_TAGS, tag_overlaps
from ..utils.vectors import cosine_similarity

CATEGORY_BOOST = 0.05
LIKED_TAG_BOOST = 0.2


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]: ...


def build_query_text(query: str, task_type: str) -> str:
    return f"{query} {' '.join(TASK_TYPE_TAGS.get(task_type, []))}"


def adjust_similarity(item: CatalogItem, similarity: float, task_type: str, liked_tags: Sequence[str]) -> float:
    adjusted = similarity
    if any(tag_overlaps(tag, item.tags) for tag in TASK_TYPE_TAGS.get(task_type, [])):
        adjusted += CATEGORY_BOOST
    for tag in liked_tags:
        if tag_overlaps(tag, item.tags):
            adjusted += LIKED_TAG_BOOST
    adjusted += math.log10(item.clicks + 1) * 0.01
    adjusted += math.log10(item.likes + 1) * 0.015
    return adjusted


def rank_by_embedding(
    query: str,
    task_type: str,
    candidates: Sequence[CatalogItem],
    embedder: Embedder,
    liked_tags: Iterable[str] = (),
    k: int = 5,
    keyword_text: Optional[str] = None,
) -> Tuple[List[CatalogItem], str]:
    """
    Rank vectorized candidates by adjusted cosine similarity.

    Returns (items, method). When no candidate carries a vector the keyword
    scorer handles the whole set (over `keyword_text` when given) and method is
    "heuristic". Gateway errors and DimensionMismatch propagate; the
    orchestrator owns the fallback.
    """
    liked = list(liked_tags)
    vectorized = [item for item in candidates if item.has_vector]
    if not vectorized:
        logger.info("[semantic] no embeddings available, falling back to keywords")
        return rank_by_keywords(keyword_text or query, task_type, candidates, liked, k=k), "heuristic"

    query_vec = embedder.embed(build_query_text(query, task_type))

    scored = []
    for item in vectorized:
        sim = cosine_similarity(query_vec, item.embedding)
        scored.append((item, adjust_similarity(item, sim, task_type, liked)))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    return [item for item, _ in scored[:k]], "semantic"
