# =============================================
# File: taskpilot/services/recommender.py
# Purpose: Ranking orchestrator: semantic path with heuristic fallback over the catalog
# =============================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from loguru import logger

from .catalog import CandidateStore, CatalogItem
from .heuristic import rank_by_keywords
from .semantic import Embedder, rank_by_embedding
from ..utils.errors import CatalogUnavailable

DEFAULT_K = 5

METHOD_SEMANTIC = "semantic"
METHOD_HEURISTIC = "heuristic"


@dataclass
class RankQuery:
    title: str
    task_type: str = "other"
    description: str = ""
    liked_tags: Set[str] = field(default_factory=set)

    @property
    def text(self) -> str:
        if self.description:
            return f"{self.title} {self.description}"
        return self.title


@dataclass
class RankedResult:
    items: List[CatalogItem]
    method: Optional[str]
    exhausted: bool = False

    @property
    def ids(self) -> List[int]:
        return [it.id for it in self.items]


class RankingOrchestrator:
    """
    Picks the semantic or heuristic path and applies exclusions.

    Quota is NOT enforced here: callers consume it before calling rank().
    `embedder` may be None (no credential configured), in which case the
    heuristic path is used directly.
    """

    def __init__(self, store: CandidateStore, embedder: Optional[Embedder] = None) -> None:
        self.store = store
        self.embedder = embedder

    def rank(self, query: RankQuery, exclude_ids: Iterable[int] = (), k: int = DEFAULT_K) -> RankedResult:
        catalog = self.store.load()
        if not catalog:
            raise CatalogUnavailable("No resources available")

        excluded = {int(i) for i in exclude_ids}
        available = [it for it in catalog if it.id not in excluded] if excluded else list(catalog)
        if not available:
            logger.info(f"[rank] all {len(catalog)} resources excluded; exhausted")
            return RankedResult(items=[], method=None, exhausted=True)

        liked = sorted(query.liked_tags)

        if self.embedder is not None:
            try:
                items, method = rank_by_embedding(
                    query.title, query.task_type, available, self.embedder, liked, k=k, keyword_text=query.text
                )
                return RankedResult(items=self._dedupe(items, excluded, k), method=method)
            except Exception as e:
                logger.warning(f"[rank] semantic path failed, using keyword matching: {e!r}")

        items = rank_by_keywords(query.text, query.task_type, available, liked, k=k)
        return RankedResult(items=self._dedupe(items, excluded, k), method=METHOD_HEURISTIC)

    @staticmethod
    def _dedupe(items: List[CatalogItem], excluded: Set[int], k: int) -> List[CatalogItem]:
        out: List[CatalogItem] = []
        seen: Set[int] = set()
        for it in items:
            if it.id in excluded or it.id in seen:
                continue
            seen.add(it.id)
            out.append(it)
        return out[:k]
