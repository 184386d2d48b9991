# =============================================
# File: taskpilot/services/catalog.py
# Purpose: Catalog items and the once-per-process candidate store
# =============================================
from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import List, Literal, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

ResourceType = Literal["article", "template", "tool", "course", "investor"]
Stage = Literal["idea", "mvp", "growth"]

ENRICHED_FILENAME = "resources_with_embeddings.json"
PLAIN_FILENAME = "resources.json"


class CatalogItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., gt=0)
    title: str
    description: str = ""
    url: str = ""
    type: ResourceType
    tags: List[str] = Field(default_factory=list)
    stage: Stage = "idea"
    clicks: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    embedding: Optional[List[float]] = None

    @property
    def has_vector(self) -> bool:
        return bool(self.embedding)

    def public_dict(self) -> dict:
        """Shape returned to API clients (no vector)."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "tags": list(self.tags),
        }


def _read_items(path: Path) -> List[CatalogItem]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path.name}: expected a JSON array")

    items: List[CatalogItem] = []
    seen = set()
    for row in raw:
        try:
            item = CatalogItem.model_validate(row)
        except ValidationError as e:
            logger.warning(f"[catalog] skipping malformed record in {path.name}: {e.errors()[:1]}")
            continue
        if item.id in seen:
            logger.warning(f"[catalog] duplicate id {item.id} in {path.name}; keeping first")
            continue
        seen.add(item.id)
        items.append(item)
    return items


class CandidateStore:
    """
    Loads the resource catalog once and serves it from memory afterwards.

    Tries the embedding-enriched file first, then the plain catalog. The first
    non-empty load wins and is kept for the lifetime of the store; an empty
    result is not cached, so a later call can retry once the files appear.
    Concurrent first loads are serialized on a lock and converge on one value.
    """

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self._lock = threading.Lock()
        self._items: Optional[List[CatalogItem]] = None
        self.source: Optional[str] = None

    @property
    def sources(self) -> List[Path]:
        return [self.data_dir / ENRICHED_FILENAME, self.data_dir / PLAIN_FILENAME]

    def load(self) -> List[CatalogItem]:
        cached = self._items
        if cached is not None:
            return cached

        with self._lock:
            if self._items is not None:
                return self._items

            for path in self.sources:
                if not path.exists():
                    continue
                try:
                    items = _read_items(path)
                except (OSError, ValueError) as e:
                    logger.error(f"[catalog] failed to load {path}: {e}")
                    continue
                if not items:
                    logger.warning(f"[catalog] {path.name} has no usable records")
                    continue
                with_vectors = sum(1 for it in items if it.has_vector)
                logger.info(f"[catalog] loaded {len(items)} resources from {path.name} ({with_vectors} with embeddings)")
                self._items = items
                self.source = path.name
                return items

        logger.error(f"[catalog] no catalog available under {self.data_dir}")
        return []

    def get(self, resource_id: int) -> Optional[CatalogItem]:
        for item in self.load():
            if item.id == resource_id:
                return item
        return None
