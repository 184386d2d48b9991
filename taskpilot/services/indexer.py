# =============================================
# File: taskpilot/services/indexer.py
# Purpose: Precompute catalog embeddings (batched, per-item fallback) into
#          resources_with_embeddings.json
# =============================================
from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from loguru import logger

from .catalog import ENRICHED_FILENAME, PLAIN_FILENAME
from .embedding import SemanticGateway
from ..utils.errors import RemoteError

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_DELAY_S = 1.0
DEFAULT_ITEM_DELAY_S = 0.2


def embedding_text(resource: Dict) -> str:
    return f"{resource.get('title', '')} {resource.get('description', '')}"


def embed_resources(
    gateway: SemanticGateway,
    resources: List[Dict],
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_delay_s: float = DEFAULT_BATCH_DELAY_S,
    item_delay_s: float = DEFAULT_ITEM_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[List[Dict], List[int]]:
    """
    Returns (enriched, failed_ids). A failed batch is retried one resource at a
    time; resources that still fail are left out of the output.
    """
    enriched: List[Dict] = []
    failed: List[int] = []
    total_batches = (len(resources) + batch_size - 1) // batch_size

    for start in range(0, len(resources), batch_size):
        batch = resources[start:start + batch_size]
        logger.info(
            f"[indexer] batch {start // batch_size + 1}/{total_batches} "
            f"(resources {start + 1}-{start + len(batch)})"
        )
        try:
            vectors = gateway.embed_batch([embedding_text(r) for r in batch])
        except RemoteError as e:
            logger.warning(f"[indexer] batch failed ({e}); embedding one by one")
            for r in batch:
                try:
                    enriched.append({**r, "embedding": gateway.embed(embedding_text(r))})
                except RemoteError as item_err:
                    logger.error(f"[indexer] resource {r.get('id')} failed: {item_err}")
                    failed.append(r.get("id"))
                sleep(item_delay_s)
            continue

        for r, vec in zip(batch, vectors):
            enriched.append({**r, "embedding": vec})
        if start + batch_size < len(resources):
            sleep(batch_delay_s)

    return enriched, failed


def refresh_embeddings(
    gateway: SemanticGateway,
    data_dir: Path | str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_delay_s: float = DEFAULT_BATCH_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> Tuple[int, int, Path]:
    """Read resources.json, embed, write resources_with_embeddings.json. Returns (done, total, out_path)."""
    data_dir = Path(data_dir)
    src = data_dir / PLAIN_FILENAME
    out = data_dir / ENRICHED_FILENAME

    with src.open("r", encoding="utf-8") as f:
        resources = json.load(f)
    if not isinstance(resources, list):
        raise ValueError(f"{src} must contain a JSON array")

    enriched, failed = embed_resources(gateway, resources, batch_size=batch_size, batch_delay_s=batch_delay_s, sleep=sleep)
    if failed:
        logger.warning(f"[indexer] {len(failed)} resources without embeddings: {failed}")

    tmp = out.with_suffix(".json.tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(enriched, f, ensure_ascii=False, indent=2)
    os.replace(tmp, out)
    return len(enriched), len(resources), out
