# =============================================
# File: taskpilot/utils/vectors.py
# Purpose: Cosine similarity between two equal-length vectors
# =============================================
from __future__ import annotations

import math
from typing import Sequence

from .errors import DimensionMismatch


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Normalized dot product of two vectors, in [-1, 1].

    Raises DimensionMismatch when the lengths differ. Returns exactly 0.0 when
    either vector has zero magnitude.
    """
    if len(a) != len(b):
        raise DimensionMismatch(f"vector lengths differ: {len(a)} != {len(b)}")

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    sim = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # clamp float drift
    return max(-1.0, min(1.0, sim))
