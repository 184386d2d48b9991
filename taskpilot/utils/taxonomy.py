# =============================================
# File: taskpilot/utils/taxonomy.py
# Purpose: Task categories and the keyword/tag/weight tables keyed by them
# =============================================
from __future__ import annotations

from typing import Dict, Iterable, List, Literal

TaskType = Literal["product", "market", "finance", "team", "other"]
TASK_TYPES: List[str] = ["product", "market", "finance", "team", "other"]

# Matched case-insensitively against title + description + tags.
TASK_TYPE_KEYWORDS: Dict[str, List[str]] = {
    "product": ["product", "design", "development", "user experience", "ui", "ux", "requirements", "prototype", "feature"],
    "market": ["market", "research", "competitor", "user", "analysis", "survey", "marketing", "promotion"],
    "finance": ["fundraising", "investment", "business plan", "finance", "valuation", "equity", "pitch deck", "roadshow"],
    "team": ["team", "management", "collaboration", "hiring", "okr", "communication", "leadership", "training"],
    "other": ["startup", "management", "tool", "productivity", "learning", "method", "template"],
}

# Matched against item tags with the substring-or-reverse-substring rule.
TASK_TYPE_TAGS: Dict[str, List[str]] = {
    "product": ["product", "design", "UI/UX", "tech", "architecture"],
    "market": ["market research", "user research", "competitive analysis", "operations", "data"],
    "finance": ["fundraising", "investors", "equity", "finance", "business plan"],
    "team": ["team management", "hiring", "HR", "OKR", "collaboration"],
    "other": ["tools", "methodology", "course", "template"],
}

TASK_TYPE_WEIGHTS: Dict[str, int] = {
    "finance": 10,
    "product": 9,
    "market": 8,
    "team": 7,
    "other": 5,
}
DEFAULT_WEIGHT = 5

TASK_TYPE_LABELS: Dict[str, str] = {
    "product": "Product development",
    "market": "Market research",
    "finance": "Fundraising",
    "team": "Team management",
    "other": "Other",
}

TASK_TYPE_RATIONALE: Dict[str, str] = {
    "finance": "Fundraising - most critical early on, decides whether the company survives",
    "product": "Product development - core business, needs continuous iteration",
    "market": "Market research - steers product and fundraising direction",
    "team": "Team management - supports the business as it grows",
    "other": "Other - supporting work",
}


def tag_overlaps(tag: str, item_tags: Iterable[str]) -> bool:
    """
    True when `tag` is a substring of any item tag or any item tag is a
    substring of `tag`. Case-sensitive and asymmetric on purpose: a short tag
    like "HR" also matches inside longer tags that merely contain it.
    """
    return any(tag in t or t in tag for t in item_tags)
