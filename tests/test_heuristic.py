# =============================================
# File: tests/test_heuristic.py
# Purpose: Keyword/tag scorer behaviour
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from taskpilot.services.catalog import CatalogItem
from taskpilot.services.heuristic import query_keywords, rank_by_keywords, score_item
from taskpilot.utils.taxonomy import TASK_TYPE_TAGS, tag_overlaps


def _item(i, tags=(), title="Generic resource", description="", type_="article", clicks=0, likes=0):
    return CatalogItem(
        id=i, title=title, description=description, url=f"https://x/{i}",
        type=type_, tags=list(tags), stage="idea", clicks=clicks, likes=likes,
    )


def test_query_keywords_drops_single_chars():
    assert query_keywords("A Pitch deck  for x investors") == ["pitch", "deck", "for", "investors"]


def test_finance_tags_outscore_no_overlap():
    tagged = _item(1, tags=TASK_TYPE_TAGS["finance"])
    plain = _item(2, tags=["gardening"])
    assert score_item(tagged, [], "finance") > score_item(plain, [], "finance")


def test_title_keyword_hits_count_double():
    hit = _item(1, title="Pitch deck checklist")
    miss = _item(2, title="Gardening guide")
    assert score_item(hit, ["pitch"], "other") - score_item(miss, ["pitch"], "other") == 2


def test_liked_tags_boost():
    a = _item(1, tags=["growth hacking"])
    assert score_item(a, [], "other", liked_tags=["growth"]) == score_item(a, [], "other") + 2


def test_template_bonus_and_popularity():
    base = _item(1)
    template = _item(2, type_="template")
    popular = _item(3, clicks=999, likes=999)
    assert score_item(template, [], "other") == score_item(base, [], "other") + 0.5
    assert score_item(popular, [], "other") > score_item(base, [], "other")


def test_tag_overlap_is_case_sensitive_and_bidirectional():
    assert tag_overlaps("HR", ["HR tools"])
    assert tag_overlaps("team management", ["team"])
    assert not tag_overlaps("hr", ["HR"])


def test_rank_is_stable_and_capped():
    items = [_item(i) for i in range(1, 9)]
    ranked = rank_by_keywords("nothing matches", "other", items, k=5)
    assert [it.id for it in ranked] == [1, 2, 3, 4, 5]


def test_rank_puts_best_match_first():
    items = [
        _item(1, title="Team offsite ideas", tags=["team management"]),
        _item(2, title="Seed round pitch deck", tags=["fundraising", "investors"]),
        _item(3, title="Logo design tips", tags=["design"]),
    ]
    ranked = rank_by_keywords("prepare seed pitch", "finance", items, k=2)
    assert ranked[0].id == 2
    assert len(ranked) == 2
