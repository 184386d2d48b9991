# =============================================
# File: tests/test_prompting.py
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from taskpilot.utils.prompting import decompose_prompt, prioritize_prompt, weekly_report_prompt


def test_decompose_prompt_collapses_whitespace():
    p = decompose_prompt("  Raise   seed\nround ", "from\tangels")
    assert "Task: Raise seed round" in p
    assert "Description: from angels" in p
    assert "Description" not in decompose_prompt("Raise seed")


def test_prioritize_prompt_lists_ids_weights_and_due_dates():
    p = prioritize_prompt([
        {"id": "a1", "title": "Pitch", "type": "finance", "dueDate": "2025-06-01"},
        {"id": "b2", "title": "Offsite", "type": "team"},
    ])
    assert "ID: a1" in p and "ID: b2" in p
    assert "(weight: 10)" in p and "(weight: 7)" in p
    assert "Due date: 2025-06-01" in p
    assert "Due date: not set" in p
    assert "prioritizedIds" in p


def test_weekly_prompt_counts_types():
    p = weekly_report_prompt(
        [{"title": "A", "type": "finance"}, {"title": "B", "type": "finance"}, {"title": "C"}],
        "2025-05-01", "2025-05-07", "Acme",
    )
    assert "Acme" in p
    assert "3 in total" in p
    assert "Fundraising: 2" in p
    assert "Other: 1" in p
