# =============================================
# File: taskpilot/utils/prompting.py
# Purpose: System/user prompts for decomposition, prioritization, reports and write-ups
# =============================================
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .taxonomy import DEFAULT_WEIGHT, TASK_TYPE_LABELS, TASK_TYPE_RATIONALE, TASK_TYPE_WEIGHTS


def collapse_ws(text: str) -> str:
    return " ".join((text or "").split())


DECOMPOSE_SYSTEM = (
    "You are a startup coach and task-management expert. Break a complex startup task into "
    "concrete, actionable subtasks.\n\n"
    "Rules:\n"
    "1. Every subtask is specific and actionable.\n"
    "2. Subtasks follow a logical order.\n"
    "3. Every subtask has a clear definition of done.\n"
    "4. Return 3 to 7 subtasks.\n"
    "5. Output MUST be a pure JSON array of strings, e.g. [\"Subtask 1\", \"Subtask 2\"]. "
    "No explanations, no extra text."
)

PRIORITIZE_SYSTEM = (
    "You are a startup advisor and task-management expert. Order tasks by priority for an "
    "early-stage startup.\n\n"
    "Principles:\n"
    "1. Fundraising first: money is the startup's lifeline.\n"
    "2. Product next: the MVP and core features decide competitiveness.\n"
    "3. Market research validates direction.\n"
    "4. Team management supports the business and can move later.\n"
    "5. Within the same type, the nearer the due date the higher the priority.\n"
    "6. Consider urgency, importance and dependencies between tasks.\n\n"
    "Output MUST be a JSON object only:\n"
    "{\"prioritizedIds\": [\"task_id_1\", \"task_id_2\"], \"reasoning\": \"short rationale\"}"
)

WEEKLY_REPORT_SYSTEM = (
    "You write weekly reports for startup teams. From the tasks completed this week, produce a "
    "clear, professional report in Markdown with these sections: weekly summary, key results, "
    "plan for next week, risks and challenges, support needed. Use headings, lists and bold text "
    "where they help. Highlight fundraising work. Output only the Markdown report."
)

RESOURCE_DETAIL_SYSTEM = (
    "You are an experienced startup mentor with over ten years of coaching and investing "
    "experience. Be practical and concrete, avoid jargon, and account for differences between "
    "startup stages and industries. Keep a friendly, trustworthy tone."
)


def decompose_prompt(title: str, description: Optional[str] = None) -> str:
    prompt = f"Break the following task into 3-7 concrete subtasks and return them as a JSON array:\n\nTask: {collapse_ws(title)}"
    if description:
        prompt += f"\n\nDescription: {collapse_ws(description)}"
    prompt += '\n\nReturn the JSON array directly, for example: ["Subtask 1", "Subtask 2", "Subtask 3"]'
    return prompt


def prioritize_prompt(tasks: Sequence[Dict]) -> str:
    lines: List[str] = []
    for idx, t in enumerate(tasks, start=1):
        ttype = t.get("type") or "other"
        weight = TASK_TYPE_WEIGHTS.get(ttype, DEFAULT_WEIGHT)
        rationale = TASK_TYPE_RATIONALE.get(ttype, TASK_TYPE_RATIONALE["other"])
        due = t.get("dueDate") or "not set"
        lines.append(
            f"{idx}. ID: {t['id']}\n"
            f"   Title: {collapse_ws(t.get('title', ''))}\n"
            f"   Type: {rationale} (weight: {weight})\n"
            f"   Due date: {due}"
        )
    return (
        f"Order these {len(tasks)} startup tasks from highest to lowest priority:\n\n"
        + "\n".join(lines)
        + "\n\nReturn JSON: {\"prioritizedIds\": [\"id1\", \"id2\", ...], \"reasoning\": \"...\"}"
    )


def weekly_report_prompt(
    tasks: Sequence[Dict],
    start: Optional[str] = None,
    end: Optional[str] = None,
    team: Optional[str] = None,
) -> str:
    team = team or "Startup team"
    start = start or "this week"
    end = end or "this week"

    counts: Dict[str, int] = {}
    lines: List[str] = []
    for idx, t in enumerate(tasks, start=1):
        label = TASK_TYPE_LABELS.get(t.get("type") or "other", "Other")
        counts[label] = counts.get(label, 0) + 1
        done = t.get("completedAt") or "unknown date"
        lines.append(f"{idx}. {collapse_ws(t.get('title', ''))} ({label}, completed {done})")
    stats = ", ".join(f"{label}: {n}" for label, n in counts.items())

    return (
        f"Write the weekly report for \"{team}\" covering {start} to {end}.\n\n"
        f"Tasks completed ({len(tasks)} in total):\n"
        + "\n".join(lines)
        + f"\n\nBreakdown by type: {stats}\n\n"
        "Include: 1) weekly summary 2) key results grouped by task type 3) plan for next week "
        "4) risks and challenges 5) support needed. Output Markdown only."
    )


def resource_detail_prompt(title: str, description: str, resource_type: Optional[str] = None) -> str:
    return (
        "Give a detailed introduction and usage advice for this startup resource:\n\n"
        f"Title: {collapse_ws(title)}\n"
        f"Description: {collapse_ws(description)}\n"
        f"Type: {resource_type or 'resource'}\n\n"
        "Write 300-500 words covering: 1) overview and core value 2) when and for which teams it "
        "works best 3) concrete usage advice 4) caveats and limitations 5) further thoughts and "
        "related resources."
    )
