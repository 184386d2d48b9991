# =============================================
# File: taskpilot/services/prioritizer.py
# Purpose: Task priority ordering: deterministic baseline + validated model override
# =============================================
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from loguru import logger

from ..utils.jsonparse import extract_json_object
from ..utils.prompting import PRIORITIZE_SYSTEM, prioritize_prompt
from ..utils.taxonomy import DEFAULT_WEIGHT, TASK_TYPE_WEIGHTS

TaskId = Union[int, str]

METHOD_AI = "ai"
METHOD_BASELINE = "baseline"

BASELINE_REASONING = (
    "Ordered by task type (fundraising > product > market > team > other), "
    "then by due date (earliest first)"
)


class Generator(Protocol):
    def generate_text(self, prompt: str, system: Optional[str] = None) -> str: ...


@dataclass
class PrioritizedResult:
    ids: List[TaskId]
    reasoning: str
    method: str


def parse_due_date(value: Any) -> Optional[dt.datetime]:
    """ISO date or datetime; anything unparseable counts as no due date."""
    if not value:
        return None
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return parsed


def baseline_order(tasks: Sequence[Dict]) -> List[TaskId]:
    """Weight desc, then dated tasks by due date asc, undated last; stable otherwise."""

    def key(pair):
        idx, task = pair
        weight = TASK_TYPE_WEIGHTS.get(task.get("type") or "other", DEFAULT_WEIGHT)
        due = parse_due_date(task.get("dueDate"))
        return (-weight, due is None, due or dt.datetime.min, idx)

    return [task["id"] for _, task in sorted(enumerate(tasks), key=key)]


def validate_override(candidate: Any, tasks: Sequence[Dict]) -> Optional[List[TaskId]]:
    """
    Accept the model's order only if it is an exact permutation of the input ids.
    Ids are compared as strings; the caller's original id objects are returned.
    """
    if not isinstance(candidate, list) or len(candidate) != len(tasks):
        return None
    by_key = {str(t["id"]): t["id"] for t in tasks}
    seen = set()
    out: List[TaskId] = []
    for raw in candidate:
        if not isinstance(raw, (str, int)) or isinstance(raw, bool):
            return None
        k = str(raw)
        if k not in by_key or k in seen:
            return None
        seen.add(k)
        out.append(by_key[k])
    return out


class PriorityOrchestrator:
    """Orders tasks. `generator` may be None, in which case only the baseline is used."""

    def __init__(self, generator: Optional[Generator] = None) -> None:
        self.generator = generator

    def prioritize(self, tasks: Sequence[Dict]) -> PrioritizedResult:
        tasks = list(tasks)
        if len(tasks) <= 1:
            return PrioritizedResult(
                ids=[t["id"] for t in tasks],
                reasoning="Nothing to reorder" if tasks else "No tasks",
                method=METHOD_BASELINE,
            )

        baseline = baseline_order(tasks)
        if self.generator is None:
            return PrioritizedResult(ids=baseline, reasoning=BASELINE_REASONING, method=METHOD_BASELINE)

        try:
            raw = self.generator.generate_text(prioritize_prompt(tasks), system=PRIORITIZE_SYSTEM)
        except Exception as e:
            logger.warning(f"[prioritize] generation failed, using baseline: {e!r}")
            return PrioritizedResult(ids=baseline, reasoning=BASELINE_REASONING, method=METHOD_BASELINE)

        parsed = extract_json_object(raw)
        if parsed is None:
            logger.warning("[prioritize] model output had no JSON object, using baseline")
            return PrioritizedResult(ids=baseline, reasoning=BASELINE_REASONING, method=METHOD_BASELINE)

        ids = validate_override(parsed.get("prioritizedIds"), tasks)
        if ids is None:
            logger.warning("[prioritize] model order is not a permutation of the input ids, using baseline")
            return PrioritizedResult(ids=baseline, reasoning=BASELINE_REASONING, method=METHOD_BASELINE)

        reasoning = str(parsed.get("reasoning") or "").strip() or "Ordered by the model"
        return PrioritizedResult(ids=ids, reasoning=reasoning, method=METHOD_AI)
