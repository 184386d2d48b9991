# =============================================
# File: taskpilot/services/generation.py
# Purpose: Chat-completion text generation (signed token, retry + timeout) and the
#          decompose / weekly report / resource write-up features built on it
# =============================================
from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger
from openai import APIError, APIStatusError, OpenAI

from ..config import Settings
from ..utils.auth import generate_token, split_api_key
from ..utils.errors import ParseError, RemoteError
from ..utils.jsonparse import extract_json_array
from ..utils.prompting import (
    DECOMPOSE_SYSTEM,
    RESOURCE_DETAIL_SYSTEM,
    WEEKLY_REPORT_SYSTEM,
    collapse_ws,
    decompose_prompt,
    resource_detail_prompt,
    weekly_report_prompt,
)
from ..utils.taxonomy import TASK_TYPE_LABELS

MIN_SUBTASKS = 3
MAX_SUBTASKS = 7

# "1. foo", "- foo", "* foo", "• foo", "2) foo"
_LIST_MARKER = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")


class TextGenerator:
    """
    Thin wrapper around an OpenAI-compatible chat completions endpoint.

    A new client is built per call because the bearer token is short-lived.
    The credential is validated up front (ConfigError).
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str = "glm-4-flash",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout_s: float = 30.0,
        max_retries: int = 1,
    ) -> None:
        split_api_key(api_key)
        self._api_key = api_key
        self.base_url = base_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s
        self.max_retries = max_retries

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextGenerator":
        return cls(
            settings.api_key,
            settings.chat_base_url,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout_s=settings.llm_timeout_s,
            max_retries=settings.llm_max_retries,
        )

    def _client(self) -> OpenAI:
        return OpenAI(api_key=generate_token(self._api_key), base_url=self.base_url, max_retries=0)

    def generate_text(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Try up to max_retries+1 times with timeout_s each.
        Raises RemoteError after the last failed attempt.
        """
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        last_err: Optional[RemoteError] = None
        attempts = max(1, self.max_retries + 1)
        for attempt in range(1, attempts + 1):
            try:
                resp = self._client().chat.completions.create(
                    model=self.model,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    messages=messages,
                    timeout=self.timeout_s,
                )
            except APIStatusError as e:
                last_err = RemoteError(e.message, status=e.status_code)
            except APIError as e:
                last_err = RemoteError(e.message)
            else:
                if not resp.choices:
                    last_err = RemoteError("empty completion")
                else:
                    return (resp.choices[0].message.content or "").strip()
            logger.warning(f"[generation] attempt {attempt}/{attempts} failed: {last_err}")
        raise last_err or RemoteError("no attempts made")


def _clean_subtask(text: str) -> str:
    return collapse_ws(str(text)).strip("\"'")


def parse_subtasks(raw: str) -> List[str]:
    """
    JSON array first; otherwise treat the text as a list, one subtask per line.
    Raises ParseError (keeping the raw text) when neither yields anything.
    """
    arr = extract_json_array(raw)
    if arr is not None:
        items = [_clean_subtask(x) for x in arr if isinstance(x, (str, int, float))]
        items = [x for x in items if x]
        if items:
            return items[:MAX_SUBTASKS]

    items = []
    for line in (raw or "").splitlines():
        line = line.strip()
        if not line or line.startswith(("[", "]", "```")):
            continue
        line = _clean_subtask(_LIST_MARKER.sub("", line).rstrip(","))
        if line:
            items.append(line)
    if items:
        logger.info(f"[decompose] JSON parse failed; recovered {len(items)} subtasks from lines")
        return items[:MAX_SUBTASKS]

    raise ParseError("Model response did not contain subtasks", raw=raw or "")


def decompose_task(generator: TextGenerator, title: str, description: Optional[str] = None) -> List[str]:
    raw = generator.generate_text(decompose_prompt(title, description), system=DECOMPOSE_SYSTEM)
    subtasks = parse_subtasks(raw)
    if len(subtasks) < MIN_SUBTASKS:
        logger.warning(f"[decompose] only {len(subtasks)} subtasks returned")
    return subtasks


def empty_weekly_report(start: Optional[str] = None, end: Optional[str] = None) -> str:
    return (
        "# Weekly Report\n\n"
        f"**Period**: {start or 'this week'} - {end or 'this week'}\n\n"
        "## Weekly summary\n\nNo tasks were completed this week.\n\n"
        "## Plan for next week\n\n- Review the backlog and pick the most important tasks\n"
    )


def fallback_weekly_report(
    tasks: Sequence[Dict],
    start: Optional[str] = None,
    end: Optional[str] = None,
    team: Optional[str] = None,
) -> str:
    """Deterministic report grouped by task type, used when generation fails."""
    groups: Dict[str, List[str]] = {}
    for t in tasks:
        label = TASK_TYPE_LABELS.get(t.get("type") or "other", "Other")
        groups.setdefault(label, []).append(collapse_ws(t.get("title", "")))

    lines = [
        f"# {team or 'Startup team'} Weekly Report",
        "",
        f"**Period**: {start or 'this week'} - {end or 'this week'}",
        "",
        "## Weekly summary",
        "",
        f"{len(tasks)} tasks completed this week.",
        "",
        "## Key results",
        "",
    ]
    for label, titles in groups.items():
        lines.append(f"### {label} ({len(titles)})")
        lines.extend(f"- {title}" for title in titles)
        lines.append("")
    lines += [
        "## Plan for next week",
        "",
        "- Keep pushing the core business forward",
        "- Follow up on open items from this week",
        "",
    ]
    return "\n".join(lines)


def write_weekly_report(
    generator: TextGenerator,
    tasks: Sequence[Dict],
    start: Optional[str] = None,
    end: Optional[str] = None,
    team: Optional[str] = None,
) -> Tuple[str, str]:
    """Returns (markdown, method) where method is "ai", "fallback" or "empty"."""
    if not tasks:
        return empty_weekly_report(start, end), "empty"
    try:
        text = generator.generate_text(weekly_report_prompt(tasks, start, end, team), system=WEEKLY_REPORT_SYSTEM)
    except RemoteError as e:
        logger.warning(f"[weekly-report] generation failed, using fallback report: {e}")
        return fallback_weekly_report(tasks, start, end, team), "fallback"
    if not text:
        return fallback_weekly_report(tasks, start, end, team), "fallback"
    return text, "ai"


def describe_resource(
    generator: TextGenerator,
    title: str,
    description: str,
    resource_type: Optional[str] = None,
) -> str:
    text = generator.generate_text(resource_detail_prompt(title, description, resource_type), system=RESOURCE_DETAIL_SYSTEM)
    if not text:
        raise RemoteError("empty completion")
    return text
