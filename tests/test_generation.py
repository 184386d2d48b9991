# =============================================
# File: tests/test_generation.py
# Purpose: Text generator retry/timeout contract and the features built on it
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from types import SimpleNamespace

import httpx
import openai
import pytest
from taskpilot.services import generation as gen
from taskpilot.utils.auth import decode_token_payload
from taskpilot.utils.errors import ConfigError, ParseError, RemoteError

KEY = "kid.ksecret"
_REQ = httpx.Request("POST", "https://llm.test/chat/completions")


def _completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))], model="glm-4-flash")


class FakeClient:
    """Replays a script of results/exceptions for chat.completions.create."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return _completion(step)


def _generator(monkeypatch, script, **kw):
    g = gen.TextGenerator(KEY, "https://llm.test/v4", **kw)
    client = FakeClient(script)
    monkeypatch.setattr(g, "_client", lambda: client)
    return g, client


class StubGenerator:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error

    def generate_text(self, prompt, system=None):
        if self.error:
            raise self.error
        return self.reply


# ---------- TextGenerator ----------

def test_invalid_key_is_config_error():
    with pytest.raises(ConfigError):
        gen.TextGenerator("", "https://llm.test/v4")
    with pytest.raises(ConfigError):
        gen.TextGenerator("no-secret", "https://llm.test/v4")


def test_client_uses_signed_token_and_base_url():
    g = gen.TextGenerator(KEY, "https://llm.test/v4")
    client = g._client()
    assert str(client.base_url).startswith("https://llm.test/v4")
    assert decode_token_payload(client.api_key)["api_key"] == "kid"


def test_sends_system_and_user_messages(monkeypatch):
    g, client = _generator(monkeypatch, ["  hello  "], timeout_s=7.5)
    assert g.generate_text("prompt", system="sys") == "hello"
    call = client.calls[0]
    assert call["messages"] == [{"role": "system", "content": "sys"}, {"role": "user", "content": "prompt"}]
    assert call["timeout"] == 7.5
    assert call["model"] == "glm-4-flash"


def test_retry_then_success(monkeypatch):
    g, client = _generator(monkeypatch, [openai.APITimeoutError(request=_REQ), "ok"], max_retries=1)
    assert g.generate_text("p") == "ok"
    assert len(client.calls) == 2


def test_all_attempts_fail_raises_remote_error(monkeypatch):
    g, client = _generator(
        monkeypatch,
        [openai.APIConnectionError(request=_REQ), openai.APIConnectionError(request=_REQ)],
        max_retries=1,
    )
    with pytest.raises(RemoteError):
        g.generate_text("p")
    assert len(client.calls) == 2


def test_status_error_keeps_status(monkeypatch):
    err = openai.APIStatusError("rate limited", response=httpx.Response(429, request=_REQ), body=None)
    g, _ = _generator(monkeypatch, [err], max_retries=0)
    with pytest.raises(RemoteError) as exc:
        g.generate_text("p")
    assert exc.value.status == 429


# ---------- decompose ----------

def test_parse_subtasks_from_json_in_prose():
    raw = 'Here are the steps:\n["Define ICP", "Interview 10 users", "Summarize findings"]'
    assert gen.parse_subtasks(raw) == ["Define ICP", "Interview 10 users", "Summarize findings"]


def test_parse_subtasks_line_fallback():
    raw = "1. Draft the deck\n2) Book investor calls\n- Follow up within 48h\n\n* Close the round"
    assert gen.parse_subtasks(raw) == [
        "Draft the deck",
        "Book investor calls",
        "Follow up within 48h",
        "Close the round",
    ]


def test_parse_subtasks_caps_at_seven():
    raw = "[" + ", ".join(f'"step {i}"' for i in range(10)) + "]"
    assert len(gen.parse_subtasks(raw)) == gen.MAX_SUBTASKS


@pytest.mark.parametrize("raw", ["", "   ", "[]", "[\n]"])
def test_parse_subtasks_failure_keeps_raw(raw):
    with pytest.raises(ParseError) as exc:
        gen.parse_subtasks(raw)
    assert exc.value.raw == raw


def test_decompose_task_propagates_remote_error():
    with pytest.raises(RemoteError):
        gen.decompose_task(StubGenerator(error=RemoteError("down", 503)), "Raise seed")


def test_decompose_task_happy_path():
    out = gen.decompose_task(StubGenerator('["a", "b", "c"]'), "Raise seed", "pre-seed round")
    assert out == ["a", "b", "c"]


# ---------- weekly report ----------

TASKS = [
    {"title": "Closed angel round", "type": "finance", "completedAt": "2025-05-02"},
    {"title": "Shipped onboarding", "type": "product"},
    {"title": "Hired designer", "type": "team"},
]


def test_empty_week_report():
    text, method = gen.write_weekly_report(StubGenerator("unused"), [], "2025-05-01", "2025-05-07")
    assert method == "empty"
    assert "No tasks were completed" in text


def test_report_from_model():
    text, method = gen.write_weekly_report(StubGenerator("# Report\n\nAll good"), TASKS)
    assert method == "ai"
    assert text.startswith("# Report")


def test_report_falls_back_on_remote_error():
    text, method = gen.write_weekly_report(StubGenerator(error=RemoteError("down")), TASKS, team="Acme")
    assert method == "fallback"
    assert text.startswith("# Acme Weekly Report")
    assert "### Fundraising (1)" in text
    assert "- Shipped onboarding" in text
    assert "3 tasks completed" in text


# ---------- resource write-up ----------

def test_describe_resource():
    assert gen.describe_resource(StubGenerator("Great resource."), "Deck", "A template") == "Great resource."
    with pytest.raises(RemoteError):
        gen.describe_resource(StubGenerator(""), "Deck", "A template")
