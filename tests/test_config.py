# =============================================
# File: tests/test_config.py
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from pathlib import Path

from taskpilot.config import DEFAULT_CHAT_URL, DEFAULT_DATA_DIR, PACKAGE_DIR, Settings

_PATH_VARS = ("DATA_DIR", "STATE_DIR", "FEEDBACK_DB_URL", "PROFILES_PATH", "USAGE_PATH")


def test_defaults(monkeypatch, tmp_path):
    for name in ("AI_API_KEY", "AI_API_URL", "LLM_MODEL", "EMBEDDING_MODEL", "LLM_TEMPERATURE", "LOG_LEVEL") + _PATH_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STATE_DIR", str(tmp_path))
    s = Settings.from_env()
    assert s.api_key == ""
    assert s.chat_base_url == DEFAULT_CHAT_URL
    assert s.llm_model == "glm-4-flash"
    assert s.embedding_model == "embedding-2"
    assert s.data_dir == DEFAULT_DATA_DIR
    assert s.state_dir == tmp_path
    assert s.feedback_db_url == f"sqlite:///{tmp_path / 'feedback.db'}"
    assert s.usage_path == tmp_path / "profiles" / "usage.json"
    assert s.log_level == "INFO"


def test_state_defaults_stay_out_of_the_package(monkeypatch):
    for name in _PATH_VARS:
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.state_dir == Path("data")
    assert not s.state_dir.is_absolute()
    for path in (s.profiles_path, s.usage_path, Path(s.feedback_db_url[len("sqlite:///"):])):
        assert PACKAGE_DIR not in path.resolve().parents


def test_log_settings(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    monkeypatch.setenv("LOG_DIR", "")
    s = Settings.from_env()
    assert s.log_level == "DEBUG"
    assert s.log_dir == ""


def test_overrides_and_invalid_numbers(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "  id.secret ")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.2")
    monkeypatch.setenv("LLM_MAX_RETRIES", "not-a-number")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "-5")
    monkeypatch.setenv("PROFILES_PATH", "/tmp/p.json")
    s = Settings.from_env()
    assert s.api_key == "id.secret"
    assert s.llm_temperature == 0.2
    assert s.llm_max_retries == 1
    assert s.llm_timeout_s == 30.0
    assert s.profiles_path == Path("/tmp/p.json")
