# =============================================
# File: taskpilot/config.py
# Purpose: Environment-driven settings (read at construction so tests can override)
# =============================================
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
# Shipped catalog (read-only once installed).
DEFAULT_DATA_DIR = PACKAGE_DIR / "data"
# Mutable state (feedback db, ledger, usage) lives under the working directory.
DEFAULT_STATE_DIR = Path("data")

DEFAULT_CHAT_URL = "https://open.bigmodel.cn/api/paas/v4"
DEFAULT_EMBEDDING_URL = "https://open.bigmodel.cn/api/paas/v4/embeddings"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class Settings:
    api_key: str
    chat_base_url: str
    embedding_url: str
    embedding_model: str
    llm_model: str
    llm_temperature: float
    llm_max_tokens: int
    llm_timeout_s: float
    llm_max_retries: int
    embed_timeout_s: float
    data_dir: Path
    state_dir: Path
    feedback_db_url: str
    profiles_path: Path
    usage_path: Path
    log_level: str
    log_dir: str

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = Path(os.getenv("DATA_DIR", "").strip() or DEFAULT_DATA_DIR)
        state_dir = Path(os.getenv("STATE_DIR", "").strip() or DEFAULT_STATE_DIR)
        return cls(
            api_key=os.getenv("AI_API_KEY", "").strip(),
            chat_base_url=os.getenv("AI_API_URL", "").strip() or DEFAULT_CHAT_URL,
            embedding_url=os.getenv("EMBEDDING_API_URL", "").strip() or DEFAULT_EMBEDDING_URL,
            embedding_model=os.getenv("EMBEDDING_MODEL", "embedding-2"),
            llm_model=os.getenv("LLM_MODEL", "glm-4-flash"),
            llm_temperature=_env_float("LLM_TEMPERATURE", 0.7),
            llm_max_tokens=_env_int("LLM_MAX_TOKENS", 2048),
            llm_timeout_s=_env_float("LLM_TIMEOUT_SECONDS", 30.0),
            llm_max_retries=_env_int("LLM_MAX_RETRIES", 1),
            embed_timeout_s=_env_float("EMBED_TIMEOUT_SECONDS", 10.0),
            data_dir=data_dir,
            state_dir=state_dir,
            feedback_db_url=os.getenv("FEEDBACK_DB_URL", "").strip() or f"sqlite:///{state_dir / 'feedback.db'}",
            profiles_path=Path(os.getenv("PROFILES_PATH", "").strip() or state_dir / "profiles" / "interactions.json"),
            usage_path=Path(os.getenv("USAGE_PATH", "").strip() or state_dir / "profiles" / "usage.json"),
            # LOG_DIR="" disables the file sink
            log_level=(os.getenv("LOG_LEVEL", "").strip() or "INFO").upper(),
            log_dir=os.getenv("LOG_DIR", "logs").strip(),
        )
