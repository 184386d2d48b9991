# =============================================
# File: taskpilot/main.py
# Purpose: FastAPI app factory: component wiring on app.state, request logging middleware
# =============================================
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI
from loguru import logger

from .config import Settings
from .db.repo import FeedbackRepository
from .routers import feedback, generation, interactions, metrics, prioritize, recommend, usage
from .services.catalog import CandidateStore
from .services.embedding import SemanticGateway
from .services.generation import TextGenerator
from .services.prioritizer import PriorityOrchestrator
from .services.profiles import InteractionLedger
from .services.recommender import RankingOrchestrator
from .utils import slog
from .utils.errors import ConfigError
from .utils.logging import setup_logging
from .utils.metrics import record_endpoint, record_request
from .utils.quota import UsageQuota

COMPONENTS = ("store", "embedder", "generator", "feedback", "ledger", "quota")


def _build_embedder(settings: Settings) -> Optional[SemanticGateway]:
    try:
        return SemanticGateway(
            settings.api_key,
            settings.embedding_url,
            model=settings.embedding_model,
            timeout_s=settings.embed_timeout_s,
        )
    except ConfigError as e:
        logger.warning(f"[startup] embedding gateway disabled, ranking uses keywords only: {e}")
        return None


def _build_generator(settings: Settings) -> Optional[TextGenerator]:
    try:
        return TextGenerator.from_settings(settings)
    except ConfigError as e:
        logger.warning(f"[startup] text generation disabled: {e}")
        return None


def create_app(settings: Optional[Settings] = None, **overrides: Any) -> FastAPI:
    """
    Build the app with explicitly constructed components.

    Any of store / embedder / generator / feedback / ledger / quota may be
    passed in (tests inject fakes; passing embedder=None disables it).
    """
    unknown = set(overrides) - set(COMPONENTS)
    if unknown:
        raise TypeError(f"unknown components: {sorted(unknown)}")

    settings = settings or Settings.from_env()
    setup_logging(settings.log_dir, settings.log_level)
    slog.set_level(settings.log_level)

    def component(name: str, build):
        return overrides[name] if name in overrides else build()

    store = component("store", lambda: CandidateStore(settings.data_dir))
    embedder = component("embedder", lambda: _build_embedder(settings))
    generator = component("generator", lambda: _build_generator(settings))
    feedback_repo = component("feedback", lambda: FeedbackRepository(settings.feedback_db_url))
    ledger = component(
        "ledger",
        lambda: InteractionLedger(settings.profiles_path, feedback_sink=feedback_repo.apply),
    )
    quota = component("quota", lambda: UsageQuota(settings.usage_path))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        ledger.close()

    app = FastAPI(title="Taskpilot", lifespan=lifespan)

    app.state.settings = settings
    app.state.store = store
    app.state.embedder = embedder
    app.state.generator = generator
    app.state.feedback = feedback_repo
    app.state.ledger = ledger
    app.state.quota = quota
    app.state.ranker = RankingOrchestrator(store, embedder)
    app.state.prioritizer = PriorityOrchestrator(generator)

    @app.middleware("http")
    async def _logging_middleware(request, call_next):
        start = time.perf_counter()
        req_id = slog.new_request_id()
        client_ip = request.client.host if request.client else None
        try:
            response = await call_next(request)
        except Exception as e:
            latency_ms = int((time.perf_counter() - start) * 1000)
            ctx = getattr(request.state, "log_context", {})
            slog.log_event(
                "request.error",
                request_id=req_id,
                path=str(request.url.path),
                method=request.method,
                latency_ms=latency_ms,
                client_ip=client_ip,
                error=str(e),
                **(ctx or {}),
            )
            raise
        latency_ms = int((time.perf_counter() - start) * 1000)
        ctx = getattr(request.state, "log_context", {}) or {}
        slog.finalize_request_log(
            request_id=req_id,
            method=request.method,
            path=str(request.url.path),
            status=response.status_code,
            latency_ms=latency_ms,
            client_ip=client_ip,
            ctx=ctx,
        )
        record_request(latency_ms=latency_ms)
        record_endpoint(method=request.method, path=str(request.url.path), latency_ms=latency_ms)
        response.headers["X-Request-ID"] = req_id
        return response

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "embedding": app.state.embedder is not None,
            "generation": app.state.generator is not None,
        }

    app.include_router(recommend.router)
    app.include_router(prioritize.router)
    app.include_router(generation.router)
    app.include_router(interactions.router)
    app.include_router(feedback.router)
    app.include_router(usage.router)
    app.include_router(metrics.router)
    return app


app = create_app()
