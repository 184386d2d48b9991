# =============================================
# File: taskpilot/utils/metrics.py
# Purpose: In-process counters & histograms for /metrics
# =============================================
from __future__ import annotations
from typing import Dict, Any, List
import threading
import time

_lock = threading.Lock()

_COUNTER_NAMES = ("requests_total", "quota_denied_total", "fallbacks_total", "remote_errors_total")
_counters: Dict[str, int] = {name: 0 for name in _COUNTER_NAMES}

# method -> count ("semantic", "heuristic", "ai", "baseline", "fallback")
_method_usage: Dict[str, int] = {}
# feature -> denied requests
_quota_denied: Dict[str, int] = {}

# Buckets: <=50,100,200,500,1000,2000,5000,10000, +inf
_latency_buckets: List[int] = [50, 100, 200, 500, 1000, 2000, 5000, 10000]
_latency_counts: List[int] = [0 for _ in _latency_buckets] + [0]

_MAX_SAMPLES: int = 1000
_endpoint_latency: Dict[str, List[float]] = {}   # "METHOD /path" -> [ms]
_endpoint_counts: Dict[str, int] = {}


def _avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _p95(values: List[float]) -> float:
    if not values:
        return 0.0
    xs = sorted(values)
    idx = int(0.95 * (len(xs) - 1))
    return xs[idx]


def _observe_latency_ms(ms: int) -> None:
    idx = len(_latency_buckets)
    for i, thr in enumerate(_latency_buckets):
        if ms <= thr:
            idx = i
            break
    _latency_counts[idx] += 1


def record_request(latency_ms: int) -> None:
    with _lock:
        _counters["requests_total"] += 1
        _observe_latency_ms(int(latency_ms))


def record_method(method: str | None, fallback: bool = False) -> None:
    """Count which path served a ranking/prioritization/report request."""
    if not method:
        return
    with _lock:
        _method_usage[method] = _method_usage.get(method, 0) + 1
        if fallback:
            _counters["fallbacks_total"] += 1


def record_quota_denied(feature: str) -> None:
    with _lock:
        _counters["quota_denied_total"] += 1
        _quota_denied[feature] = _quota_denied.get(feature, 0) + 1


def record_remote_error() -> None:
    with _lock:
        _counters["remote_errors_total"] += 1


def record_endpoint(method: str, path: str, latency_ms: float) -> None:
    key = f"{method.upper()} {path}"
    with _lock:
        _endpoint_counts[key] = _endpoint_counts.get(key, 0) + 1
        buf = _endpoint_latency.setdefault(key, [])
        buf.append(float(latency_ms))
        if len(buf) > _MAX_SAMPLES:
            del buf[: len(buf) - _MAX_SAMPLES]


def snapshot() -> Dict[str, Any]:
    with _lock:
        perf: Dict[str, Dict[str, float]] = {}
        for key, buf in _endpoint_latency.items():
            perf[key] = {
                "count": float(_endpoint_counts.get(key, 0)),
                "avg_latency_ms": _avg(buf),
                "p95_latency_ms": _p95(buf),
            }
        return {
            "counters": dict(_counters),
            "method_usage": dict(_method_usage),
            "quota_denied": dict(_quota_denied),
            "latency_ms": {
                "buckets": list(_latency_buckets) + ["+Inf"],
                "counts": list(_latency_counts),
            },
            "performance": {
                "endpoints": perf,
                "generated_at": time.time(),
            },
        }


def reset() -> None:
    with _lock:
        for name in _COUNTER_NAMES:
            _counters[name] = 0
        _method_usage.clear()
        _quota_denied.clear()
        _endpoint_latency.clear()
        _endpoint_counts.clear()
        for i in range(len(_latency_counts)):
            _latency_counts[i] = 0
