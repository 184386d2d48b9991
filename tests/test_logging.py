# =============================================
# File: tests/test_logging.py
# =============================================
import sys, os, json
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from apiutil import make_client
from taskpilot.utils import slog


def _events(caplog, name):
    out = []
    for rec in caplog.records:
        try:
            data = json.loads(rec.message)
        except ValueError:
            continue
        if data.get("event") == name:
            out.append(data)
    return out


def test_structured_log_on_success(tmp_path, caplog):
    caplog.set_level("INFO", logger="taskpilot")
    client = make_client(tmp_path)

    r = client.post("/recommend", json={"taskTitle": "Seed round prep", "taskType": "finance", "userId": "u-log"})
    assert r.status_code == 200

    evt = _events(caplog, "request.completed")[-1]
    assert evt["path"] == "/recommend"
    assert evt["status"] == 200
    assert evt["request_id"] == r.headers["X-Request-ID"]
    assert isinstance(evt["latency_ms"], int)
    assert evt["method"] == "POST"
    assert evt["engine"] == "heuristic"
    assert evt["feature"] == "recommend"
    # raw user ids never reach the request log
    assert evt["user"] == slog.uhash("u-log")
    assert "u-log" not in json.dumps(evt)


def test_structured_log_quota_exceeded(tmp_path, caplog):
    caplog.set_level("INFO", logger="taskpilot")
    client = make_client(tmp_path)
    body = {"taskTitle": "Seed round prep", "taskType": "finance", "userId": "u-q"}
    for _ in range(4):
        client.post("/recommend", json=body)

    evt = _events(caplog, "request.completed")[-1]
    assert evt["status"] == 429
    assert evt["quota_exceeded"] is True


def test_uhash_is_short_and_stable():
    assert slog.uhash("abc") == slog.uhash(" abc ")
    assert len(slog.uhash("abc")) == 10
    assert slog.uhash(None) == ""
