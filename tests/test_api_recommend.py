# =============================================
# File: tests/test_api_recommend.py
# Purpose: /recommend quota gate, exclusions, personalization and error mapping
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from apiutil import make_client, resource


def _payload(**kw):
    body = {"taskTitle": "Prepare seed round", "taskType": "finance", "userId": "founder-1"}
    body.update(kw)
    return body


def test_recommend_returns_ranked_resources(tmp_path):
    client = make_client(tmp_path)
    r = client.post("/recommend", json=_payload())
    assert r.status_code == 200
    data = r.json()
    assert 1 <= len(data["resources"]) <= 5
    assert data["method"] == "heuristic"
    assert data["remaining"] == 2
    first = data["resources"][0]
    assert set(first) == {"id", "title", "url", "description", "tags"}
    assert r.headers.get("X-Request-ID")


def test_excluded_ids_are_never_returned(tmp_path):
    client = make_client(tmp_path)
    r = client.post("/recommend", json=_payload(excludeIds=[1, 2, 3]))
    ids = [x["id"] for x in r.json()["resources"]]
    assert ids and not {1, 2, 3} & set(ids)


def test_everything_excluded_reports_exhaustion(tmp_path):
    client = make_client(tmp_path, catalog=[resource(1), resource(2)])
    r = client.post("/recommend", json=_payload(excludeIds=[1, 2]))
    assert r.status_code == 200
    assert r.json()["resources"] == []
    assert r.json()["message"] == "All resources have been shown"


def test_quota_exhausted_returns_429(tmp_path):
    client = make_client(tmp_path)
    for _ in range(3):
        assert client.post("/recommend", json=_payload()).status_code == 200
    r = client.post("/recommend", json=_payload())
    assert r.status_code == 429
    assert r.json()["detail"]["feature"] == "recommend"
    # other users are unaffected
    assert client.post("/recommend", json=_payload(userId="someone-else")).status_code == 200


def test_missing_catalog_is_503(tmp_path):
    client = make_client(tmp_path, catalog=None)
    r = client.post("/recommend", json=_payload())
    assert r.status_code == 503


def test_validation_errors(tmp_path):
    client = make_client(tmp_path)
    assert client.post("/recommend", json=_payload(taskTitle=" a ")).status_code == 422
    assert client.post("/recommend", json=_payload(taskType="sales")).status_code == 422
    assert client.post("/recommend", json={"taskType": "finance"}).status_code == 422


def test_liked_tags_come_from_the_ledger(tmp_path):
    catalog = [resource(1, tags=["design"]), resource(2, tags=["growth hacking"])]
    client = make_client(tmp_path, catalog=catalog)
    body = {"taskTitle": "weekly planning", "taskType": "other", "userId": "u-like"}

    before = client.post("/recommend", json=body).json()
    assert [x["id"] for x in before["resources"]] == [1, 2]

    r = client.post("/interactions", json={"userId": "u-like", "resourceId": 2, "action": "like"})
    assert r.status_code == 200

    after = client.post("/recommend", json=body).json()
    assert [x["id"] for x in after["resources"]] == [2, 1]


def test_explicit_liked_tags_override_ledger(tmp_path):
    catalog = [resource(1, tags=["design"]), resource(2, tags=["growth hacking"])]
    client = make_client(tmp_path, catalog=catalog)
    body = {"taskTitle": "weekly planning", "taskType": "other", "userId": "u2", "likedTags": ["design"]}
    assert [x["id"] for x in client.post("/recommend", json=body).json()["resources"]] == [1, 2]
