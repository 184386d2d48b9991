# =============================================
# File: tests/test_catalog_store.py
# Purpose: Candidate store source order, memoization, tolerance of bad records
# =============================================
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import json
import threading

from taskpilot.services.catalog import CandidateStore


def _res(i, **extra):
    row = {
        "id": i, "title": f"R{i}", "description": "d", "url": f"https://x/{i}",
        "type": "article", "tags": ["tools"], "stage": "idea", "clicks": 1, "likes": 1,
    }
    row.update(extra)
    return row


def _write(path, rows):
    path.write_text(json.dumps(rows), encoding="utf-8")


def test_prefers_enriched_file(tmp_path):
    _write(tmp_path / "resources.json", [_res(1), _res(2)])
    _write(tmp_path / "resources_with_embeddings.json", [_res(1, embedding=[0.1, 0.2])])
    store = CandidateStore(tmp_path)
    items = store.load()
    assert [it.id for it in items] == [1]
    assert items[0].has_vector
    assert store.source == "resources_with_embeddings.json"


def test_falls_back_to_plain_file_when_enriched_is_corrupt(tmp_path):
    (tmp_path / "resources_with_embeddings.json").write_text("{not json", encoding="utf-8")
    _write(tmp_path / "resources.json", [_res(1), _res(2)])
    store = CandidateStore(tmp_path)
    assert [it.id for it in store.load()] == [1, 2]
    assert store.source == "resources.json"


def test_first_load_is_memoized(tmp_path):
    _write(tmp_path / "resources.json", [_res(1)])
    store = CandidateStore(tmp_path)
    first = store.load()
    _write(tmp_path / "resources.json", [_res(1), _res(2), _res(3)])
    assert store.load() is first


def test_empty_result_is_not_cached(tmp_path):
    store = CandidateStore(tmp_path)
    assert store.load() == []
    _write(tmp_path / "resources.json", [_res(7)])
    assert [it.id for it in store.load()] == [7]


def test_skips_malformed_and_duplicate_records(tmp_path):
    rows = [_res(1), {"id": "x", "title": 3}, _res(2, type="podcast"), _res(1, title="dup"), _res(3)]
    _write(tmp_path / "resources.json", rows)
    items = CandidateStore(tmp_path).load()
    assert [it.id for it in items] == [1, 3]
    assert items[0].title == "R1"


def test_get_by_id(tmp_path):
    _write(tmp_path / "resources.json", [_res(1), _res(2)])
    store = CandidateStore(tmp_path)
    assert store.get(2).title == "R2"
    assert store.get(99) is None


def test_concurrent_first_loads_converge(tmp_path):
    _write(tmp_path / "resources.json", [_res(i) for i in range(1, 50)])
    store = CandidateStore(tmp_path)
    results = []

    def worker():
        results.append(store.load())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(results) == 8
    assert all(r is results[0] for r in results)
