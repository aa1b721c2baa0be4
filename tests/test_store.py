"""
Tests for the document stores — in-memory adapter and Firestore REST client.
The Firestore client is exercised against a fake requests.request.
"""
import pandas as pd
import pytest
import requests


class FakeResponse:

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


@pytest.fixture
def fake_http(monkeypatch):
    """Queue of responses (or exceptions) returned in order; calls are recorded."""
    from fitxtec import firestore_client
    calls, queue = [], []

    def fake_request(method, url, **kwargs):
        calls.append({"method": method, "url": url, **kwargs})
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(firestore_client.requests, "request", fake_request)
    monkeypatch.setattr(firestore_client.time, "sleep", lambda s: None)
    return calls, queue


@pytest.fixture
def fs():
    from fitxtec.firestore_client import FirestoreStore
    return FirestoreStore(project_id="demo", token="tok")


DOCS_URL = "https://firestore.googleapis.com/v1/projects/demo/databases/(default)/documents"


# ═══════════════════════════════════════════════════════════════════════
# MEMORY STORE
# ═══════════════════════════════════════════════════════════════════════

class TestMemoryStore:

    def test_query_sessions_filters_by_owner(self):
        from fitxtec.store import MemoryStore
        store = MemoryStore([{"usuarioId": "u1", "fecha": "2026-10-20"},
                             {"usuarioId": "u2"}, {"usuarioId": "u1"}])
        sessions = store.query_sessions("u1")
        assert len(sessions) == 2
        assert all(s["id"] for s in sessions)

    def test_reads_are_copies(self):
        from fitxtec.store import MemoryStore
        store = MemoryStore()
        data = {"a": [1, 2]}
        store.set_document("userStats/u1", data)
        data["a"].append(3)
        got = store.get_document("userStats/u1")
        assert got == {"a": [1, 2]}
        got["a"].append(4)
        assert store.get_document("userStats/u1") == {"a": [1, 2]}

    def test_set_is_full_replace(self):
        from fitxtec.store import MemoryStore
        store = MemoryStore()
        store.set_document("userStats/u1", {"a": 1, "b": 2})
        store.set_document("userStats/u1", {"c": 3})
        assert store.get_document("userStats/u1") == {"c": 3}

    def test_list_only_direct_children(self):
        from fitxtec.store import MemoryStore, insight_items_path, latest_insight_path
        store = MemoryStore()
        store.add_document(insight_items_path("u1"), {"created_at": 1})
        store.add_document(insight_items_path("u1"), {"created_at": 3})
        store.set_document(latest_insight_path("u1"), {"created_at": 3})
        docs = store.list_documents(insight_items_path("u1"), order_by="created_at", descending=True)
        assert [d["created_at"] for d in docs] == [3, 1]

    def test_paths(self):
        from fitxtec.store import insight_items_path, latest_insight_path, user_stats_path
        assert user_stats_path("u1") == "userStats/u1"
        assert insight_items_path("u1") == "aiInsights/u1/items"
        assert latest_insight_path("u1") == "aiInsights/u1/latest/data"


class TestGetStore:

    def test_memory_without_project(self, monkeypatch):
        from fitxtec import store
        monkeypatch.setattr(store, "FIRESTORE_PROJECT_ID", "")
        assert isinstance(store.get_store(), store.MemoryStore)

    def test_firestore_with_project(self, monkeypatch):
        from fitxtec import store
        from fitxtec.firestore_client import FirestoreStore
        monkeypatch.setattr(store, "FIRESTORE_PROJECT_ID", "demo")
        assert isinstance(store.get_store(), FirestoreStore)


# ═══════════════════════════════════════════════════════════════════════
# FIRESTORE CODEC
# ═══════════════════════════════════════════════════════════════════════

class TestCodec:

    def test_encode_scalars(self):
        from fitxtec.firestore_client import encode_value
        assert encode_value(None) == {"nullValue": None}
        assert encode_value(True) == {"booleanValue": True}
        assert encode_value(7) == {"integerValue": "7"}
        assert encode_value(2.5) == {"doubleValue": 2.5}
        assert encode_value("Chest") == {"stringValue": "Chest"}

    def test_encode_timestamp(self):
        from fitxtec.firestore_client import encode_value
        ts = pd.Timestamp("2026-10-20 08:00", tz="UTC")
        assert encode_value(ts) == {"timestampValue": "2026-10-20T08:00:00.000000Z"}

    def test_encode_nested(self):
        from fitxtec.firestore_client import encode_value
        got = encode_value({"history": [0.0, 500.0]})
        assert got == {"mapValue": {"fields": {"history": {"arrayValue": {"values": [
            {"doubleValue": 0.0}, {"doubleValue": 500.0}]}}}}}

    def test_unsupported_type(self):
        from fitxtec.firestore_client import encode_value
        with pytest.raises(TypeError):
            encode_value(object())

    def test_decode_document(self):
        from fitxtec.firestore_client import decode_document
        doc = {
            "name": "projects/demo/databases/(default)/documents/workoutSessions/abc",
            "fields": {
                "usuarioId": {"stringValue": "u1"},
                "fechaTimestamp": {"timestampValue": "2026-10-20T08:00:00Z"},
                "ejercicios": {"arrayValue": {"values": [{"mapValue": {"fields": {
                    "nombre": {"stringValue": "Squat"},
                    "series": {"arrayValue": {"values": [{"mapValue": {"fields": {
                        "reps": {"integerValue": "5"},
                        "weight": {"doubleValue": 100.0},
                        "done": {"booleanValue": True},
                    }}}]}},
                }}}]}},
                "empty": {"arrayValue": {}},
            },
        }
        got = decode_document(doc)
        assert got["id"] == "abc"
        assert got["fechaTimestamp"] == pd.Timestamp("2026-10-20 08:00", tz="UTC")
        assert got["ejercicios"][0]["series"][0] == {"reps": 5, "weight": 100.0, "done": True}
        assert got["empty"] == []

    def test_snapshot_survives_codec(self):
        from fitxtec.analytics import compute_stats
        from fitxtec.firestore_client import decode_fields, encode_fields
        snap = compute_stats("u1", [], now=pd.Timestamp("2026-10-21", tz="UTC"))
        assert decode_fields(encode_fields(snap)) == snap


# ═══════════════════════════════════════════════════════════════════════
# FIRESTORE STORE
# ═══════════════════════════════════════════════════════════════════════

class TestFirestoreStore:

    def test_auth_header(self, fs):
        assert fs.headers["Authorization"] == "Bearer tok"

    def test_query_sessions(self, fs, fake_http):
        calls, queue = fake_http
        queue.append(FakeResponse(200, [
            {"readTime": "2026-10-21T00:00:00Z"},
            {"document": {"name": f"{DOCS_URL}/workoutSessions/s1",
                          "fields": {"usuarioId": {"stringValue": "u1"}}}},
        ]))
        sessions = fs.query_sessions("u1")

        assert sessions == [{"usuarioId": "u1", "id": "s1"}]
        call = calls[0]
        assert call["method"] == "POST"
        assert call["url"] == f"{DOCS_URL}:runQuery"
        where = call["json"]["structuredQuery"]["where"]["fieldFilter"]
        assert where["field"] == {"fieldPath": "usuarioId"}
        assert where["op"] == "EQUAL"
        assert where["value"] == {"stringValue": "u1"}

    def test_set_document_is_patch(self, fs, fake_http):
        calls, queue = fake_http
        queue.append(FakeResponse(200, {}))
        fs.set_document("userStats/u1", {"user_id": "u1"})
        assert calls[0]["method"] == "PATCH"
        assert calls[0]["url"] == f"{DOCS_URL}/userStats/u1"
        assert calls[0]["json"] == {"fields": {"user_id": {"stringValue": "u1"}}}

    def test_get_missing_document(self, fs, fake_http):
        _, queue = fake_http
        queue.append(FakeResponse(404))
        assert fs.get_document("userStats/nobody") is None

    def test_get_document(self, fs, fake_http):
        _, queue = fake_http
        queue.append(FakeResponse(200, {"name": f"{DOCS_URL}/userStats/u1",
                                        "fields": {"user_id": {"stringValue": "u1"}}}))
        assert fs.get_document("userStats/u1") == {"user_id": "u1"}

    def test_add_document_returns_id(self, fs, fake_http):
        calls, queue = fake_http
        queue.append(FakeResponse(200, {"name": f"{DOCS_URL}/aiInsights/u1/items/xyz"}))
        assert fs.add_document("aiInsights/u1/items", {"advice": []}) == "xyz"
        assert calls[0]["method"] == "POST"

    def test_list_documents_paginates(self, fs, fake_http):
        calls, queue = fake_http
        queue.append(FakeResponse(200, {
            "documents": [{"name": "x/a", "fields": {"created_at": {"integerValue": "1"}}}],
            "nextPageToken": "p2",
        }))
        queue.append(FakeResponse(200, {
            "documents": [{"name": "x/b", "fields": {"created_at": {"integerValue": "2"}}}],
        }))
        docs = fs.list_documents("aiInsights/u1/items", order_by="created_at", descending=True)
        assert [d["id"] for d in docs] == ["b", "a"]
        assert "pageToken" not in calls[0]["params"]
        assert calls[1]["params"]["pageToken"] == "p2"

    def test_retries_server_errors(self, fs, fake_http):
        calls, queue = fake_http
        queue.extend([FakeResponse(503), FakeResponse(429), FakeResponse(200, {})])
        fs.set_document("userStats/u1", {})
        assert len(calls) == 3

    def test_persistent_server_error_raises(self, fs, fake_http):
        calls, queue = fake_http
        queue.extend([FakeResponse(500)] * 3)
        with pytest.raises(requests.exceptions.HTTPError):
            fs.set_document("userStats/u1", {})
        assert len(calls) == 3

    def test_client_error_is_not_retried(self, fs, fake_http):
        calls, queue = fake_http
        queue.append(FakeResponse(403))
        with pytest.raises(requests.exceptions.HTTPError):
            fs.query_sessions("u1")
        assert len(calls) == 1

    def test_timeouts_retried_then_raised(self, fs, fake_http):
        calls, queue = fake_http
        queue.extend([requests.exceptions.Timeout("slow")] * 3)
        with pytest.raises(requests.exceptions.Timeout):
            fs.get_document("userStats/u1")
        assert len(calls) == 3

    def test_timeout_then_success(self, fs, fake_http):
        _, queue = fake_http
        queue.extend([requests.exceptions.ConnectionError("reset"), FakeResponse(404)])
        assert fs.get_document("userStats/u1") is None

    def test_append_is_sent_once_on_server_error(self, fs, fake_http):
        calls, queue = fake_http
        queue.extend([FakeResponse(503), FakeResponse(200, {"name": "x/dup"})])
        with pytest.raises(requests.exceptions.HTTPError):
            fs.add_document("aiInsights/u1/items", {"advice": []})
        assert len(calls) == 1

    def test_append_is_sent_once_on_timeout(self, fs, fake_http):
        calls, queue = fake_http
        queue.extend([requests.exceptions.Timeout("slow"), FakeResponse(200, {"name": "x/dup"})])
        with pytest.raises(requests.exceptions.Timeout):
            fs.add_document("aiInsights/u1/items", {"advice": []})
        assert len(calls) == 1
