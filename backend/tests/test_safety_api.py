"""
HTTP surface for crisis state: /safety/* and /health/healthz.
"""

from __future__ import annotations

import os
import sys

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import pytest
from fastapi.testclient import TestClient

from tracewell.domain.safety.repo import InMemoryCrisisStore
from tracewell.interfaces.http.deps import get_store
from tracewell.interfaces.http.main import app


@pytest.fixture
def store() -> InMemoryCrisisStore:
    return InMemoryCrisisStore()


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setenv("DEV_BYPASS_AUTH", "1")
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def no_store_client(monkeypatch):
    monkeypatch.setenv("DEV_BYPASS_AUTH", "1")
    app.dependency_overrides[get_store] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestSafetyState:
    def test_fresh_user_is_inactive(self, client):
        r = client.get("/safety/state")
        assert r.status_code == 200
        body = r.json()
        assert body["active"] is False
        assert body["safe_messages_since"] == 0
        assert body["pending_exit_check_in"] is False
        assert body["degraded"] is False

    def test_mark_then_state(self, client):
        r = client.post("/safety/mark", json={})
        assert r.json() == {"ok": True, "degraded": False}

        body = client.get("/safety/state").json()
        assert body["active"] is True
        assert body["last_crisis_source"] == "chat"
        assert body["last_crisis_tag"] == "distress"
        assert body["last_crisis_at"].endswith("Z")

    def test_mark_with_source_and_tag(self, client, store):
        client.post("/safety/mark", json={"source": "journal", "tag": "hopelessness"})
        row = store.fetch("dev-user")
        assert row["last_crisis_source"] == "journal"
        assert row["last_crisis_tag"] == "hopelessness"

    def test_window(self, client):
        assert client.get("/safety/window").json() == {"in_window": False, "degraded": False}
        client.post("/safety/mark", json={})
        assert client.get("/safety/window").json()["in_window"] is True

    def test_window_rejects_non_positive_minutes(self, client):
        r = client.get("/safety/window", params={"window_minutes": 0})
        assert r.status_code == 422
        assert r.json()["error"] == "validation_error"


class TestSafetyMessage:
    def test_classifier_flags_message(self, client, store):
        r = client.post("/safety/message", json={"text": "I want to end my life", "region": "US"})
        body = r.json()
        assert body["active"] is True
        assert body["safe_messages_since"] == 0
        assert body["level"] == "immediate"
        assert "988" in body["resources"]
        assert store.fetch("dev-user")["last_crisis_tag"] == "high-distress"

    def test_self_harm_language_is_tagged(self, client, store):
        body = client.post("/safety/message", json={"text": "I keep cutting myself"}).json()
        assert body["level"] == "elevated"
        assert body["active"] is True
        assert store.fetch("dev-user")["last_crisis_tag"] == "self-harm-language"

    def test_safe_message_counts_inside_window(self, client):
        client.post("/safety/message", json={"distressed": True})
        body = client.post("/safety/message", json={"text": "went for a walk, feeling a bit calmer"}).json()
        assert body["active"] is True
        assert body["safe_messages_since"] == 1
        assert body["level"] is None
        assert body["resources"] is None

    def test_explicit_flag_overrides_classifier(self, client):
        body = client.post("/safety/message", json={"text": "I want to die", "distressed": False}).json()
        assert body["active"] is False
        assert body["level"] == "immediate"
        assert body["resources"] is None

    def test_safe_message_without_history(self, client, store):
        body = client.post("/safety/message", json={"text": "hello"}).json()
        assert body == {
            "active": False,
            "safe_messages_since": 0,
            "pending_exit_check_in": False,
            "degraded": False,
            "level": None,
            "resources": None,
        }
        assert store.fetch("dev-user") is None


class TestDegradedStorage:
    def test_state_without_store(self, no_store_client):
        body = no_store_client.get("/safety/state").json()
        assert body["active"] is False
        assert body["degraded"] is True

    def test_message_without_store_still_returns_resources(self, no_store_client):
        r = no_store_client.post("/safety/message", json={"text": "I want to end it all"})
        assert r.status_code == 200
        body = r.json()
        assert body["degraded"] is True
        assert body["resources"]

    def test_health_reports_missing_store(self, no_store_client):
        assert no_store_client.get("/health/healthz").json() == {"ok": False, "store": False}


class TestMisc:
    def test_health_ok(self, client):
        assert client.get("/health/healthz").json() == {"ok": True, "store": True}

    def test_ping(self, client):
        assert client.get("/_/ping").json() == {"ok": True}

    def test_classify(self, client):
        body = client.get("/safety/classify", params={"text": "I can't cope and I have pills"}).json()
        assert body["level"] == "immediate"
        assert body["details"]["escalated_by"] == "means"

    def test_auth_required(self, monkeypatch):
        monkeypatch.delenv("DEV_BYPASS_AUTH", raising=False)
        r = TestClient(app).get("/safety/state")
        assert r.status_code == 401
        assert r.json()["error"] == "http_error"

    def test_malformed_bearer(self, monkeypatch):
        monkeypatch.delenv("DEV_BYPASS_AUTH", raising=False)
        r = TestClient(app).get("/safety/state", headers={"Authorization": "Token abc"})
        assert r.status_code == 401
