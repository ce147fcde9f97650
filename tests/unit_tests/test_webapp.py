"""Tests for FastAPI webapp endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from low_energy_ai.config import settings
from low_energy_ai.data_objs.chat_objs import ChatReply
from low_energy_ai.utils.chat_client import ChatCompletionError
from webapp import app


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session_id(client):
    response = client.post("/api/sessions")
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["session_id"]


@pytest.fixture
def auth_required(monkeypatch):
    monkeypatch.setattr(settings, "REQUIRE_AUTH", True)
    monkeypatch.setattr(settings, "API_KEY", "secret-key")


# ============================================================================
# Info endpoints
# ============================================================================


class TestInfoEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Low Energy AI API"
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["tiers_loaded"] == 6
        assert "active_sessions" in data

    def test_config(self, client):
        data = client.get("/api/config").json()
        assert data["estimated_tokens_per_query"] == settings.ESTIMATED_TOKENS_PER_QUERY
        assert data["reference_tier"] == "gpt-4.1"
        assert "OPENAI_API_KEY" not in data


# ============================================================================
# Models and stateless routing
# ============================================================================


class TestModelEndpoints:

    def test_list_models(self, client):
        data = client.get("/api/models").json()
        assert data["count"] == 6
        assert [m["id"] for m in data["models"]][0] == "gpt-4.1-nano"
        nano = data["models"][0]
        assert nano["preset"] == {"efficiency": 5, "speed": 5, "complexity": 1}
        assert nano["estimated_query_cost"] == pytest.approx(0.00005)

    def test_get_model(self, client):
        data = client.get("/api/models/o4-mini").json()
        assert data["tier_rank"] == 3
        assert data["preset"] == {"efficiency": 3, "speed": 5, "complexity": 3}

    def test_get_unknown_model(self, client):
        response = client.get("/api/models/gpt-4o")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_route(self, client):
        response = client.post("/api/route", json={"efficiency": 1, "speed": 2, "complexity": 5})
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["selected_tier"]["id"] == "gpt-5.2"
        assert data["diagnostic_code"] == 33
        assert data["applied_rules"] == ["efficiency_step_up"]

    @pytest.mark.parametrize("payload", [
        {"efficiency": 0, "speed": 3, "complexity": 3},
        {"efficiency": 3, "speed": 6, "complexity": 3},
        {"efficiency": 3, "speed": 3},
    ])
    def test_route_rejects_invalid_preferences(self, client, payload):
        response = client.post("/api/route", json=payload)
        assert response.status_code == 422


# ============================================================================
# Sessions
# ============================================================================


class TestSessionEndpoints:

    def test_create_session(self, client):
        data = client.post("/api/sessions").json()
        assert data["preferences"] == {"efficiency": 3, "speed": 3, "complexity": 3}
        assert data["routing"]["selected_tier"]["id"] == "gpt-4.1"
        assert data["account"]["query_count"] == 0
        assert data["messages"] == []

    def test_get_missing_session(self, client):
        response = client.get("/api/sessions/does-not-exist")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_session(self, client, session_id):
        assert client.delete(f"/api/sessions/{session_id}").status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/sessions/{session_id}").status_code == status.HTTP_404_NOT_FOUND
        assert client.delete(f"/api/sessions/{session_id}").status_code == status.HTTP_404_NOT_FOUND

    def test_update_preferences(self, client, session_id):
        response = client.put(
            f"/api/sessions/{session_id}/preferences",
            json={"efficiency": 5, "speed": 5, "complexity": 1},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["routing"]["selected_tier"]["id"] == "gpt-4.1-nano"

    def test_pick_model(self, client, session_id):
        data = client.put(f"/api/sessions/{session_id}/model", json={"model_id": "gpt-5-mini"}).json()
        assert data["routing"]["selected_tier"]["id"] == "gpt-5-mini"
        assert data["preferences"] == {"efficiency": 3, "speed": 3, "complexity": 4}

    def test_pick_unknown_model(self, client, session_id):
        response = client.put(f"/api/sessions/{session_id}/model", json={"model_id": "gpt-4o"})
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestChatEndpoints:

    def test_chat_success(self, client, session_id):
        client.put(f"/api/sessions/{session_id}/model", json={"model_id": "gpt-4.1-nano"})
        fake_reply = ChatReply(reply="Hello!", model_id="gpt-4.1-nano")

        with patch("low_energy_ai.utils.chat_client.complete_chat", AsyncMock(return_value=fake_reply)):
            response = client.post(f"/api/sessions/{session_id}/chat", json={"message": "Hi"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["reply"] == "Hello!"
        assert data["saved"] == pytest.approx(0.00095)
        assert data["session"]["account"]["query_count"] == 1
        assert [m["role"] for m in data["session"]["messages"]] == ["user", "assistant"]

    def test_chat_failure_returns_502(self, client, session_id):
        with patch(
            "low_energy_ai.utils.chat_client.complete_chat",
            AsyncMock(side_effect=ChatCompletionError("Completion failed for gpt-4.1: timeout")),
        ):
            response = client.post(f"/api/sessions/{session_id}/chat", json={"message": "Hi"})

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert "timeout" in response.json()["detail"]
        snapshot = client.get(f"/api/sessions/{session_id}").json()
        assert snapshot["account"]["query_count"] == 0
        assert snapshot["messages"] == []

    def test_chat_rejects_empty_message(self, client, session_id):
        response = client.post(f"/api/sessions/{session_id}/chat", json={"message": ""})
        assert response.status_code == 422

    def test_clear_chat_and_reset(self, client, session_id):
        fake_reply = ChatReply(reply="Hello!", model_id="gpt-4.1")
        with patch("low_energy_ai.utils.chat_client.complete_chat", AsyncMock(return_value=fake_reply)):
            client.post(f"/api/sessions/{session_id}/chat", json={"message": "Hi"})

        cleared = client.delete(f"/api/sessions/{session_id}/messages").json()
        assert cleared["messages"] == []
        assert cleared["account"]["query_count"] == 1

        client.put(f"/api/sessions/{session_id}/model", json={"model_id": "gpt-5.2"})
        reset = client.post(f"/api/sessions/{session_id}/reset").json()
        assert reset["preferences"] == {"efficiency": 3, "speed": 3, "complexity": 3}
        assert reset["account"]["query_count"] == 0
        assert reset["account"]["total_savings"] == 0.0


# ============================================================================
# Authentication
# ============================================================================


class TestAuthentication:

    def test_health_is_public(self, client, auth_required):
        assert client.get("/api/health").status_code == status.HTTP_200_OK

    def test_missing_key(self, client, auth_required):
        response = client.get("/api/models")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert "API key required" in response.json()["detail"]

    def test_wrong_key(self, client, auth_required):
        response = client.get("/api/models", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_valid_key(self, client, auth_required):
        response = client.get("/api/models", headers={"Authorization": "Bearer secret-key"})
        assert response.status_code == status.HTTP_200_OK
