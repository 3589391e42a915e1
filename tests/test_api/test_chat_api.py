"""Tests for the chat API endpoint."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from clinic_assistant.api.app import create_app
from clinic_assistant.assistant import Reply, ReplyOption, ReplyType


@pytest.fixture
def mock_conversational_router():
    """Mock conversational router stored in app.state."""
    router = MagicMock()
    router.handle = AsyncMock(
        return_value=Reply(
            text="Nöroloji doktorlarımız:",
            type=ReplyType.DOCTOR_LIST,
            data=[{"id": "doc-1", "fullName": "Dr. Ali Vural", "clinicName": "Ege Life"}],
            options=[ReplyOption(label="📅 Yeni Randevu Al", action="Yeni randevu almak istiyorum")],
        )
    )
    return router


@pytest.fixture
def client(mock_conversational_router):
    app = create_app()
    app.state.conversational_router = mock_conversational_router
    return TestClient(app)


class TestChatEndpoint:
    """Tests for POST /api/v1/chat."""

    def test_returns_reply_envelope(self, client):
        response = client.post("/api/v1/chat", json={"text": "Nöroloji doktorları"})

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "DOCTOR_LIST"
        assert body["text"] == "Nöroloji doktorlarımız:"
        assert body["data"][0]["fullName"] == "Dr. Ali Vural"
        assert body["options"] == [
            {"label": "📅 Yeni Randevu Al", "action": "Yeni randevu almak istiyorum"}
        ]

    def test_anonymous_request(self, client, mock_conversational_router):
        client.post("/api/v1/chat", json={"text": "Merhaba"})

        mock_conversational_router.handle.assert_awaited_once_with("Merhaba", patient_id=None)

    def test_patient_header_is_forwarded(self, client, mock_conversational_router):
        client.post(
            "/api/v1/chat",
            json={"text": "  Randevularım  "},
            headers={"X-Patient-Id": "demo-patient"},
        )

        mock_conversational_router.handle.assert_awaited_once_with(
            "Randevularım", patient_id="demo-patient"
        )

    def test_blank_patient_header_is_anonymous(self, client, mock_conversational_router):
        client.post("/api/v1/chat", json={"text": "İlaçlarım"}, headers={"X-Patient-Id": "  "})

        assert mock_conversational_router.handle.call_args.kwargs["patient_id"] is None

    def test_empty_text_rejected(self, client, mock_conversational_router):
        response = client.post("/api/v1/chat", json={"text": "   "})

        assert response.status_code == 400
        mock_conversational_router.handle.assert_not_called()

    def test_missing_text_field(self, client):
        response = client.post("/api/v1/chat", json={})
        assert response.status_code == 422

    def test_unexpected_error_returns_500(self, mock_conversational_router):
        mock_conversational_router.handle.side_effect = RuntimeError("boom")
        app = create_app()
        app.state.conversational_router = mock_conversational_router
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/api/v1/chat", json={"text": "Merhaba"})

        assert response.status_code == 500
        assert response.json()["error"] == "Internal server error"
