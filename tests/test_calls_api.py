from unittest.mock import AsyncMock, patch

import pytest

from inbound_genie.errors import ProviderError

ANALYSIS = {
    "call_type": "appointment",
    "call_outcome": "booked",
    "sentiment": "positive",
    "urgency_level": "medium",
    "confidence_score": 0.92,
    "intent_summary": "Wants a cleaning next week",
    "summary": "Caller booked a cleaning.",
    "is_lead": True,
    "lead_strength": "hot",
    "customer": {"name": "Dana Reyes", "phone_number": "+15550001111", "email": "dana@example.com"},
    "appointment": {"date": "2026-10-26", "time": "10:00", "timezone": "America/Chicago"},
}


@pytest.fixture
def call(db):
    db.bots["bot-1"] = {"id": "bot-1", "name": "Front Desk"}
    return db.create_call({
        "user_id": "user-1",
        "bot_id": "bot-1",
        "phone_number": "+15550001111",
        "transcript": "Hello, thanks for calling.\n\nI need a cleaning next week.",
        "status": "completed",
    })


def test_analyze_requires_call_id(client):
    resp = client.post("/api/calls/analyze", json={})
    assert resp.status_code == 400
    assert resp.json()["error"] == "callId is required"


def test_analyze_unknown_call(client):
    resp = client.post("/api/calls/analyze", json={"callId": "missing"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "Call not found"


def test_analyze_empty_transcript(client, db):
    empty = db.create_call({"user_id": "user-1", "transcript": "   "})
    resp = client.post("/api/calls/analyze", json={"callId": empty["id"]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Call transcript is empty"


@patch("inbound_genie.api.calls.OpenAIClient")
def test_analyze_stores_columns_and_lead(mock_client_cls, client, db, call):
    mock_client_cls.return_value.analyze_call = AsyncMock(return_value={"success": True, "analysis": ANALYSIS})

    resp = client.post("/api/calls/analyze", json={"callId": call["id"]})

    assert resp.status_code == 200
    assert resp.json()["message"] == "Call analyzed successfully"
    stored = db.get_call(call["id"])
    assert stored["analyzed"] is True
    assert stored["call_type"] == "appointment"
    assert stored["call_summary"] == "Caller booked a cleaning."
    assert stored["extracted_customer_data"]["name"] == "Dana Reyes"

    leads = list(db.leads.values())
    assert len(leads) == 1
    assert leads[0]["status"] == "hot"
    assert leads[0]["bot_name"] == "Front Desk"
    assert leads[0]["appointment_date"] == "2026-10-26"


@patch("inbound_genie.api.calls.OpenAIClient")
def test_analyze_updates_existing_lead(mock_client_cls, client, db, call):
    existing = db.insert_lead({"user_id": "user-1", "phone_number": "+15550001111", "status": "general"})
    mock_client_cls.return_value.analyze_call = AsyncMock(return_value={"success": True, "analysis": ANALYSIS})

    client.post("/api/calls/analyze", json={"callId": call["id"]})

    assert len(db.leads) == 1
    assert db.leads[existing["id"]]["status"] == "hot"


@patch("inbound_genie.api.calls.OpenAIClient")
def test_analyze_returns_cached_result(mock_client_cls, client, db, call):
    db.update_call(call["id"], {"analyzed": True, "analysis": ANALYSIS})

    resp = client.post("/api/calls/analyze", json={"callId": call["id"]})

    assert resp.json()["message"] == "Call already analyzed"
    mock_client_cls.return_value.analyze_call.assert_not_called()


@patch("inbound_genie.api.calls.OpenAIClient")
def test_analyze_failure_is_recorded(mock_client_cls, client, db, call):
    mock_client_cls.return_value.analyze_call = AsyncMock(return_value={
        "success": False, "error": "Failed to parse AI response as JSON", "raw_response": "not json",
    })

    resp = client.post("/api/calls/analyze", json={"callId": call["id"]})

    assert resp.status_code == 500
    stored = db.get_call(call["id"])
    assert stored["analysis"]["error"] == "Failed to parse AI response as JSON"
    assert stored["analysis"]["raw_response"] == "not json"


def test_analyze_without_openai_key(client, call):
    resp = client.post("/api/calls/analyze", json={"callId": call["id"]})
    assert resp.status_code == 500
    assert resp.json()["error"] == "OPENAI_API_KEY is not configured"


def test_labelled_transcript(client, call):
    resp = client.get(f"/api/calls/{call['id']}/transcript")
    assert resp.status_code == 200
    assert [s["role"] for s in resp.json()["segments"]] == ["agent", "user"]


def test_create_token_requires_agent(client):
    resp = client.post("/api/test-call/create-token", json={})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "agent_id is required"}


def test_create_token_without_retell_key(client):
    resp = client.post("/api/test-call/create-token", json={"agent_id": "agent_abc"})
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Retell API key not configured"}


@patch("inbound_genie.api.test_call.RetellClient")
def test_create_token_returns_web_call(mock_client_cls, client):
    mock_client_cls.return_value.create_web_call = AsyncMock(return_value={
        "call_id": "call_123", "access_token": "tok", "call_type": "web_call", "agent_id": "agent_abc",
    })

    resp = client.post("/api/test-call/create-token", json={"agent_id": "agent_abc"})

    assert resp.status_code == 200
    assert resp.json()["access_token"] == "tok"
    mock_client_cls.return_value.create_web_call.assert_awaited_once_with("agent_abc", None)


@patch("inbound_genie.api.test_call.RetellClient")
def test_create_token_provider_error(mock_client_cls, client):
    mock_client_cls.return_value.create_web_call = AsyncMock(side_effect=ProviderError("agent not found"))
    resp = client.post("/api/test-call/create-token", json={"agent_id": "agent_abc"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "agent not found"


def test_test_call_record_and_end(client, db):
    recorded = client.post("/api/test-call/record", json={
        "user_id": "user-1", "bot_id": "bot-1", "retell_call_id": "call_123", "agent_id": "agent_abc",
    })
    assert recorded.status_code == 200
    call_id = recorded.json()["call"]["id"]
    stored = db.get_call(call_id)
    assert stored["status"] == "in_progress"
    assert stored["is_test_call"] is True
    assert stored["metadata"]["retell_call_id"] == "call_123"

    ended = client.post(f"/api/test-call/{call_id}/end", json={"transcript": "Hi there", "duration_seconds": 42})
    assert ended.status_code == 200
    stored = db.get_call(call_id)
    assert stored["status"] == "completed"
    assert stored["transcript"] == "Hi there"
    assert stored["duration_seconds"] == 42


def test_end_unknown_test_call(client):
    assert client.post("/api/test-call/nope/end", json={}).status_code == 404
