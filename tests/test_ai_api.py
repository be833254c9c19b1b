from unittest.mock import AsyncMock, patch


@patch("inbound_genie.api.ai_prompt.OpenAIClient")
def test_sidebar_generate_charges_two_credits(mock_client_cls, client, db, profile):
    mock_client_cls.return_value.sidebar_generate = AsyncMock(return_value="You are a friendly receptionist.")

    resp = client.post("/api/ai-prompt/sidebar-generate", json={
        "businessType": "dental clinic", "businessDescription": "Family dentistry", "userId": "user-1",
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["generatedPrompt"] == "You are a friendly receptionist."
    assert body["creditsDeducted"] == 2
    assert body["remainingCredits"] == 8
    assert "warning" not in body


@patch("inbound_genie.api.ai_prompt.OpenAIClient")
def test_sidebar_format_with_no_credits_still_succeeds(mock_client_cls, client, db):
    db.upsert_profile({"user_id": "broke", "Remaning_credits": 0})
    mock_client_cls.return_value.sidebar_format = AsyncMock(return_value="# Role\nReceptionist")

    resp = client.post("/api/ai-prompt/sidebar-format", json={"promptToFormat": "be nice", "userId": "broke"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["formattedPrompt"] == "# Role\nReceptionist"
    assert body["creditsDeducted"] == 0
    assert "insufficient credits" in body["warning"]
    assert db.get_profile("broke")["Remaning_credits"] == 0


@patch("inbound_genie.api.ai_prompt.OpenAIClient")
def test_sidebar_without_user_is_not_charged(mock_client_cls, client, db, profile):
    mock_client_cls.return_value.sidebar_format = AsyncMock(return_value="formatted")

    body = client.post("/api/ai-prompt/sidebar-format", json={"promptToFormat": "be nice"}).json()

    assert "creditsDeducted" not in body
    assert db.get_profile("user-1")["Remaning_credits"] == 10


def test_prompt_validation_messages(client):
    cases = [
        ("/api/ai-prompt/extract-document-profile", {"extractedText": "  "}, "extractedText is required"),
        ("/api/ai-prompt/generate-from-profile", {"profile": "text"}, "profile is required and must be an object"),
        ("/api/ai-prompt/format-raw-prompt", {}, "rawPrompt is required"),
        ("/api/ai-prompt/sidebar-generate", {"businessType": "spa"}, "businessType and businessDescription are required"),
        ("/api/ai-prompt/sidebar-format", {}, "promptToFormat is required"),
        ("/api/ai-email/generate-template", {"name": ""}, "name is required"),
        ("/api/chatbot/send-message", {"message": ""}, "message is required"),
    ]
    for path, payload, message in cases:
        resp = client.post(path, json=payload)
        assert resp.status_code == 400, path
        assert resp.json()["error"] == message


def test_ai_without_key_is_a_server_error(client):
    resp = client.post("/api/ai-prompt/format-raw-prompt", json={"rawPrompt": "be helpful"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "OPENAI_API_KEY is not configured"


@patch("inbound_genie.api.ai_prompt.OpenAIClient")
def test_extract_document_profile(mock_client_cls, client):
    mock_client_cls.return_value.extract_document_profile = AsyncMock(return_value={
        "extractedProfile": {"businessName": "Bright Dental"}, "missingFields": ["hours"],
    })

    body = client.post("/api/ai-prompt/extract-document-profile", json={"extractedText": "Bright Dental"}).json()

    assert body["success"] is True
    assert body["missingFields"] == ["hours"]


@patch("inbound_genie.api.chatbot.OpenAIClient")
def test_chatbot_reply(mock_client_cls, client):
    chat = AsyncMock(return_value="Agents live under Bots.")
    mock_client_cls.return_value.chat = chat
    history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

    body = client.post("/api/chatbot/send-message", json={
        "message": "Where are my agents?", "conversationHistory": history,
    }).json()

    assert body == {"success": True, "response": "Agents live under Bots.", "message": "Agents live under Bots."}
    chat.assert_awaited_once_with("Where are my agents?", history)


@patch("inbound_genie.api.ai_email.OpenAIClient")
def test_generate_email(mock_client_cls, client):
    generate = AsyncMock(return_value={"subject": "Following up", "body": "Hi Dana"})
    mock_client_cls.return_value.generate_email = generate

    body = client.post("/api/ai-email/generate", json={
        "leadInfo": {"name": "Dana"}, "emailType": "follow-up", "tone": "friendly",
    }).json()

    assert body == {"success": True, "subject": "Following up", "body": "Hi Dana"}
    generate.assert_awaited_once_with({"name": "Dana"}, email_type="follow-up", tone="friendly",
                                      purpose=None, context=None)


async def test_chat_history_is_truncated():
    from inbound_genie.services.openai_client import CHAT_HISTORY_LIMIT, OpenAIClient

    client = OpenAIClient()
    client._complete = AsyncMock(return_value="ok")
    history = [{"role": "user", "content": f"m{i}"} for i in range(15)]

    await client.chat("latest", history)

    messages = client._complete.await_args.args[1]
    assert len(messages) == CHAT_HISTORY_LIMIT + 2
    assert messages[1]["content"] == "m5"
    assert messages[-1] == {"role": "user", "content": "latest"}


async def test_auth_errors_are_not_retried(monkeypatch):
    import httpx
    import pytest
    from openai import AuthenticationError
    from unittest.mock import MagicMock
    from inbound_genie.services.openai_client import OpenAIClient

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = OpenAIClient()
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    create = AsyncMock(side_effect=AuthenticationError(
        "Incorrect API key", response=httpx.Response(401, request=request), body=None,
    ))
    client.client = MagicMock()
    client.client.chat.completions.create = create

    with pytest.raises(AuthenticationError):
        await client.chat("hello", [])

    assert create.await_count == 1
