import smtplib
from unittest.mock import patch

import pytest

from inbound_genie.services.email_service import (
    EmailSendError,
    build_message,
    html_to_text,
    smtp_settings_for_sender,
)


@pytest.mark.parametrize("address, host", [
    ("me@gmail.com", "smtp.gmail.com"),
    ("me@hotmail.com", "smtp-mail.outlook.com"),
    ("me@yahoo.com", "smtp.mail.yahoo.com"),
    ("me@acme.io", "smtp.acme.io"),
])
def test_provider_host_from_domain(address, host):
    settings = smtp_settings_for_sender(address, "app-pass")
    assert settings.host == host
    assert settings.port == 587
    assert not settings.use_ssl


def test_html_to_text():
    assert html_to_text("<p>Hello <b>Dana</b></p>") == "Hello Dana"


def test_build_message_has_both_parts():
    msg = build_message("a@example.com", "b@example.com", "Hi", "plain", "<p>html</p>")
    assert msg["Message-ID"]
    assert msg.get_body(("plain",)).get_content().strip() == "plain"
    assert msg.get_body(("html",)).get_content().strip() == "<p>html</p>"


def test_send_email_validation(client):
    resp = client.post("/api/send-email", json={"userEmail": "me@gmail.com", "to": "you@example.com"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Missing required fields")

    resp = client.post("/api/send-email", json={
        "userEmail": "me@gmail", "appPassword": "x", "to": "you@example.com", "subject": "s", "text": "t",
    })
    assert resp.json()["error"] == "Invalid email format"


def test_root_email_requires_body(client):
    resp = client.post("/email", json={
        "from_email": "me@gmail.com", "to_email": "you@example.com", "subject": "s", "smtp_password": "x",
    })
    assert resp.status_code == 400
    assert resp.json()["error"] == "Either body or html_body must be provided"


@patch("inbound_genie.services.email_service.smtplib.SMTP")
def test_send_email_over_starttls(mock_smtp, client):
    resp = client.post("/api/send-email", json={
        "userEmail": "me@gmail.com", "appPassword": "app-pass", "to": "you@example.com",
        "subject": "Hello", "html": "<p>Hi</p>",
    })

    assert resp.status_code == 200
    assert resp.json()["message"] == "Email sent successfully"
    mock_smtp.assert_called_once_with("smtp.gmail.com", 587, timeout=30)
    server = mock_smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("me@gmail.com", "app-pass")
    sent = server.send_message.call_args.args[0]
    assert sent["To"] == "you@example.com"


@patch("inbound_genie.services.email_service.smtplib.SMTP")
def test_auth_failure_message(mock_smtp, client):
    server = mock_smtp.return_value.__enter__.return_value
    server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    resp = client.post("/email", json={
        "from_email": "me@gmail.com", "to_email": "you@example.com", "subject": "s",
        "body": "hi", "smtp_password": "wrong",
    })

    assert resp.status_code == 500
    assert resp.json()["error"] == "Authentication failed. Please check your email and app password."


@patch("inbound_genie.services.email_service.smtplib.SMTP_SSL")
def test_custom_smtp_secure(mock_ssl, client):
    mock_ssl.return_value.__enter__.return_value.send_message.side_effect = ConnectionError("refused")

    resp = client.post("/api/send-email-custom", json={
        "userEmail": "me@acme.io", "appPassword": "p", "smtpHost": "mail.acme.io", "smtpPort": 465,
        "secure": True, "to": "you@example.com", "subject": "s", "text": "t",
    })

    mock_ssl.assert_called_once_with("mail.acme.io", 465, timeout=30)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Connection failed. Please check your SMTP host and port settings."


def test_system_email_needs_server_config(client):
    resp = client.post("/api/send-system-email", json={"to_email": "you@example.com", "subject": "Invoice", "body": "b"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "SMTP configuration is missing. Please check environment variables."


@patch("inbound_genie.services.email_service.smtplib.SMTP_SSL")
def test_system_email_uses_ssl_on_465(mock_ssl, client, monkeypatch):
    monkeypatch.setenv("SMTP_HOST", "smtp.inboundgenie.test")
    monkeypatch.setenv("SMTP_USER", "noreply@inboundgenie.test")
    monkeypatch.setenv("SMTP_PASSWORD", "pw")

    resp = client.post("/api/send-system-email", json={
        "to_email": "you@example.com", "subject": "Invoice", "body": "Line one\nLine two",
    })

    assert resp.status_code == 200
    sent = mock_ssl.return_value.__enter__.return_value.send_message.call_args.args[0]
    assert sent["From"] == "Inbound Genie <noreply@inboundgenie.test>"
    assert "Line one<br>Line two" in sent.get_body(("html",)).get_content()


def test_describe_maps_kinds():
    assert EmailSendError("x", "auth").describe("A", "C") == "A"
    assert EmailSendError("x", "connection").describe("A", "C") == "C"
    assert EmailSendError("boom").describe("A", "C") == "boom"
