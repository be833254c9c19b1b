import asyncio
import logging
import re
import smtplib
import socket
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from ..config import SmtpSettings, system_smtp_settings
from ..errors import ProviderNotConfigured


logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TAG_RE = re.compile(r"<[^>]*>")

SMTP_TIMEOUT = 30

PROVIDER_HOSTS = [
    (("gmail.com",), "smtp.gmail.com"),
    (("outlook.com", "hotmail.com", "live.com"), "smtp-mail.outlook.com"),
    (("yahoo.com",), "smtp.mail.yahoo.com"),
]


class EmailSendError(Exception):
    def __init__(self, message: str, kind: str = "other") -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind

    def describe(self, auth_message: str, connection_message: str) -> str:
        if self.kind == "auth":
            return auth_message
        if self.kind == "connection":
            return connection_message
        return self.message or "Failed to send email"


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_RE.match(value) is not None


def html_to_text(html: str) -> str:
    return TAG_RE.sub("", html)


def text_to_html(text: str) -> str:
    return text.replace("\n", "<br>")


def smtp_settings_for_sender(user_email: str, password: str) -> SmtpSettings:
    """STARTTLS settings for a user mailbox, host picked from the address domain."""
    domain = user_email.split("@", 1)[1].lower()
    host = f"smtp.{domain}"
    for needles, provider_host in PROVIDER_HOSTS:
        if any(n in domain for n in needles):
            host = provider_host
            break
    return SmtpSettings(host=host, port=587, user=user_email, password=password,
                        from_email=user_email, from_name="")


def build_message(from_addr: str, to: str, subject: str, text: str, html: Optional[str] = None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = from_addr
    msg["To"] = to
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid()
    msg.set_content(text)
    if html:
        msg.add_alternative(html, subtype="html")
    return msg


def sender_address(settings: SmtpSettings) -> str:
    if settings.from_name:
        return formataddr((settings.from_name, settings.from_email))
    return settings.from_email


def _deliver(settings: SmtpSettings, msg: EmailMessage, use_ssl: Optional[bool] = None) -> str:
    ssl_mode = settings.use_ssl if use_ssl is None else use_ssl
    try:
        if ssl_mode:
            with smtplib.SMTP_SSL(settings.host, settings.port, timeout=SMTP_TIMEOUT) as server:
                server.login(settings.user, settings.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(settings.host, settings.port, timeout=SMTP_TIMEOUT) as server:
                server.ehlo()
                server.starttls()
                server.login(settings.user, settings.password)
                server.send_message(msg)
    except smtplib.SMTPAuthenticationError as e:
        raise EmailSendError(str(e), "auth") from e
    except (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected, socket.gaierror, ConnectionError, TimeoutError) as e:
        raise EmailSendError(str(e), "connection") from e
    except smtplib.SMTPException as e:
        raise EmailSendError(str(e)) from e
    return msg["Message-ID"]


async def send_message(settings: SmtpSettings, msg: EmailMessage, use_ssl: Optional[bool] = None) -> str:
    """Send over SMTP in a worker thread and return the Message-ID."""
    message_id = await asyncio.to_thread(_deliver, settings, msg, use_ssl)
    logger.info(f"Email sent to {msg['To']} via {settings.host}:{settings.port} ({message_id})")
    return message_id


VERIFICATION_SUBJECT = "Verify Your Email Address - Inbound Genie"

VERIFICATION_TEXT = """Email Verification

{greeting}

Thank you for signing up for Inbound Genie! To complete your registration, please verify your email address using the verification code below:

Your Verification Code: {code}

This code will expire in 10 minutes. If you didn't request this verification code, please ignore this email.

Best regards,
The Inbound Genie Team"""

VERIFICATION_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Email Verification</title></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background-color: #f8f9fa; padding: 30px; border-radius: 8px;">
    <h2 style="color: #2c3e50; margin-top: 0;">Email Verification</h2>
    <p>{greeting}</p>
    <p>Thank you for signing up for Inbound Genie! To complete your registration, please verify your email address using the verification code below:</p>
    <div style="background-color: #ffffff; border: 2px dashed #3498db; border-radius: 6px; padding: 20px; text-align: center; margin: 20px 0;">
      <p style="margin: 0; font-size: 14px; color: #666;">YOUR VERIFICATION CODE</p>
      <p style="margin: 10px 0 0 0; font-size: 32px; font-weight: bold; color: #2c3e50; letter-spacing: 4px;">{code}</p>
    </div>
    <p>This code will expire in 10 minutes. If you didn't request this verification code, please ignore this email.</p>
    <p style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd; color: #666; font-size: 12px;">Best regards,<br>The Inbound Genie Team</p>
  </div>
</body>
</html>"""


async def send_verification_email(email: str, code: str, full_name: Optional[str] = None) -> str:
    settings = system_smtp_settings()
    if settings is None:
        raise ProviderNotConfigured(
            "SMTP configuration is missing. Please check environment variables: SMTP_HOST, SMTP_USER, SMTP_PASSWORD"
        )
    if not is_valid_email(email):
        raise ValueError("Invalid email format")
    greeting = f"Hello {full_name}," if full_name else "Hello,"
    msg = build_message(
        sender_address(settings),
        email,
        VERIFICATION_SUBJECT,
        VERIFICATION_TEXT.format(greeting=greeting, code=code),
        VERIFICATION_HTML.format(greeting=greeting, code=code),
    )
    return await send_message(settings, msg)
