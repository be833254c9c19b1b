from fastapi import APIRouter, HTTPException
import logging

from ..schemas.pydantic_schemas import SendEmailRequest, SendEmailCustomRequest, EmailRequest, SystemEmailRequest
from ..config import SmtpSettings, system_smtp_settings
from ..services.email_service import (
    EmailSendError,
    build_message,
    html_to_text,
    is_valid_email,
    send_message,
    sender_address,
    smtp_settings_for_sender,
    text_to_html,
)

# Set up logger
logger = logging.getLogger(__name__)

# Mounted under /api
router = APIRouter()
# Mounted at the application root
root_router = APIRouter()

USER_AUTH_FAILED = "Authentication failed. Please check your email and app password."
USER_CONNECTION_FAILED = "Connection failed. Please check your internet connection and SMTP settings."
CUSTOM_CONNECTION_FAILED = "Connection failed. Please check your SMTP host and port settings."
SYSTEM_AUTH_FAILED = "Authentication failed. Please check SMTP credentials."
SYSTEM_CONNECTION_FAILED = "Connection failed. Please check SMTP server settings."


async def _send(settings: SmtpSettings, from_addr: str, to: str, subject: str, text: str, html: str,
                auth_message: str, connection_message: str, use_ssl=None):
    msg = build_message(from_addr, to, subject, text, html)
    try:
        message_id = await send_message(settings, msg, use_ssl)
    except EmailSendError as e:
        logger.error(f"Error sending email to {to}: {e}")
        raise HTTPException(status_code=500, detail=e.describe(auth_message, connection_message))
    return {"success": True, "message": "Email sent successfully", "messageId": message_id}


@router.post("/send-email")
async def send_email(payload: SendEmailRequest):
    if not payload.user_email or not payload.app_password or not payload.to or not payload.subject \
            or not (payload.text or payload.html):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields. Please provide: userEmail, appPassword, to, subject, and either text or html",
        )
    if not is_valid_email(payload.user_email) or not is_valid_email(payload.to):
        raise HTTPException(status_code=400, detail="Invalid email format")

    settings = smtp_settings_for_sender(payload.user_email, payload.app_password)
    return await _send(
        settings,
        payload.user_email,
        payload.to,
        payload.subject,
        payload.text or html_to_text(payload.html),
        payload.html or payload.text,
        USER_AUTH_FAILED,
        USER_CONNECTION_FAILED,
    )


@router.post("/send-email-custom")
async def send_email_custom(payload: SendEmailCustomRequest):
    if not payload.user_email or not payload.app_password or not payload.smtp_host or not payload.to \
            or not payload.subject or not (payload.text or payload.html):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields. Please provide: userEmail, appPassword, smtpHost, to, subject, "
                   "and either text or html",
        )
    if not is_valid_email(payload.user_email) or not is_valid_email(payload.to):
        raise HTTPException(status_code=400, detail="Invalid email format")

    settings = SmtpSettings(
        host=payload.smtp_host,
        port=int(payload.smtp_port),
        user=payload.user_email,
        password=payload.app_password,
        from_email=payload.user_email,
        from_name="",
    )
    return await _send(
        settings,
        payload.user_email,
        payload.to,
        payload.subject,
        payload.text or html_to_text(payload.html),
        payload.html or payload.text,
        USER_AUTH_FAILED,
        CUSTOM_CONNECTION_FAILED,
        use_ssl=payload.secure,
    )


@root_router.post("/email")
async def email(payload: EmailRequest):
    if not payload.from_email or not payload.to_email or not payload.subject or not payload.smtp_password:
        raise HTTPException(
            status_code=400,
            detail="Missing required fields. Please provide: from_email, to_email, subject, and smtp_password",
        )
    if not payload.body and not payload.html_body:
        raise HTTPException(status_code=400, detail="Either body or html_body must be provided")
    if not is_valid_email(payload.from_email) or not is_valid_email(payload.to_email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    settings = smtp_settings_for_sender(payload.from_email, payload.smtp_password)
    return await _send(
        settings,
        payload.from_email,
        payload.to_email,
        payload.subject,
        payload.body or html_to_text(payload.html_body),
        payload.html_body or text_to_html(payload.body),
        USER_AUTH_FAILED,
        USER_CONNECTION_FAILED,
    )


@router.post("/send-system-email")
async def send_system_email(payload: SystemEmailRequest):
    """Invoices and deactivation codes, sent with the server's own SMTP account."""
    if not payload.to_email or not payload.subject or not (payload.body or payload.html_body):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields. Please provide: to_email, subject, and either body or html_body",
        )
    if not is_valid_email(payload.to_email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    settings = system_smtp_settings()
    if settings is None:
        raise HTTPException(status_code=500, detail="SMTP configuration is missing. Please check environment variables.")

    logger.info(f"Sending system email ({payload.type or 'general'}) to {payload.to_email}")
    return await _send(
        settings,
        sender_address(settings),
        payload.to_email,
        payload.subject,
        payload.body or html_to_text(payload.html_body),
        payload.html_body or text_to_html(payload.body),
        SYSTEM_AUTH_FAILED,
        SYSTEM_CONNECTION_FAILED,
    )
