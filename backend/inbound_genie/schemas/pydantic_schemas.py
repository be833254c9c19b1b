from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any


class CamelModel(BaseModel):
    """Request body accepting camelCase keys from the frontend.

    Fields are optional so routes can answer with their own 400 messages
    instead of a generic validation error.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# Auth

class SignupRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    timezone: Optional[str] = None
    phone_number: Optional[str] = None


class SigninRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyEmailRequest(CamelModel):
    email: Optional[str] = None
    token: Optional[str] = None


class ResendVerificationRequest(CamelModel):
    email: Optional[str] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = None


# AI prompt builder

class ExtractProfileRequest(CamelModel):
    extracted_text: Optional[str] = None


class GenerateFromProfileRequest(CamelModel):
    profile: Optional[Any] = None


class FormatRawPromptRequest(CamelModel):
    raw_prompt: Optional[str] = None


class SidebarGenerateRequest(CamelModel):
    business_type: Optional[str] = None
    business_description: Optional[str] = None
    user_id: Optional[str] = None


class SidebarFormatRequest(CamelModel):
    prompt_to_format: Optional[str] = None
    user_id: Optional[str] = None


# Chatbot and AI email

class ChatbotMessageRequest(CamelModel):
    message: Optional[str] = None
    conversation_history: Optional[List[Dict[str, Any]]] = None


class EmailGenerateRequest(CamelModel):
    lead_info: Optional[Dict[str, Any]] = None
    email_type: Optional[str] = None
    tone: Optional[str] = None
    purpose: Optional[str] = None
    context: Optional[str] = None


class EmailTemplateRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    email_type: Optional[str] = None
    tone: Optional[str] = None
    purpose: Optional[str] = None


# Calls

class AnalyzeCallRequest(CamelModel):
    call_id: Optional[str] = None


class CreateTokenRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    agent_id: Optional[str] = None
    retell_llm_dynamic_variables: Optional[Dict[str, Any]] = None


class RecordTestCallRequest(BaseModel):
    user_id: Optional[str] = None
    bot_id: Optional[str] = None
    retell_call_id: Optional[str] = None
    agent_id: Optional[str] = None


class EndTestCallRequest(BaseModel):
    transcript: Optional[str] = None
    duration_seconds: Optional[float] = None


# Tour

class TourUserRequest(CamelModel):
    user_id: Optional[str] = None


# Email sending

class SendEmailRequest(CamelModel):
    user_email: Optional[str] = None
    app_password: Optional[str] = None
    to: Optional[str] = None
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None


class SendEmailCustomRequest(SendEmailRequest):
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    secure: bool = False


class EmailRequest(BaseModel):
    from_email: Optional[str] = None
    to_email: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    html_body: Optional[str] = None
    smtp_password: Optional[str] = None


class SystemEmailRequest(BaseModel):
    to_email: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    html_body: Optional[str] = None
    type: Optional[str] = None
