from fastapi import APIRouter, HTTPException
import logging

from ..schemas.pydantic_schemas import EmailGenerateRequest, EmailTemplateRequest
from ..services.openai_client import OpenAIClient
from .common import blank, provider_failure

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate")
async def generate_email(payload: EmailGenerateRequest):
    try:
        result = await OpenAIClient().generate_email(
            payload.lead_info,
            email_type=payload.email_type or "follow-up",
            tone=payload.tone or "professional",
            purpose=payload.purpose,
            context=payload.context,
        )
    except Exception as e:
        raise provider_failure(e, "Failed to generate email")
    return {"success": True, **result}


@router.post("/generate-template")
async def generate_template(payload: EmailTemplateRequest):
    if blank(payload.name):
        raise HTTPException(status_code=400, detail="name is required")
    try:
        result = await OpenAIClient().generate_email_template(
            payload.name,
            description=payload.description,
            email_type=payload.email_type or "follow-up",
            tone=payload.tone or "professional",
            purpose=payload.purpose,
        )
    except Exception as e:
        raise provider_failure(e, "Failed to generate email template")
    logger.info(f"Generated email template '{payload.name}'")
    return {"success": True, **result}
