from fastapi import APIRouter, HTTPException
from typing import Any, Dict, Optional
import logging

from ..schemas.pydantic_schemas import (
    ExtractProfileRequest,
    GenerateFromProfileRequest,
    FormatRawPromptRequest,
    SidebarGenerateRequest,
    SidebarFormatRequest,
)
from ..db import get_db
from ..services.credit_ledger import charge_action
from ..services.openai_client import OpenAIClient
from .common import blank, provider_failure

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


def _with_charge(body: Dict[str, Any], user_id: Optional[str], action: str,
                 metadata: Dict[str, Any]) -> Dict[str, Any]:
    """Charge for an action that already succeeded; problems only add a warning."""
    if not user_id:
        return body
    charge = charge_action(get_db(), user_id, action, metadata)
    body["creditsDeducted"] = charge.credits if charge.success else 0
    if charge.remaining is not None:
        body["remainingCredits"] = charge.remaining
    if charge.warning:
        body["warning"] = charge.warning
    return body


@router.post("/extract-document-profile")
async def extract_document_profile(payload: ExtractProfileRequest):
    if blank(payload.extracted_text):
        raise HTTPException(status_code=400, detail="extractedText is required")
    try:
        result = await OpenAIClient().extract_document_profile(payload.extracted_text)
    except Exception as e:
        raise provider_failure(e, "Failed to extract document profile")
    return {"success": True, **result}


@router.post("/generate-from-profile")
async def generate_from_profile(payload: GenerateFromProfileRequest):
    if not isinstance(payload.profile, dict) or not payload.profile:
        raise HTTPException(status_code=400, detail="profile is required and must be an object")
    try:
        result = await OpenAIClient().generate_prompt_from_profile(payload.profile)
    except Exception as e:
        raise provider_failure(e, "Failed to generate prompt from profile")
    return {"success": True, **result}


@router.post("/format-raw-prompt")
async def format_raw_prompt(payload: FormatRawPromptRequest):
    if blank(payload.raw_prompt):
        raise HTTPException(status_code=400, detail="rawPrompt is required")
    try:
        formatted = await OpenAIClient().format_raw_prompt(payload.raw_prompt)
    except Exception as e:
        raise provider_failure(e, "Failed to format prompt")
    return {"success": True, "formattedPrompt": formatted}


@router.post("/sidebar-generate")
async def sidebar_generate(payload: SidebarGenerateRequest):
    if blank(payload.business_type) or blank(payload.business_description):
        raise HTTPException(status_code=400, detail="businessType and businessDescription are required")
    try:
        generated = await OpenAIClient().sidebar_generate(payload.business_type, payload.business_description)
    except Exception as e:
        raise provider_failure(e, "Failed to generate prompt")
    logger.info(f"Sidebar prompt generated for a {payload.business_type} business")
    return _with_charge(
        {"success": True, "generatedPrompt": generated},
        payload.user_id,
        "prompt_generation",
        {"business_type": payload.business_type},
    )


@router.post("/sidebar-format")
async def sidebar_format(payload: SidebarFormatRequest):
    if blank(payload.prompt_to_format):
        raise HTTPException(status_code=400, detail="promptToFormat is required")
    try:
        formatted = await OpenAIClient().sidebar_format(payload.prompt_to_format)
    except Exception as e:
        raise provider_failure(e, "Failed to format prompt")
    return _with_charge(
        {"success": True, "formattedPrompt": formatted},
        payload.user_id,
        "prompt_formatting",
        {"prompt_length": len(payload.prompt_to_format)},
    )
