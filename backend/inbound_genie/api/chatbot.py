from fastapi import APIRouter, HTTPException

from ..schemas.pydantic_schemas import ChatbotMessageRequest
from ..services.openai_client import OpenAIClient
from .common import blank, provider_failure

router = APIRouter()


@router.post("/send-message")
async def send_message(payload: ChatbotMessageRequest):
    if blank(payload.message):
        raise HTTPException(status_code=400, detail="message is required")
    try:
        reply = await OpenAIClient().chat(payload.message, payload.conversation_history or [])
    except Exception as e:
        raise provider_failure(e, "Failed to send chatbot message")
    # "message" duplicates "response" for older clients
    return {"success": True, "response": reply, "message": reply}
