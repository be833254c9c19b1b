from fastapi import APIRouter, HTTPException
from datetime import datetime, timezone
import logging

from ..schemas.pydantic_schemas import CreateTokenRequest, RecordTestCallRequest, EndTestCallRequest
from ..db import get_db
from ..services.retell_client import RetellClient
from .common import provider_failure

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-token")
async def create_token(payload: CreateTokenRequest):
    if not payload.agent_id:
        raise HTTPException(status_code=400, detail="agent_id is required")
    try:
        web_call = await RetellClient().create_web_call(payload.agent_id, payload.retell_llm_dynamic_variables)
    except Exception as e:
        raise provider_failure(e, "Failed to create test call token")
    return {"success": True, **web_call}


@router.post("/record")
async def record_test_call(payload: RecordTestCallRequest):
    if not payload.user_id or not payload.bot_id:
        raise HTTPException(status_code=400, detail="user_id and bot_id are required")
    call = get_db().create_call({
        "user_id": payload.user_id,
        "bot_id": payload.bot_id,
        "phone_number": "test_call",
        "contact_name": "Test Call",
        "status": "in_progress",
        "started_at": datetime.now(timezone.utc).isoformat(),
        "is_test_call": True,
        "metadata": {
            "test_call": True,
            "retell_call_id": payload.retell_call_id,
            "agent_id": payload.agent_id,
        },
    })
    logger.info(f"Recorded test call {call['id']} for bot {payload.bot_id}")
    return {"success": True, "call": call}


@router.post("/{call_id}/end")
async def end_test_call(call_id: str, payload: EndTestCallRequest):
    db = get_db()
    call = db.get_call(call_id)
    if not call or not call.get("is_test_call"):
        raise HTTPException(status_code=404, detail="Test call not found")
    updates = {
        "status": "completed",
        "completed_at": datetime.now(timezone.utc).isoformat(),
        "transcript": payload.transcript or None,
        "is_test_call": True,
    }
    if payload.duration_seconds is not None:
        updates["duration_seconds"] = payload.duration_seconds
    return {"success": True, "call": db.update_call(call_id, updates)}
