from fastapi import APIRouter, HTTPException
import logging

from ..schemas.pydantic_schemas import AnalyzeCallRequest
from ..db import get_db
from ..errors import ProviderNotConfigured
from ..services.openai_client import OpenAIClient
from ..services.call_analysis import analysis_columns, failed_analysis, upsert_lead_from_analysis
from ..services.transcript_labeler import parse_transcript

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze")
async def analyze_call(payload: AnalyzeCallRequest):
    if not payload.call_id:
        raise HTTPException(status_code=400, detail="callId is required")

    db = get_db()
    call = db.get_call(payload.call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")

    if call.get("analyzed") and call.get("analysis"):
        return {
            "success": True,
            "message": "Call already analyzed",
            "analysis": call["analysis"],
            "callId": call["id"],
        }

    transcript = call.get("transcript") or ""
    if not transcript.strip():
        raise HTTPException(status_code=400, detail="Call transcript is empty")

    logger.info(f"Analyzing call {call['id']}")
    try:
        result = await OpenAIClient().analyze_call(transcript)
    except ProviderNotConfigured as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not result["success"]:
        db.update_call(call["id"], failed_analysis(result["error"], result.get("raw_response")))
        raise HTTPException(status_code=500, detail=result["error"])

    analysis = result["analysis"]
    db.update_call(call["id"], analysis_columns(analysis))
    upsert_lead_from_analysis(db, call, analysis)

    logger.info(f"Call {call['id']} analyzed: type={analysis.get('call_type')} lead={analysis.get('is_lead')}")
    return {
        "success": True,
        "message": "Call analyzed successfully",
        "analysis": analysis,
        "callId": call["id"],
    }


@router.get("/{call_id}/transcript")
async def get_transcript(call_id: str):
    """Return the call transcript split into agent/user turns."""
    call = get_db().get_call(call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")
    segments = parse_transcript(call.get("transcript"), call.get("metadata"))
    return {"success": True, "callId": call["id"], "segments": segments}
