from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import hashlib
import hmac
import json
import logging

from ..config import env
from ..db import get_db
from ..services.credit_ledger import charge_call

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()

PROCESSED = {"success": True, "message": "Webhook processed successfully"}


def verify_signature(request_body: bytes, signature: Optional[str]) -> bool:
    secret = env("SUPABASE_WEBHOOK_SECRET")
    if not secret:
        return True  # allow in local dev
    if not signature:
        return False
    digest = hmac.new(secret.encode(), request_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest, signature)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _failed(error: Exception) -> JSONResponse:
    # Acknowledge anyway so the sender does not retry
    return JSONResponse(status_code=200, content={"success": False, "error": str(error) or "Webhook processing failed"})


def _safe_activity(db, user_id: str, activity_type: str, description: str, metadata: Dict[str, Any]) -> None:
    try:
        db.log_activity(user_id, activity_type, description, metadata)
    except Exception as e:
        logger.error(f"Error logging activity {activity_type} for {user_id}: {e}")


def handle_user_created(db, user: Dict[str, Any]) -> None:
    if db.get_profile(user["id"]) is None:
        metadata = user.get("user_metadata") or user.get("raw_user_meta_data") or {}
        db.upsert_profile({
            "user_id": user["id"],
            "email": user.get("email"),
            "full_name": metadata.get("full_name") or "",
            "timezone": "UTC",
            "retell_api_key": env("RETELL_API_KEY") or None,
            "total_minutes_used": 0,
            "Total_credit": 0,
            # Credits arrive with the tour completion reward
            "Remaning_credits": 0,
            "is_deactivated": False,
            "payment_status": "unpaid",
            "trial_credits_expires_at": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        })
        logger.info(f"Created fallback profile for {user['id']}")
    _safe_activity(db, user["id"], "account_created", "User account created",
                   {"email": user.get("email"), "created_at": user.get("created_at")})


def handle_user_updated(db, user: Dict[str, Any], old_user: Optional[Dict[str, Any]]) -> None:
    was_verified = (old_user or {}).get("email_confirmed_at") is None and user.get("email_confirmed_at") is not None
    if not was_verified:
        return
    now = _now()
    db.update_profile(user["id"], {"last_activity_at": now, "phone_verified": True})
    _safe_activity(db, user["id"], "account_login", "Email verified and account activated", {
        "email": user.get("email"),
        "verified_at": user.get("email_confirmed_at"),
        "event": "email_verified",
    })
    try:
        db.create_notification(
            user["id"],
            "Email Verified",
            "Your email has been verified successfully. Welcome to Inbound Genie!",
            type="success",
        )
    except Exception as e:
        logger.warning(f"Could not create welcome notification for {user['id']}: {e}")


def handle_user_deleted(db, user: Dict[str, Any]) -> None:
    _safe_activity(db, user["id"], "account_deactivated", "User account deleted",
                   {"email": user.get("email"), "deleted_at": _now()})


@router.post("/supabase/auth")
async def supabase_auth_webhook(request: Request):
    body = await request.body()
    sig = request.headers.get("x-supabase-signature") or request.headers.get("x-webhook-signature")
    if not verify_signature(body, sig):
        logger.warning("Invalid webhook signature")
        return JSONResponse(status_code=401, content={"success": False, "error": "Invalid webhook signature"})

    try:
        event = json.loads(body.decode("utf-8") or "{}")
        event_type = event.get("type")
        record = event.get("record") or {}
        logger.info(f"Supabase auth webhook: {event_type} for {record.get('id')}")

        db = get_db()
        if record.get("id"):
            if event_type == "INSERT":
                handle_user_created(db, record)
            elif event_type == "UPDATE":
                handle_user_updated(db, record, event.get("old_record"))
            elif event_type == "DELETE":
                handle_user_deleted(db, record)
            else:
                logger.info(f"Unhandled auth webhook type: {event_type}")
    except Exception as e:
        logger.error(f"Error processing Supabase auth webhook: {e}")
        return _failed(e)
    return PROCESSED


def _call_field(event: Dict[str, Any], key: str, call_key: Optional[str] = None) -> Any:
    call = event.get("call") if isinstance(event.get("call"), dict) else {}
    return event.get(key) or call.get(call_key or key)


def handle_call_started(db, event: Dict[str, Any]) -> None:
    call_id = _call_field(event, "call_id", "id")
    metadata = event.get("metadata") if isinstance(event.get("metadata"), dict) else {}
    user_id = event.get("user_id") or metadata.get("user_id")
    if not call_id or not user_id:
        logger.warning("Retell call_started event missing call_id or user_id")
        return
    db.upsert_call({
        "id": call_id,
        "user_id": user_id,
        "phone_number": _call_field(event, "phone_number"),
        "status": "in_progress",
        "started_at": _now(),
        "metadata": event,
    })
    logger.info(f"Call {call_id} started for user {user_id}")


def handle_call_ended(db, event: Dict[str, Any]) -> None:
    call_id = _call_field(event, "call_id", "id")
    if not call_id:
        logger.warning("Retell call_ended event missing call_id")
        return
    existing = db.get_call(call_id)
    if existing and existing.get("status") == "completed":
        logger.info(f"Call {call_id} already completed, ignoring repeated end event")
        return
    duration = _call_field(event, "duration_seconds", "duration")
    now = _now()
    call = db.update_call(call_id, {
        "status": "completed",
        "duration_seconds": duration,
        "transcript": _call_field(event, "transcript"),
        "recording_url": _call_field(event, "recording_url"),
        "completed_at": now,
        "webhook_response": event,
        "updated_at": now,
    })
    user_id = (call or {}).get("user_id") or event.get("user_id")
    if not user_id:
        logger.warning(f"Call {call_id} ended without a known user, no credits charged")
        return
    charge = charge_call(db, user_id, call_id, duration)
    if not charge.success:
        logger.warning(f"Could not charge credits for call {call_id}: {charge.warning}")
    logger.info(f"Call {call_id} ended, {charge.credits} credits charged")


def handle_call_analysis(db, event: Dict[str, Any]) -> None:
    call_id = _call_field(event, "call_id", "id")
    analysis = event.get("analysis") or event.get("data")
    if not call_id or not isinstance(analysis, dict):
        logger.warning("Retell call_analysis event missing call_id or analysis")
        return
    db.update_call(call_id, {"webhook_response": event, "updated_at": _now()})
    db.upsert_call_analytics({
        "call_id": call_id,
        "user_id": event.get("user_id"),
        "sentiment": analysis.get("sentiment"),
        "is_lead": analysis.get("is_lead"),
        "lead_quality_score": analysis.get("lead_quality_score"),
        "ai_analysis_data": analysis,
        "created_at": _now(),
    })
    logger.info(f"Stored Retell analysis for call {call_id}")


RETELL_HANDLERS = {
    "call_started": handle_call_started,
    "call.connected": handle_call_started,
    "call_ended": handle_call_ended,
    "call.ended": handle_call_ended,
    "call_analysis": handle_call_analysis,
}


@router.post("/retell")
async def retell_webhook(request: Request):
    logger.info("Received webhook request from Retell AI")
    try:
        body = await request.body()
        event = json.loads(body.decode("utf-8") or "{}")
        event_type = event.get("event") or event.get("type")
        handler = RETELL_HANDLERS.get(event_type)
        if handler is None:
            logger.info(f"Unhandled Retell event type: {event_type}")
        else:
            handler(get_db(), event)
    except Exception as e:
        logger.error(f"Error processing Retell webhook: {e}")
        return _failed(e)
    return PROCESSED
