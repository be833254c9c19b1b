import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

LEAD_STRENGTHS = ("hot", "warm", "cold")
CALL_TYPE_STATUSES = ("support", "order", "appointment")


def lead_status(analysis: Dict[str, Any]) -> str:
    if analysis.get("is_lead") and analysis.get("lead_strength") in LEAD_STRENGTHS:
        return analysis["lead_strength"]
    if analysis.get("call_type") in CALL_TYPE_STATUSES:
        return analysis["call_type"]
    return "general"


def analysis_columns(analysis: Dict[str, Any]) -> Dict[str, Any]:
    """Call columns denormalized from an analysis blob."""
    return {
        "analyzed": True,
        "analysis": analysis,
        "call_type": analysis.get("call_type"),
        "call_outcome": analysis.get("call_outcome"),
        "sentiment": analysis.get("sentiment"),
        "urgency_level": analysis.get("urgency_level"),
        "confidence_score": analysis.get("confidence_score"),
        "intent_summary": analysis.get("intent_summary"),
        "call_summary": analysis.get("summary"),
        "is_lead": analysis.get("is_lead"),
        "lead_strength": analysis.get("lead_strength"),
        "extracted_customer_data": analysis.get("customer") or {},
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }


def failed_analysis(error: str, raw_response: Optional[str]) -> Dict[str, Any]:
    return {
        "analyzed": True,
        "analysis": {
            "error": error,
            "raw_response": raw_response,
            "analyzed_at": datetime.now(timezone.utc).isoformat(),
        },
    }


def _section(analysis: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = analysis.get(key)
    return value if isinstance(value, dict) else {}


def build_lead_row(call: Dict[str, Any], analysis: Dict[str, Any], bot_name: Optional[str]) -> Dict[str, Any]:
    customer = _section(analysis, "customer")
    next_step = _section(analysis, "next_step")
    appointment = _section(analysis, "appointment")
    order = _section(analysis, "order")
    support = _section(analysis, "support")
    return {
        "user_id": call.get("user_id"),
        "name": customer.get("name") or call.get("contact_name"),
        "email": customer.get("email"),
        "phone_number": customer.get("phone_number") or call.get("phone_number"),
        "address": customer.get("address"),
        "bot_name": bot_name,
        "status": lead_status(analysis),
        "call_id": call.get("id"),
        "call_type": analysis.get("call_type"),
        "lead_strength": analysis.get("lead_strength"),
        "intent_summary": analysis.get("intent_summary"),
        "call_summary": analysis.get("summary"),
        "call_outcome": analysis.get("call_outcome"),
        "next_step_type": next_step.get("type"),
        "next_step_details": next_step.get("details"),
        "appointment_date": appointment.get("date"),
        "appointment_time": appointment.get("time"),
        "appointment_timezone": appointment.get("timezone"),
        "appointment_type": appointment.get("appointment_type"),
        "order_items": order.get("items") or [],
        "order_total": order.get("total_price"),
        "order_type": order.get("order_type"),
        "payment_method": order.get("payment_method"),
        "support_issue": support.get("issue"),
        "resolution_provided": bool(support.get("resolution_provided")),
        "sentiment": analysis.get("sentiment"),
        "urgency_level": analysis.get("urgency_level"),
        "confidence_score": analysis.get("confidence_score"),
        "transcript": call.get("transcript"),
        "extracted_data": analysis,
        "is_lead": analysis.get("is_lead"),
        "source": "call",
        "last_call_at": call.get("completed_at") or call.get("started_at"),
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }


def upsert_lead_from_analysis(db, call: Dict[str, Any], analysis: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Update the caller's lead (matched by phone, then email) or create one.

    A new lead is only created when the call is a lead or carries contact
    info. Failures are logged and never propagate into the analysis result.
    """
    try:
        row = build_lead_row(call, analysis, db.get_bot_name(call.get("bot_id")))
        existing = db.find_lead(call.get("user_id"), phone=row["phone_number"], email=row["email"])
        if existing:
            return db.update_lead(existing["id"], row)
        if analysis.get("is_lead") or row["phone_number"] or row["email"]:
            return db.insert_lead(row)
        return None
    except Exception as e:
        logger.error(f"Error upserting lead for call {call.get('id')}: {e}")
        return None
