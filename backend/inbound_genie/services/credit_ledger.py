import math
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)

USAGE_TYPES = ("call", "sms", "ai_analysis", "phone_number_rental", "other")

# Cost and ledger labelling per billable action
ACTIONS: Dict[str, Dict[str, Any]] = {
    "prompt_generation": {
        "credits": 2,
        "usage_type": "other",
        "action_name": "AI Prompt Generation",
        "verb": "generated",
    },
    "prompt_formatting": {
        "credits": 1,
        "usage_type": "other",
        "action_name": "AI Prompt Formatting",
        "verb": "formatted",
    },
}

CALL_CREDITS_PER_MINUTE = 1
RECENT_LOG_LIMIT = 20


@dataclass
class CreditCharge:
    success: bool
    credits: float
    remaining: Optional[float] = None
    warning: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "credits": self.credits,
            "remaining": self.remaining,
            "warning": self.warning,
        }


@dataclass
class UsageSummary:
    remaining_credits: float
    total_credits_used: float
    total_minutes_used: float
    totals_by_type: Dict[str, float]
    recent_logs: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def status(self) -> str:
        return balance_status(self.remaining_credits)


def balance_status(remaining: float) -> str:
    if remaining <= 0:
        return "empty"
    if remaining < 10:
        return "critical"
    if remaining < 50:
        return "low"
    return "healthy"


def _warning(verb: str, error: str) -> str:
    if "Insufficient credits" in error:
        return (f"Prompt {verb} successfully, but you have insufficient credits. "
                "Please add credits to continue using this feature.")
    return f"Prompt {verb} successfully, but credit deduction failed: {error}"


def charge_action(db, user_id: str, action: str, metadata: Optional[Dict[str, Any]] = None) -> CreditCharge:
    """Deduct the cost of an already-completed action.

    Never raises: the action has happened, so a failed deduction becomes a
    warning for the caller to pass on.
    """
    cost = ACTIONS[action]
    credits = cost["credits"]
    try:
        result = db.deduct_credits(
            user_id,
            credits,
            cost["usage_type"],
            f"{cost['action_name']} ({credits} credit{'s' if credits != 1 else ''})",
            {"action_name": cost["action_name"], "action_type": action, "metadata": metadata or {}},
        )
    except Exception as e:
        logger.error(f"Credit deduction for {action} raised: {e}")
        return CreditCharge(success=False, credits=credits, warning=_warning(cost["verb"], str(e) or "Unknown error"))

    if not result.get("success"):
        error = result.get("error") or "Unknown error"
        logger.warning(f"Credit deduction for {action} failed for user {user_id}: {error}")
        return CreditCharge(success=False, credits=credits, remaining=result.get("remaining_credits"),
                            warning=_warning(cost["verb"], error))

    logger.info(f"Deducted {credits} credits from user {user_id} for {action}")
    return CreditCharge(success=True, credits=credits, remaining=result.get("remaining_credits"))


def call_credits(duration_seconds: Optional[float]) -> int:
    if not duration_seconds or duration_seconds <= 0:
        return 0
    return int(math.ceil(duration_seconds / 60.0)) * CALL_CREDITS_PER_MINUTE


def charge_call(db, user_id: str, call_id: str, duration_seconds: Optional[float]) -> CreditCharge:
    credits = call_credits(duration_seconds)
    if credits == 0:
        return CreditCharge(success=True, credits=0)
    minutes = round((duration_seconds or 0) / 60.0, 2)
    try:
        result = db.deduct_credits(
            user_id,
            credits,
            "call",
            f"Call {call_id} ({minutes} min)",
            {"call_id": call_id, "duration_seconds": duration_seconds, "duration_minutes": minutes},
        )
    except Exception as e:
        logger.error(f"Call credit deduction raised for call {call_id}: {e}")
        return CreditCharge(success=False, credits=credits, warning=str(e))

    if not result.get("success"):
        logger.warning(f"Call credit deduction failed for call {call_id}: {result.get('error')}")
        return CreditCharge(success=False, credits=credits, warning=result.get("error"))

    profile = db.get_profile(user_id) or {}
    used = float(profile.get("total_minutes_used") or 0)
    db.update_profile(user_id, {"total_minutes_used": round(used + minutes, 2)})
    return CreditCharge(success=True, credits=credits, remaining=result.get("remaining_credits"))


def _log_minutes(log: Dict[str, Any]) -> float:
    breakdown = log.get("cost_breakdown") or {}
    minutes = breakdown.get("duration_minutes")
    if minutes is None:
        seconds = breakdown.get("duration_seconds")
        minutes = (seconds or 0) / 60.0
    return float(minutes or 0)


def usage_summary(db, user_id: str) -> Optional[UsageSummary]:
    profile = db.get_profile(user_id)
    if profile is None:
        return None
    logs = db.list_usage_logs(user_id)
    totals = {t: 0.0 for t in USAGE_TYPES}
    for log in logs:
        amount = float(log.get("credits_used") or 0)
        # Deposits are stored as negative usage
        if amount > 0:
            totals[log.get("usage_type") or "other"] = totals.get(log.get("usage_type") or "other", 0.0) + amount

    minutes = profile.get("total_minutes_used")
    if minutes is None:
        minutes = sum(_log_minutes(log) for log in logs if log.get("usage_type") == "call")

    return UsageSummary(
        remaining_credits=float(profile.get("Remaning_credits") or 0),
        total_credits_used=sum(totals.values()),
        total_minutes_used=float(minutes),
        totals_by_type=totals,
        recent_logs=logs[:RECENT_LOG_LIMIT],
    )
