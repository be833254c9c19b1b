from fastapi import APIRouter, HTTPException
from dataclasses import asdict

from ..db import get_db
from ..services.credit_ledger import balance_status, usage_summary

router = APIRouter()


@router.get("/{user_id}")
async def get_balance(user_id: str):
    profile = get_db().get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    remaining = float(profile.get("Remaning_credits") or 0)
    return {
        "success": True,
        "remaining_credits": remaining,
        "total_credit": float(profile.get("Total_credit") or 0),
        "status": balance_status(remaining),
    }


@router.get("/{user_id}/usage")
async def get_usage(user_id: str):
    summary = usage_summary(get_db(), user_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"success": True, "status": summary.status, **asdict(summary)}
