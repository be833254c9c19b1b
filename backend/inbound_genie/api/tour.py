from fastapi import APIRouter, HTTPException
import logging

from ..schemas.pydantic_schemas import TourUserRequest
from ..db import get_db
from ..services.tour import TourError, TourRewardService, completion_toast
from ..services.tour_steps import TOUR_STEPS

# Set up logger
logger = logging.getLogger(__name__)

router = APIRouter()


def _user_id(payload: TourUserRequest) -> str:
    if not payload.user_id:
        raise HTTPException(status_code=400, detail="userId is required")
    return payload.user_id


@router.get("/steps")
async def list_steps():
    return {"success": True, "steps": [step.as_dict() for step in TOUR_STEPS]}


@router.post("/complete")
async def complete_tour(payload: TourUserRequest):
    user_id = _user_id(payload)
    try:
        result = TourRewardService(get_db()).complete_tour(user_id)
    except TourError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, **result, "toast": completion_toast(result).as_dict()}


@router.post("/skip")
async def skip_tour(payload: TourUserRequest):
    user_id = _user_id(payload)
    try:
        result = TourRewardService(get_db()).skip_tour(user_id)
    except TourError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info(f"Tour skipped by {user_id}")
    return {"success": True, **result}


@router.post("/restart")
async def restart_tour(payload: TourUserRequest):
    user_id = _user_id(payload)
    try:
        result = TourRewardService(get_db()).restart_tour(user_id)
    except TourError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, **result}
