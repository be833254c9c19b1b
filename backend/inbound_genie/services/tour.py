import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .tour_steps import TOUR_STEPS, TourStep


logger = logging.getLogger(__name__)

TOUR_STEP_KEY = "onboarding_tour_step"
TOUR_ACTIVE_KEY = "onboarding_tour_active"

TOUR_REWARD_CREDITS = 100
TOUR_REWARD_DESCRIPTION = "Free trial credits - Tour completion reward"

# Settle delays in seconds
NAVIGATION_SETTLE = 0.6
RENDER_SETTLE = 0.4
SAME_ROUTE_SETTLE = 0.3
LOCATE_INTERVAL = 0.2
LOCATE_RETRIES = 10

TOOLTIP_GAP = 12
VIEWPORT_PADDING = 16


class TourError(Exception):
    pass


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str = "default"

    def as_dict(self) -> Dict[str, str]:
        return {"title": self.title, "description": self.description, "variant": self.variant}


SKIPPED_TOAST = Toast(
    "Tour Skipped",
    "Complete the tour to receive 100 free trial credits! You can restart it from Settings.",
)
GRANTED_TOAST = Toast(
    "Tour Completed!",
    "You've received 100 free trial credits! The tour is now disabled.",
)
ALREADY_GRANTED_TOAST = Toast(
    "Tour Completed!",
    "Tour completed successfully. You've already received your free credits previously.",
)
CREDIT_FAILURE_TOAST = Toast(
    "Tour Completed",
    "Tour marked as complete, but there was an issue adding credits. Please contact support.",
    "destructive",
)
FAILURE_TOAST = Toast("Error", "Failed to complete tour. Please try again.", "destructive")


def completion_toast(result: Optional[Dict[str, Any]]) -> Toast:
    if not result:
        return FAILURE_TOAST
    if result.get("credit_error"):
        return CREDIT_FAILURE_TOAST
    if result.get("credits_granted"):
        return GRANTED_TOAST
    return ALREADY_GRANTED_TOAST


class TourRewardService:
    """Server-side tour state and the one-time completion reward."""

    def __init__(self, db) -> None:
        self.db = db

    def _require_profile(self, user_id: str) -> Dict[str, Any]:
        profile = self.db.get_profile(user_id)
        if profile is None:
            raise TourError("Profile not found")
        return profile

    def complete_tour(self, user_id: str) -> Dict[str, Any]:
        self._require_profile(user_id)
        self.db.update_profile(user_id, {"tour_completed": True})

        result = self.db.grant_tour_reward(user_id, TOUR_REWARD_CREDITS, TOUR_REWARD_DESCRIPTION)
        if not result.get("success"):
            logger.error(f"Error adding credits after tour completion for {user_id}: {result.get('error')}")
            return {"tour_completed": True, "credits_granted": False, "credit_error": result.get("error") or "Unknown error"}

        if result.get("granted"):
            logger.info(f"Granted {TOUR_REWARD_CREDITS} tour credits to {user_id}")
        else:
            logger.info(f"Tour reward already granted to {user_id}, skipping")
        return {
            "tour_completed": True,
            "credits_granted": bool(result.get("granted")),
            "remaining_credits": result.get("remaining_credits"),
        }

    def skip_tour(self, user_id: str) -> Dict[str, Any]:
        self._require_profile(user_id)
        self.db.update_profile(user_id, {"tour_completed": True})
        return {"tour_completed": True, "credits_granted": False}

    def restart_tour(self, user_id: str) -> Dict[str, Any]:
        self._require_profile(user_id)
        self.db.update_profile(user_id, {"tour_completed": False})
        return {"tour_completed": False}


class MemoryStepStore:
    """Key/value store standing in for the browser's local storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


@dataclass
class Rect:
    top: float
    left: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width


def position_tooltip(rect: Rect, tooltip: Tuple[float, float], viewport: Tuple[float, float],
                     position: str = "bottom") -> Tuple[float, float]:
    """Return (top, left) for a tooltip of size (width, height) next to `rect`.

    The preferred side flips to the opposite one when the tooltip would leave
    the viewport, and the result is always clamped inside the viewport padding.
    """
    tip_w, tip_h = tooltip
    view_w, view_h = viewport
    top = left = 0.0

    if position == "top":
        top = rect.top - tip_h - TOOLTIP_GAP
        left = rect.left + rect.width / 2 - tip_w / 2
        if top < VIEWPORT_PADDING:
            top = rect.bottom + TOOLTIP_GAP
    elif position == "bottom":
        top = rect.bottom + TOOLTIP_GAP
        left = rect.left + rect.width / 2 - tip_w / 2
        if top + tip_h > view_h - VIEWPORT_PADDING:
            top = rect.top - tip_h - TOOLTIP_GAP
    elif position == "left":
        top = rect.top + rect.height / 2 - tip_h / 2
        left = rect.left - tip_w - TOOLTIP_GAP
        if left < VIEWPORT_PADDING:
            left = rect.right + TOOLTIP_GAP
    elif position == "right":
        top = rect.top + rect.height / 2 - tip_h / 2
        left = rect.right + TOOLTIP_GAP
        if left + tip_w > view_w - VIEWPORT_PADDING:
            left = rect.left - tip_w - TOOLTIP_GAP
    elif position == "center":
        top = view_h / 2 - tip_h / 2
        left = view_w / 2 - tip_w / 2

    top = max(VIEWPORT_PADDING, min(top, view_h - tip_h - VIEWPORT_PADDING))
    left = max(VIEWPORT_PADDING, min(left, view_w - tip_w - VIEWPORT_PADDING))
    return top, left


class TourSession:
    """Drives one user's walk through the tour steps.

    `navigate(route)` and `locate(selector)` are the page-side collaborators;
    `sleep` is injectable so settle delays can be skipped in tests.
    """

    def __init__(
        self,
        user_id: str,
        rewards: TourRewardService,
        store: Optional[MemoryStepStore] = None,
        navigate: Optional[Callable[[str], None]] = None,
        locate: Optional[Callable[[str], Any]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        current_route: str = "/",
        steps: Optional[List[TourStep]] = None,
    ) -> None:
        self.user_id = user_id
        self.rewards = rewards
        self.store = store or MemoryStepStore()
        self.steps = steps or TOUR_STEPS
        self._navigate = navigate or (lambda route: None)
        self._locate = locate or (lambda selector: None)
        self._sleep = sleep
        self.current_route = current_route
        self.is_visible = False
        self.is_navigating = False
        saved = self.store.get(TOUR_STEP_KEY)
        self.current_step = int(saved) if saved and saved.isdigit() else 0

    @property
    def step(self) -> Optional[TourStep]:
        if 0 <= self.current_step < len(self.steps):
            return self.steps[self.current_step]
        return None

    def start(self, profile: Optional[Dict[str, Any]]) -> bool:
        if not profile:
            return False
        completed = profile.get("tour_completed")
        if completed is True:
            self._reset()
            return False
        active = self.store.get(TOUR_ACTIVE_KEY) == "true"
        if completed is False or active:
            self.is_visible = True
            self.store.set(TOUR_ACTIVE_KEY, "true")
            self._persist()
        return self.is_visible

    def _persist(self) -> None:
        if self.is_visible:
            self.store.set(TOUR_STEP_KEY, str(self.current_step))

    def _reset(self) -> None:
        self.is_visible = False
        self.is_navigating = False
        self.store.remove(TOUR_STEP_KEY)
        self.store.remove(TOUR_ACTIVE_KEY)

    async def next(self) -> Optional[Toast]:
        if self.is_navigating or not self.is_visible:
            return None
        if self.current_step < len(self.steps) - 1:
            self.current_step += 1
            self._persist()
            return None
        return await self.complete()

    def previous(self) -> bool:
        if self.is_navigating or not self.is_visible or self.current_step <= 0:
            return False
        self.current_step -= 1
        self._persist()
        return True

    async def show_current_step(self) -> Any:
        step = self.step
        if not self.is_visible or step is None:
            return None
        if step.route and self.current_route != step.route:
            self.is_navigating = True
            self._navigate(step.route)
            self.current_route = step.route
            await self._sleep(NAVIGATION_SETTLE)
            self.is_navigating = False
            await self._sleep(RENDER_SETTLE)
        else:
            await self._sleep(SAME_ROUTE_SETTLE)
        return await self.highlight(step)

    async def highlight(self, step: TourStep) -> Any:
        if not step.target.startswith("[data-tour="):
            return None
        for attempt in range(LOCATE_RETRIES + 1):
            element = self._locate(step.target)
            if element is not None:
                return element
            if attempt < LOCATE_RETRIES:
                await self._sleep(LOCATE_INTERVAL)
        logger.debug(f"Tour target {step.target} not found on {self.current_route}")
        return None

    async def skip(self) -> Toast:
        try:
            await asyncio.to_thread(self.rewards.skip_tour, self.user_id)
        except Exception as e:
            logger.error(f"Error marking tour as skipped: {e}")
        self._reset()
        return SKIPPED_TOAST

    async def complete(self) -> Toast:
        result = None
        try:
            result = await asyncio.to_thread(self.rewards.complete_tour, self.user_id)
        except Exception as e:
            logger.error(f"Error marking tour as completed: {e}")
        self._reset()
        return completion_toast(result)
