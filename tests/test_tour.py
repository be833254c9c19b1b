import asyncio

import pytest

from inbound_genie.services.tour import (
    ALREADY_GRANTED_TOAST,
    CREDIT_FAILURE_TOAST,
    FAILURE_TOAST,
    GRANTED_TOAST,
    SKIPPED_TOAST,
    TOUR_ACTIVE_KEY,
    TOUR_STEP_KEY,
    MemoryStepStore,
    Rect,
    TourError,
    TourRewardService,
    TourSession,
    position_tooltip,
)
from inbound_genie.services.tour_steps import TOUR_STEPS, TourStep


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def new_user(db):
    return db.upsert_profile({"user_id": "u-tour", "Remaning_credits": 0, "tour_completed": False})


def test_steps_are_well_formed():
    assert len(TOUR_STEPS) == 31
    assert len({s.id for s in TOUR_STEPS}) == 31
    assert all(s.position in ("top", "bottom", "left", "right", "center") for s in TOUR_STEPS)
    assert TOUR_STEPS[0].route == "/dashboard"


def test_complete_grants_reward_once(db, new_user):
    service = TourRewardService(db)

    first = service.complete_tour("u-tour")
    second = service.complete_tour("u-tour")

    assert first["credits_granted"] is True
    assert first["remaining_credits"] == 100
    assert second["credits_granted"] is False
    profile = db.get_profile("u-tour")
    assert profile["Remaning_credits"] == 100
    assert profile["tour_completed"] is True
    assert len(db.tour_rewards) == 1


async def test_concurrent_completions_grant_once(db, new_user):
    service = TourRewardService(db)

    results = await asyncio.gather(*[asyncio.to_thread(service.complete_tour, "u-tour") for _ in range(5)])

    assert sum(1 for r in results if r["credits_granted"]) == 1
    assert db.get_profile("u-tour")["Remaning_credits"] == 100


def test_restart_then_complete_does_not_grant_again(db, new_user):
    service = TourRewardService(db)
    service.complete_tour("u-tour")
    service.restart_tour("u-tour")

    assert db.get_profile("u-tour")["tour_completed"] is False
    assert service.complete_tour("u-tour")["credits_granted"] is False
    assert db.get_profile("u-tour")["Remaning_credits"] == 100


def test_skip_marks_completed_without_credits(db, new_user):
    result = TourRewardService(db).skip_tour("u-tour")

    assert result == {"tour_completed": True, "credits_granted": False}
    assert db.get_profile("u-tour")["Remaning_credits"] == 0


def test_unknown_profile_raises(db):
    with pytest.raises(TourError):
        TourRewardService(db).complete_tour("ghost")


def test_start_respects_completed_flag(db):
    store = MemoryStepStore({TOUR_STEP_KEY: "4", TOUR_ACTIVE_KEY: "true"})
    session = TourSession("u", TourRewardService(db), store=store)

    assert session.start({"tour_completed": True}) is False
    assert store.values == {}


def test_start_resumes_saved_step(db):
    store = MemoryStepStore({TOUR_STEP_KEY: "4"})
    session = TourSession("u", TourRewardService(db), store=store)

    assert session.start({"tour_completed": False}) is True
    assert session.current_step == 4
    assert store.get(TOUR_ACTIVE_KEY) == "true"


async def test_next_and_previous(db, new_user):
    session = TourSession("u-tour", TourRewardService(db))
    session.start({"tour_completed": False})

    assert session.previous() is False
    await session.next()
    await session.next()
    assert session.current_step == 2
    assert session.store.get(TOUR_STEP_KEY) == "2"
    assert session.previous() is True
    assert session.current_step == 1


async def test_transitions_refused_while_navigating(db, new_user):
    session = TourSession("u-tour", TourRewardService(db))
    session.start({"tour_completed": False})
    session.current_step = 3
    session.is_navigating = True

    assert await session.next() is None
    assert session.previous() is False
    assert session.current_step == 3


async def test_last_step_next_completes(db, new_user):
    session = TourSession("u-tour", TourRewardService(db))
    session.start({"tour_completed": False})
    session.current_step = len(TOUR_STEPS) - 1

    toast = await session.next()

    assert toast == GRANTED_TOAST
    assert session.is_visible is False
    assert session.store.values == {}


async def test_second_completion_toast(db, new_user):
    TourRewardService(db).complete_tour("u-tour")
    session = TourSession("u-tour", TourRewardService(db))
    session.start({"tour_completed": False})

    assert await session.complete() == ALREADY_GRANTED_TOAST


async def test_credit_failure_toast(db, new_user, monkeypatch):
    monkeypatch.setattr(db, "grant_tour_reward",
                        lambda *a: {"success": False, "granted": False, "error": "rpc down"})
    session = TourSession("u-tour", TourRewardService(db))
    session.start({"tour_completed": False})

    assert await session.complete() == CREDIT_FAILURE_TOAST
    assert db.get_profile("u-tour")["tour_completed"] is True


async def test_failure_still_resets_ui(db):
    session = TourSession("ghost", TourRewardService(db))
    session.start({"tour_completed": False})

    assert await session.complete() == FAILURE_TOAST
    assert session.is_visible is False
    assert session.store.values == {}


async def test_skip_resets_even_on_error(db):
    session = TourSession("ghost", TourRewardService(db))
    session.start({"tour_completed": False})

    assert await session.skip() == SKIPPED_TOAST
    assert session.is_visible is False


async def test_cross_route_step_waits_for_navigation(db):
    sleep = RecordingSleep()
    visited = []
    steps = [TourStep("a", "A", "", "[data-tour='calls']", route="/calls")]
    session = TourSession("u", TourRewardService(db), navigate=visited.append,
                          locate=lambda selector: "element", sleep=sleep,
                          current_route="/dashboard", steps=steps)
    session.start({"tour_completed": False})

    element = await session.show_current_step()

    assert element == "element"
    assert visited == ["/calls"]
    assert sleep.delays == [0.6, 0.4]
    assert session.current_route == "/calls"
    assert session.is_navigating is False


async def test_same_route_step_short_wait(db):
    sleep = RecordingSleep()
    steps = [TourStep("a", "A", "", "[data-tour='x']", route="/dashboard")]
    session = TourSession("u", TourRewardService(db), locate=lambda s: "el", sleep=sleep,
                          current_route="/dashboard", steps=steps)
    session.start({"tour_completed": False})

    await session.show_current_step()

    assert sleep.delays == [0.3]


async def test_highlight_retries_then_gives_up(db):
    sleep = RecordingSleep()
    calls = []

    def locate(selector):
        calls.append(selector)
        return None

    session = TourSession("u", TourRewardService(db), locate=locate, sleep=sleep)

    element = await session.highlight(TourStep("a", "A", "", "[data-tour='missing']"))

    assert element is None
    assert len(calls) == 11
    assert sleep.delays == [0.2] * 10


async def test_highlight_finds_late_element(db):
    sleep = RecordingSleep()
    answers = iter([None, None, "el"])
    session = TourSession("u", TourRewardService(db), locate=lambda s: next(answers), sleep=sleep)

    assert await session.highlight(TourStep("a", "A", "", "[data-tour='late']")) == "el"
    assert sleep.delays == [0.2, 0.2]


async def test_highlight_ignores_plain_selectors(db):
    session = TourSession("u", TourRewardService(db), locate=lambda s: "el")
    assert await session.highlight(TourStep("a", "A", "", "#sidebar")) is None


def test_tooltip_below_target():
    top, left = position_tooltip(Rect(100, 200, 100, 40), (200, 80), (1280, 800), "bottom")
    assert top == 152
    assert left == 150


def test_tooltip_flips_when_out_of_viewport():
    top, _ = position_tooltip(Rect(700, 200, 100, 40), (200, 80), (1280, 800), "bottom")
    assert top == 700 - 80 - 12

    _, left = position_tooltip(Rect(100, 1200, 50, 40), (200, 80), (1280, 800), "right")
    assert left == 1200 - 200 - 12


def test_tooltip_clamped_to_padding():
    top, left = position_tooltip(Rect(0, 0, 10, 10), (200, 80), (1280, 800), "left")
    assert left >= 16
    assert top == 16


def test_tooltip_center():
    assert position_tooltip(Rect(0, 0, 0, 0), (200, 100), (1000, 800), "center") == (350, 400)


def test_previous_ignored_when_hidden(db, new_user):
    session = TourSession("u-tour", TourRewardService(db))
    session.current_step = 3

    assert session.previous() is False
    assert session.current_step == 3
