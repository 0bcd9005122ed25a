"""Tests for pure planner transitions."""

from datetime import timedelta
from uuid import uuid4

import pytest

from meal_planner.domain import flow
from meal_planner.domain.accounts import (
    AuthIdentity,
    BodyMetricLog,
    SavedPlan,
    UserAccount,
)
from meal_planner.domain.errors import ErrorKind, InputValidationError
from meal_planner.domain.plans import FoodItem, WeeklyPlanData, with_fresh_ids
from meal_planner.domain.shopping import ShoppingListResult
from meal_planner.domain.state import PlannerState, View
from tests.conftest import NOW, make_profile, plan_payload, shopping_payload


def make_plan() -> WeeklyPlanData:
    plan = WeeklyPlanData.model_validate({**plan_payload(), "water_target": 2450})
    return plan.model_copy(update={"days": with_fresh_ids(plan.days)})


def make_account(**overrides: object) -> UserAccount:
    account = UserAccount.empty(AuthIdentity(user_id=uuid4(), email="a@b.c"))
    return account.with_current(
        overrides.get("profile"),  # type: ignore[arg-type]
        overrides.get("plan"),  # type: ignore[arg-type]
        overrides.get("shopping_list"),  # type: ignore[arg-type]
    )


def test_hydration_routes_to_dashboard_with_profile_and_plan() -> None:
    checked = ShoppingListResult.model_validate(shopping_payload("Rice"))
    checked = checked.model_copy(
        update={"items": (checked.items[0].model_copy(update={"checked": True}),)}
    )
    account = make_account(
        profile=make_profile(), plan=make_plan(), shopping_list=checked
    )

    state = flow.hydrated(PlannerState(), account)

    assert state.view is View.DASHBOARD
    assert state.plan == account.current_plan
    assert state.in_stock == frozenset({"Rice"})


@pytest.mark.parametrize("with_profile", [True, False])
def test_hydration_routes_to_onboarding_without_full_triple(with_profile: bool) -> None:
    profile = make_profile() if with_profile else None
    plan = None if with_profile else make_plan()
    account = make_account(profile=profile, plan=plan)

    state = flow.hydrated(PlannerState(), account)

    assert state.view is View.ONBOARDING
    assert state.plan is None


def test_food_substitution_changes_only_target_item() -> None:
    plan = make_plan()
    state = PlannerState(plan=plan, busy=True)
    target = plan.days[2].meals[0].foods[1]
    replacement = FoodItem(
        id="new", name="Tofu", weight="100g", calories=140, glycemic_index="Low"
    )

    result = flow.food_substituted(state, 2, 0, target.id, replacement)

    assert result.plan is not None
    assert result.plan.days[2].meals[0].foods[1] == replacement
    assert result.plan.days[2].meals[0].foods[0] is plan.days[2].meals[0].foods[0]
    assert result.plan.days[2].meals[1] is plan.days[2].meals[1]
    for index in (0, 1, 3, 4, 5, 6):
        assert result.plan.days[index] is plan.days[index]
    assert not result.busy


def test_saved_snapshot_is_immune_to_later_edits() -> None:
    plan = make_plan()
    account = make_account(profile=make_profile(), plan=plan)
    state = flow.hydrated(PlannerState(), account)
    saved = SavedPlan(
        id=uuid4(),
        name="Cut",
        created_at=NOW,
        plan=state.plan,  # type: ignore[arg-type]
        profile=state.profile,  # type: ignore[arg-type]
        shopping_list=None,
    )
    state = flow.plan_saved(state, saved)
    assert state.notice == "Plan saved."
    food = plan.days[0].meals[0].foods[0]
    replacement = food.model_copy(update={"id": "x", "name": "Granola"})

    state = flow.food_substituted(state, 0, 0, food.id, replacement)

    assert state.saved_plans[0].plan.days[0].meals[0].foods[0].name == "Oats"


def test_draft_failure_clears_profile() -> None:
    state = flow.profile_submitted(PlannerState(view=View.ONBOARDING), make_profile())

    state = flow.draft_failed(state, "boom", ErrorKind.PERMANENT_UPSTREAM)

    assert state.profile is None
    assert state.view is View.ONBOARDING
    assert state.error == "boom"


def test_plan_failure_keeps_draft() -> None:
    draft = ShoppingListResult.model_validate(shopping_payload())
    state = flow.draft_ready(PlannerState(profile=make_profile()), draft)

    state = flow.failed(state, "boom", ErrorKind.TRANSIENT_UPSTREAM)

    assert state.draft_list == draft
    assert state.error_kind is ErrorKind.TRANSIENT_UPSTREAM


def test_reset_clears_current_triple_and_bumps_epoch() -> None:
    account = make_account(profile=make_profile(), plan=make_plan())
    state = flow.hydrated(PlannerState(), account)

    result = flow.reset(state)

    assert result.view is View.ONBOARDING
    assert result.account is not None
    assert not result.account.has_active_plan
    assert result.epoch == state.epoch + 1


def test_saved_plan_deletion_of_unknown_id_is_noop() -> None:
    state = flow.hydrated(PlannerState(), make_account())

    assert flow.saved_plan_deleted(state, uuid4()) == state


def test_logs_stay_sorted() -> None:
    state = flow.hydrated(PlannerState(), make_account())
    later = BodyMetricLog(logged_at=NOW, weight=70)
    earlier = BodyMetricLog(logged_at=NOW - timedelta(days=3), weight=71)

    state = flow.log_added(flow.log_added(state, later), earlier)

    assert state.account is not None
    assert [log.weight for log in state.account.logs] == [71, 70]


def test_stock_toggle_flips_membership() -> None:
    state = flow.stock_toggled(PlannerState(), "Rice")
    assert state.in_stock == frozenset({"Rice"})
    assert flow.stock_toggled(state, "Rice").in_stock == frozenset()


def test_navigation_to_dashboard_requires_plan() -> None:
    with pytest.raises(InputValidationError):
        flow.navigated(PlannerState(view=View.PROGRESS), View.DASHBOARD)


def test_navigation_rejects_flow_views() -> None:
    with pytest.raises(InputValidationError):
        flow.navigated(PlannerState(), View.SHOPPING_REVIEW)


def test_back_without_plan_goes_to_onboarding() -> None:
    state = flow.went_back(PlannerState(view=View.SAVED_PLANS))
    assert state.view is View.ONBOARDING
