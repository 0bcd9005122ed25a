"""Request bodies and response payloads for the planner API."""

from pydantic import BaseModel, Field

from meal_planner.domain import water
from meal_planner.domain.accounts import BodyMetricLog, SavedPlan
from meal_planner.domain.profile import feeding_window, is_cheat_day, is_fasting_day
from meal_planner.domain.shopping import (
    ShoppingBudget,
    ShoppingDuration,
    ShoppingListResult,
    group_by_category,
)
from meal_planner.domain.state import PlannerState, View


class Credentials(BaseModel):
    """Login body."""

    email: str
    password: str


class Registration(Credentials):
    """Registration body."""

    confirm_password: str


class DraftItemSelection(BaseModel):
    """Identifies one item of a shopping list."""

    name: str
    category: str


class ShoppingSelection(BaseModel):
    """Names of the reviewed items the user kept."""

    selected: list[str]


class FoodSubstitution(BaseModel):
    """Identifies one food of the live plan."""

    day_index: int = Field(ge=0)
    meal_index: int = Field(ge=0)
    food_id: str


class ShoppingListRequest(BaseModel):
    """Options for a consolidated shopping list."""

    duration: ShoppingDuration = ShoppingDuration.WEEKLY
    budget: ShoppingBudget = ShoppingBudget.ECONOMICAL


class ShoppingItemSubstitution(DraftItemSelection):
    """Item to replace in the live shopping list."""

    budget: ShoppingBudget = ShoppingBudget.ECONOMICAL


class StockToggle(BaseModel):
    """Item to flip in or out of the in-stock set."""

    name: str


class SavePlanRequest(BaseModel):
    """Name for a saved snapshot."""

    name: str


class BodyLogRequest(BaseModel):
    """Body measurements; only weight is required."""

    weight: float
    neck: float = 0.0
    biceps: float = 0.0
    chest: float = 0.0
    waist: float = 0.0
    hips: float = 0.0


class WaterRequest(BaseModel):
    """Cup size for a water change."""

    cup_ml: float = Field(default=water.DEFAULT_CUP_ML, gt=0)


class NavigationRequest(BaseModel):
    """Target view."""

    view: View


def _log_payload(log: BodyMetricLog) -> dict[str, object]:
    return {
        "logged_at": log.logged_at.isoformat(),
        "weight": log.weight,
        "neck": log.neck,
        "biceps": log.biceps,
        "chest": log.chest,
        "waist": log.waist,
        "hips": log.hips,
    }


def _saved_plan_payload(saved: SavedPlan) -> dict[str, object]:
    return {
        "id": str(saved.id),
        "name": saved.name,
        "created_at": saved.created_at.isoformat(),
        "goal": saved.profile.goal,
        "target_calories": saved.plan.target_calories,
        "plan": saved.plan.model_dump(mode="json"),
        "profile": saved.profile.model_dump(mode="json"),
        "shopping_list": (
            saved.shopping_list.model_dump(mode="json")
            if saved.shopping_list
            else None
        ),
    }


def _shopping_payload(
    shopping_list: ShoppingListResult | None,
) -> dict[str, object] | None:
    if shopping_list is None:
        return None
    payload = shopping_list.model_dump(mode="json")
    payload["by_category"] = {
        category: [item.name for item in items]
        for category, items in group_by_category(shopping_list.items).items()
    }
    return payload


def _plan_payload(state: PlannerState) -> dict[str, object] | None:
    plan = state.plan
    if plan is None:
        return None
    payload = plan.model_dump(mode="json")
    if state.profile is not None:
        profile = state.profile
        for day in payload["days"]:
            day["is_fasting_day"] = is_fasting_day(profile, day["day"])
            day["is_cheat_day"] = is_cheat_day(profile, day["day"])
        payload["feeding_window"] = (
            feeding_window(profile.intermittent_fasting)
            if profile.intermittent_fasting.enabled
            else None
        )
    payload["water"] = {
        "consumed_ml": state.water_consumed_ml,
        "target_ml": plan.water_target,
        "progress_percent": water.progress_percent(
            state.water_consumed_ml, plan.water_target
        ),
        "hourly_goal_ml": water.hourly_goal(plan.water_target),
    }
    return payload


def state_payload(state: PlannerState) -> dict[str, object]:
    """Serialize the planner state for clients."""
    account = state.account
    return {
        "view": state.view,
        "busy": state.busy,
        "progress_message": state.progress_message,
        "error": (
            {"kind": state.error_kind, "message": state.error}
            if state.error
            else None
        ),
        "notice": state.notice,
        "user": {"id": str(account.id), "email": account.email} if account else None,
        "profile": state.profile.model_dump(mode="json") if state.profile else None,
        "draft_list": (
            state.draft_list.model_dump(mode="json") if state.draft_list else None
        ),
        "plan": _plan_payload(state),
        "shopping_list": _shopping_payload(state.shopping_list),
        "in_stock": sorted(state.in_stock),
        "saved_plans": [_saved_plan_payload(saved) for saved in state.saved_plans],
        "logs": [_log_payload(log) for log in account.logs] if account else [],
    }

