"""Pure state transitions for the planner.

Each function maps the current state plus the data of one event to the
next state. Network calls happen in the planner service; nothing here
performs I/O.
"""

from dataclasses import replace
from datetime import datetime
from uuid import UUID

from meal_planner.domain.accounts import BodyMetricLog, SavedPlan, UserAccount
from meal_planner.domain.errors import ErrorKind, InputValidationError
from meal_planner.domain.plans import FoodItem, WeeklyPlanData, replace_food
from meal_planner.domain.profile import UserProfile
from meal_planner.domain.shopping import (
    ShoppingItem,
    ShoppingListResult,
    checked_names,
    replace_item,
)
from meal_planner.domain.state import PlannerState, View


def hydrated(state: PlannerState, account: UserAccount) -> PlannerState:
    """Route a freshly loaded account to the dashboard or onboarding."""
    base = PlannerState(account=account, epoch=state.epoch + 1)
    if account.has_active_plan:
        return replace(
            base,
            view=View.DASHBOARD,
            profile=account.current_profile,
            plan=account.current_plan,
            shopping_list=account.current_shopping_list,
            in_stock=checked_names(account.current_shopping_list),
        )
    return replace(base, view=View.ONBOARDING)


def signed_out(state: PlannerState, error: str | None = None) -> PlannerState:
    """Drop every in-memory entity and return to authentication."""
    kind = ErrorKind.CONFIGURATION if error else None
    return PlannerState(
        view=View.UNAUTHENTICATED,
        epoch=state.epoch + 1,
        error=error,
        error_kind=kind,
    )


def started(state: PlannerState, message: str) -> PlannerState:
    """Mark an AI operation as running."""
    return replace(state, busy=True, progress_message=message, notice=None)


def finished(state: PlannerState, notice: str | None = None) -> PlannerState:
    """Clear the busy flag, optionally leaving an inline notice."""
    return replace(state, busy=False, progress_message=None, notice=notice)


def failed(state: PlannerState, message: str, kind: ErrorKind) -> PlannerState:
    """Raise the global error screen."""
    return replace(finished(state), error=message, error_kind=kind)


def profile_submitted(state: PlannerState, profile: UserProfile) -> PlannerState:
    """Hold the submitted profile while its shopping list is drafted."""
    return replace(state, profile=profile, error=None, error_kind=None)


def draft_ready(state: PlannerState, draft: ShoppingListResult) -> PlannerState:
    """Show the drafted list for review."""
    return replace(finished(state), draft_list=draft, view=View.SHOPPING_REVIEW)


def draft_failed(state: PlannerState, message: str, kind: ErrorKind) -> PlannerState:
    """Discard the entered profile and stay in onboarding."""
    return replace(failed(state, message, kind), profile=None, view=View.ONBOARDING)


def draft_item_substituted(
    state: PlannerState, original: ShoppingItem, replacement: ShoppingItem
) -> PlannerState:
    """Swap one item of the list under review."""
    if state.draft_list is None:
        return finished(state)
    return replace(
        finished(state),
        draft_list=replace_item(state.draft_list, original, replacement),
    )


def plan_ready(
    state: PlannerState,
    plan: WeeklyPlanData,
    confirmed: ShoppingListResult,
) -> PlannerState:
    """Install a generated plan as live data and as the current triple."""
    account = state.account
    if account is not None:
        account = account.with_current(state.profile, plan, confirmed)
    return replace(
        finished(state),
        view=View.DASHBOARD,
        account=account,
        plan=plan,
        shopping_list=confirmed,
        in_stock=checked_names(confirmed),
        water_consumed_ml=0.0,
    )


def food_substituted(
    state: PlannerState,
    day_index: int,
    meal_index: int,
    food_id: str,
    replacement: FoodItem,
) -> PlannerState:
    """Swap one food of the live plan, leaving everything else untouched."""
    if state.plan is None:
        return finished(state)
    plan = replace_food(state.plan, day_index, meal_index, food_id, replacement)
    return replace(finished(state), plan=plan)


def shopping_list_replaced(
    state: PlannerState, shopping_list: ShoppingListResult
) -> PlannerState:
    """Install a new live shopping list."""
    return replace(finished(state), shopping_list=shopping_list)


def shopping_item_substituted(
    state: PlannerState, original: ShoppingItem, replacement: ShoppingItem
) -> PlannerState:
    """Swap one item of the live shopping list."""
    if state.shopping_list is None:
        return finished(state)
    return replace(
        finished(state),
        shopping_list=replace_item(state.shopping_list, original, replacement),
    )


def stock_toggled(state: PlannerState, name: str) -> PlannerState:
    """Flip an item in or out of the in-stock set."""
    if name in state.in_stock:
        return replace(state, in_stock=state.in_stock - {name})
    return replace(state, in_stock=state.in_stock | {name})


def plan_saved(state: PlannerState, saved: SavedPlan) -> PlannerState:
    """Prepend a saved snapshot to the account's list."""
    if state.account is None:
        return state
    account = replace(
        state.account, saved_plans=(saved, *state.account.saved_plans)
    )
    return replace(state, account=account, notice="Plan saved.")


def saved_plan_loaded(state: PlannerState, saved: SavedPlan) -> PlannerState:
    """Copy a saved snapshot into the live slots and the current triple."""
    account = state.account
    if account is not None:
        account = account.with_current(saved.profile, saved.plan, saved.shopping_list)
    return replace(
        state,
        view=View.DASHBOARD,
        account=account,
        profile=saved.profile,
        plan=saved.plan,
        shopping_list=saved.shopping_list,
        draft_list=None,
        in_stock=checked_names(saved.shopping_list),
        water_consumed_ml=0.0,
        epoch=state.epoch + 1,
    )


def saved_plan_deleted(state: PlannerState, plan_id: UUID) -> PlannerState:
    """Remove a saved plan from the account; unknown ids are a no-op."""
    if state.account is None:
        return state
    remaining = tuple(plan for plan in state.account.saved_plans if plan.id != plan_id)
    return replace(state, account=replace(state.account, saved_plans=remaining))


def reset(state: PlannerState) -> PlannerState:
    """Clear the live plan data and the current triple, back to onboarding."""
    if state.account is None:
        return signed_out(state)
    return PlannerState(
        view=View.ONBOARDING,
        account=state.account.with_current(None, None, None),
        epoch=state.epoch + 1,
    )


def log_added(state: PlannerState, log: BodyMetricLog) -> PlannerState:
    """Append a body log, keeping logs ordered by time."""
    if state.account is None:
        return state
    logs = tuple(
        sorted((*state.account.logs, log), key=lambda item: item.logged_at)
    )
    return replace(state, account=replace(state.account, logs=logs))


def reminder_sent(
    state: PlannerState, sent_at: datetime, message: str
) -> PlannerState:
    """Record a measurement reminder."""
    if state.account is None:
        return state
    return replace(
        state,
        account=replace(state.account, last_notification=sent_at),
        notice=message,
    )


def water_changed(state: PlannerState, consumed_ml: float) -> PlannerState:
    """Store the new water consumption for the day."""
    return replace(state, water_consumed_ml=consumed_ml)


def navigated(state: PlannerState, view: View) -> PlannerState:
    """Switch between the views reachable from the navigation bar."""
    if view not in {View.DASHBOARD, View.SAVED_PLANS, View.PROGRESS}:
        raise InputValidationError(f"Cannot navigate to {view}.")
    if view is View.DASHBOARD and state.plan is None:
        raise InputValidationError("There is no active plan yet.")
    return replace(state, view=view, notice=None)


def went_back(state: PlannerState) -> PlannerState:
    """Leave a secondary view for the dashboard or onboarding."""
    return replace(
        state,
        view=View.DASHBOARD if state.plan is not None else View.ONBOARDING,
        notice=None,
    )
