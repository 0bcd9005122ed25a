"""Planner orchestration: the session state machine."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID, uuid4

from meal_planner.domain import flow, water
from meal_planner.domain.accounts import (
    BodyMetricLog,
    SavedPlan,
    StateUpdate,
    UserAccount,
    needs_measurement,
    reminder_due,
)
from meal_planner.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorKind,
    InputValidationError,
    OperationInProgressError,
    PersistenceError,
    PlannerError,
)
from meal_planner.domain.plans import find_food
from meal_planner.domain.profile import UserProfile, validate_for_generation
from meal_planner.domain.shopping import (
    ShoppingBudget,
    ShoppingDuration,
    confirm_selection,
    find_item,
)
from meal_planner.domain.state import PlannerState, View
from meal_planner.services.accounts import AccountService
from meal_planner.services.generation import GenerationService

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_PASSWORD_LENGTH = 6
DRAFT_BUDGET = ShoppingBudget.ECONOMICAL

DRAFTING_MESSAGE = "Analyzing your profile and drafting an ideal shopping list..."
PLANNING_MESSAGE = "Building your weekly menu from your ingredients..."
SUBSTITUTING_FOOD_MESSAGE = "Looking for a substitute..."
SUBSTITUTING_ITEM_MESSAGE = "Looking for an alternative item..."
SHOPPING_LIST_MESSAGE = "Building your shopping list..."
MEASUREMENT_REMINDER = (
    "Time to weigh in! It has been 7 days since your last measurement. "
    "Measure fasted, before breakfast and water."
)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _describe(error: Exception, fallback: str) -> tuple[str, ErrorKind]:
    if isinstance(error, PlannerError):
        return error.message or fallback, error.kind
    return str(error) or fallback, ErrorKind.PERMANENT_UPSTREAM


@dataclass
class PlannerService:
    """Drives the planner views and keeps live and persisted data in sync."""

    accounts: AccountService
    generation: GenerationService
    clock: Callable[[], datetime] = _utcnow
    state: PlannerState = field(default_factory=PlannerState)

    async def start(self) -> PlannerState:
        """Check for an existing session and route accordingly."""
        self.state = PlannerState(epoch=self.state.epoch + 1)
        try:
            account = self.accounts.current_session()
        except ConfigurationError as exc:
            logger.error("Session check unavailable: %s", exc.message)
            self.state = flow.signed_out(self.state, error=exc.message)
            return self.state
        except PlannerError:
            logger.exception("Session check failed")
            self.state = flow.signed_out(self.state)
            return self.state
        if account is None:
            self.state = flow.signed_out(self.state)
            return self.state
        return self._enter(account)

    async def login(self, email: str, password: str) -> PlannerState:
        """Sign in and hydrate state from the account."""
        _validate_credentials(email, password)
        account = self.accounts.login(email.strip(), password)
        return self._enter(account)

    async def register(
        self, email: str, password: str, confirm_password: str
    ) -> PlannerState:
        """Create an account and enter the planner."""
        _validate_credentials(email, password)
        if password != confirm_password:
            raise InputValidationError("Passwords do not match.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InputValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )
        account = self.accounts.register(email.strip(), password)
        return self._enter(account)

    async def logout(self) -> PlannerState:
        """End the session and drop all in-memory data."""
        try:
            self.accounts.logout()
        except PlannerError:
            logger.warning("Sign-out failed; clearing local session anyway")
        self.state = flow.signed_out(self.state)
        return self.state

    async def complete_profile(self, profile: UserProfile) -> PlannerState:
        """Submit the onboarding profile and draft its shopping list."""
        self._require_account()
        self._ensure_idle()
        validate_for_generation(profile)
        epoch = self.state.epoch
        submitted = flow.profile_submitted(self.state, profile)
        self.state = flow.started(submitted, DRAFTING_MESSAGE)
        try:
            draft = await self.generation.draft_shopping_list(profile, DRAFT_BUDGET)
        except Exception as exc:
            if self._is_stale(epoch, "draft shopping list"):
                return self.state
            logger.warning("Draft shopping list failed: %s", exc)
            message, kind = _describe(exc, "Could not draft the shopping list.")
            self.state = flow.draft_failed(self.state, message, kind)
            return self.state
        if self._is_stale(epoch, "draft shopping list"):
            return self.state
        self.state = flow.draft_ready(self.state, draft)
        return self.state

    async def substitute_draft_item(self, name: str, category: str) -> PlannerState:
        """Replace one item of the list under review."""
        self._ensure_idle()
        draft = self.state.draft_list
        if draft is None:
            raise InputValidationError("There is no shopping list to review.")
        item = _lookup(lambda: find_item(draft, name, category))
        epoch = self.state.epoch
        self.state = flow.started(self.state, SUBSTITUTING_ITEM_MESSAGE)
        try:
            replacement = await self.generation.substitute_shopping_item(
                item, DRAFT_BUDGET
            )
        except Exception as exc:
            logger.warning("Shopping item substitution failed: %s", exc)
            if not self._is_stale(epoch, "draft item substitution"):
                self.state = flow.finished(
                    self.state, notice="Could not substitute this item right now."
                )
            return self.state
        if not self._is_stale(epoch, "draft item substitution"):
            self.state = flow.draft_item_substituted(self.state, item, replacement)
        return self.state

    async def confirm_shopping_list(
        self, selected_names: Iterable[str]
    ) -> PlannerState:
        """Generate the weekly plan from the selected items and persist it."""
        account = self._require_account()
        self._ensure_idle()
        profile = self.state.profile
        draft = self.state.draft_list
        if profile is None or draft is None:
            raise InputValidationError("Complete your profile first.")
        selected = list(dict.fromkeys(selected_names))
        if not selected:
            raise InputValidationError("Select at least one item.")

        confirmed = confirm_selection(draft, selected)
        epoch = self.state.epoch
        self.state = flow.started(self.state, PLANNING_MESSAGE)
        try:
            plan = await self.generation.generate_weekly_plan(profile, selected)
        except Exception as exc:
            if self._is_stale(epoch, "weekly plan"):
                return self.state
            logger.warning("Weekly plan generation failed: %s", exc)
            message, kind = _describe(exc, "Could not generate the meal plan.")
            self.state = flow.failed(self.state, message, kind)
            return self.state
        if self._is_stale(epoch, "weekly plan"):
            return self.state

        self._persist(
            lambda: self.accounts.save_state(
                account.id,
                StateUpdate(profile=profile, plan=plan, shopping_list=confirmed),
            ),
            "current plan",
        )
        self.state = flow.plan_ready(self.state, plan, confirmed)
        return self.state

    async def substitute_food(
        self, day_index: int, meal_index: int, food_id: str
    ) -> PlannerState:
        """Replace one food of the live plan, preferring in-stock items."""
        self._ensure_idle()
        plan = self.state.plan
        profile = self.state.profile
        if plan is None or profile is None:
            raise InputValidationError("There is no active plan.")
        meal, food = _lookup(lambda: find_food(plan, day_index, meal_index, food_id))
        epoch = self.state.epoch
        self.state = flow.started(self.state, SUBSTITUTING_FOOD_MESSAGE)
        try:
            replacement = await self.generation.substitute_food(
                food, meal.type, profile.goal, sorted(self.state.in_stock)
            )
        except Exception as exc:
            logger.warning("Food substitution failed: %s", exc)
            if not self._is_stale(epoch, "food substitution"):
                self.state = flow.finished(
                    self.state, notice="Could not find a substitute right now."
                )
            return self.state
        if not self._is_stale(epoch, "food substitution"):
            self.state = flow.food_substituted(
                self.state, day_index, meal_index, food_id, replacement
            )
        return self.state

    async def generate_shopping_list(
        self, duration: ShoppingDuration, budget: ShoppingBudget
    ) -> PlannerState:
        """Replace the live list with one consolidated from the plan."""
        self._ensure_idle()
        plan = self.state.plan
        if plan is None:
            raise InputValidationError("There is no active plan.")
        epoch = self.state.epoch
        self.state = flow.started(self.state, SHOPPING_LIST_MESSAGE)
        try:
            shopping_list = await self.generation.generate_shopping_list(
                plan, duration, budget
            )
        except Exception as exc:
            logger.warning("Shopping list generation failed: %s", exc)
            if not self._is_stale(epoch, "shopping list"):
                self.state = flow.finished(
                    self.state, notice="Could not generate the list. Please try again."
                )
            return self.state
        if not self._is_stale(epoch, "shopping list"):
            self.state = flow.shopping_list_replaced(self.state, shopping_list)
        return self.state

    async def substitute_shopping_item(
        self, name: str, category: str, budget: ShoppingBudget
    ) -> PlannerState:
        """Replace one item of the live shopping list."""
        self._ensure_idle()
        shopping_list = self.state.shopping_list
        if shopping_list is None:
            raise InputValidationError("There is no shopping list.")
        item = _lookup(lambda: find_item(shopping_list, name, category))
        epoch = self.state.epoch
        self.state = flow.started(self.state, SUBSTITUTING_ITEM_MESSAGE)
        try:
            replacement = await self.generation.substitute_shopping_item(item, budget)
        except Exception as exc:
            logger.warning("Shopping item substitution failed: %s", exc)
            if not self._is_stale(epoch, "shopping item substitution"):
                self.state = flow.finished(
                    self.state, notice="Could not substitute this item right now."
                )
            return self.state
        if not self._is_stale(epoch, "shopping item substitution"):
            self.state = flow.shopping_item_substituted(self.state, item, replacement)
        return self.state

    def toggle_in_stock(self, name: str) -> PlannerState:
        """Mark or unmark an item as available at home."""
        self.state = flow.stock_toggled(self.state, name)
        return self.state

    def save_plan(self, name: str) -> PlannerState:
        """Snapshot the live plan under a name and persist it."""
        account = self._require_account()
        if not name.strip():
            raise InputValidationError("Give the plan a name.")
        if self.state.plan is None or self.state.profile is None:
            raise InputValidationError("There is no active plan to save.")
        saved = SavedPlan(
            id=uuid4(),
            name=name.strip(),
            created_at=self.clock(),
            plan=self.state.plan,
            profile=self.state.profile,
            shopping_list=self.state.shopping_list,
        )
        self.state = flow.plan_saved(self.state, saved)
        self._persist(
            lambda: self.accounts.save_saved_plan(account.id, saved), "saved plan"
        )
        return self.state

    def load_saved_plan(self, plan_id: UUID) -> PlannerState:
        """Make a saved snapshot the live and current plan."""
        account = self._require_account()
        saved = next(
            (plan for plan in self.state.saved_plans if plan.id == plan_id), None
        )
        if saved is None:
            raise InputValidationError("Saved plan not found.")
        self.state = flow.saved_plan_loaded(self.state, saved)
        self._persist(
            lambda: self.accounts.save_state(
                account.id,
                StateUpdate(
                    profile=saved.profile,
                    plan=saved.plan,
                    shopping_list=saved.shopping_list,
                ),
            ),
            "loaded plan",
        )
        return self.state

    def delete_saved_plan(self, plan_id: UUID, confirmed: bool) -> PlannerState:
        """Delete a saved plan once the user has confirmed."""
        account = self._require_account()
        if not confirmed:
            return self.state
        self.state = flow.saved_plan_deleted(self.state, plan_id)
        self._persist(
            lambda: self.accounts.delete_saved_plan(account.id, plan_id),
            "saved plan deletion",
        )
        return self.state

    def reset(self) -> PlannerState:
        """Discard the live plan and start onboarding again."""
        account = self.state.account
        self.state = flow.reset(self.state)
        if account is not None:
            self._persist(
                lambda: self.accounts.save_state(
                    account.id,
                    StateUpdate(profile=None, plan=None, shopping_list=None),
                ),
                "reset",
            )
        return self.state

    def acknowledge_error(self) -> PlannerState:
        """Dismiss the error screen; recovery is a full reset."""
        return self.reset()

    def navigate(self, view: View) -> PlannerState:
        """Move to a secondary view."""
        self._require_account()
        self.state = flow.navigated(self.state, view)
        return self.state

    def back(self) -> PlannerState:
        """Return from a secondary view."""
        self._require_account()
        self.state = flow.went_back(self.state)
        return self.state

    def add_body_log(  # noqa: PLR0913
        self,
        weight: float,
        neck: float = 0.0,
        biceps: float = 0.0,
        chest: float = 0.0,
        waist: float = 0.0,
        hips: float = 0.0,
    ) -> PlannerState:
        """Record body measurements taken now."""
        account = self._require_account()
        if weight <= 0:
            raise InputValidationError("Weight is required.")
        log = BodyMetricLog(
            logged_at=self.clock(),
            weight=weight,
            neck=neck,
            biceps=biceps,
            chest=chest,
            waist=waist,
            hips=hips,
        )
        self.state = flow.log_added(self.state, log)
        self._persist(lambda: self.accounts.append_log(account.id, log), "body log")
        return self.state

    def add_water(self, cup_ml: float = water.DEFAULT_CUP_ML) -> PlannerState:
        """Log one cup of water."""
        target = self._water_target()
        consumed = water.add_cup(self.state.water_consumed_ml, target, cup_ml)
        self.state = flow.water_changed(self.state, consumed)
        return self.state

    def remove_water(self, cup_ml: float = water.DEFAULT_CUP_ML) -> PlannerState:
        """Undo one cup of water."""
        self._water_target()
        consumed = water.remove_cup(self.state.water_consumed_ml, cup_ml)
        self.state = flow.water_changed(self.state, consumed)
        return self.state

    def _enter(self, account: UserAccount) -> PlannerState:
        self.state = flow.hydrated(self.state, account)
        self._check_measurement_reminder(account)
        return self.state

    def _check_measurement_reminder(self, account: UserAccount) -> None:
        now = self.clock()
        if not needs_measurement(account.logs, now):
            return
        if not reminder_due(account.last_notification, now):
            return
        self.state = flow.reminder_sent(self.state, now, MEASUREMENT_REMINDER)
        self._persist(
            lambda: self.accounts.save_state(
                account.id, StateUpdate(last_notification=now)
            ),
            "reminder timestamp",
        )

    def _require_account(self) -> UserAccount:
        if self.state.account is None:
            raise AuthenticationError("Please log in first.")
        return self.state.account

    def _ensure_idle(self) -> None:
        if self.state.busy:
            raise OperationInProgressError("Please wait for the current operation.")

    def _water_target(self) -> float:
        if self.state.plan is None:
            raise InputValidationError("There is no active plan.")
        return self.state.plan.water_target

    def _is_stale(self, epoch: int, label: str) -> bool:
        if self.state.epoch == epoch:
            return False
        logger.info("Discarding %s result from a superseded flow", label)
        return True

    @staticmethod
    def _persist(operation: Callable[[], None], label: str) -> None:
        try:
            operation()
        except PersistenceError as exc:
            logger.warning("Failed to persist %s: %s", label, exc.message)
        except ConfigurationError as exc:
            logger.warning("Cannot persist %s: %s", label, exc.message)


def _validate_credentials(email: str, password: str) -> None:
    if not email.strip() or not password:
        raise InputValidationError("Fill in all fields.")


def _lookup(finder: Callable[[], T]) -> T:
    try:
        return finder()
    except LookupError as exc:
        raise InputValidationError(str(exc)) from exc
