"""In-memory planner state."""

from dataclasses import dataclass
from enum import StrEnum

from meal_planner.domain.accounts import SavedPlan, UserAccount
from meal_planner.domain.errors import ErrorKind
from meal_planner.domain.plans import WeeklyPlanData
from meal_planner.domain.profile import UserProfile
from meal_planner.domain.shopping import ShoppingListResult


class View(StrEnum):
    """Screens of the planner state machine."""

    CHECKING_SESSION = "checking_session"
    UNAUTHENTICATED = "unauthenticated"
    ONBOARDING = "onboarding"
    SHOPPING_REVIEW = "shopping_review"
    DASHBOARD = "dashboard"
    SAVED_PLANS = "saved_plans"
    PROGRESS = "progress"


@dataclass(frozen=True)
class PlannerState:
    """Snapshot of everything the planner holds for one session.

    ``account`` is the durable mirror of the account store. ``profile``,
    ``plan`` and ``shopping_list`` are the live working copies; they only
    reach ``account`` through explicit transitions.
    """

    view: View = View.CHECKING_SESSION
    account: UserAccount | None = None
    profile: UserProfile | None = None
    plan: WeeklyPlanData | None = None
    draft_list: ShoppingListResult | None = None
    shopping_list: ShoppingListResult | None = None
    in_stock: frozenset[str] = frozenset()
    water_consumed_ml: float = 0.0
    busy: bool = False
    progress_message: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    notice: str | None = None
    epoch: int = 0

    @property
    def saved_plans(self) -> tuple[SavedPlan, ...]:
        """Saved plans of the signed-in account."""
        return self.account.saved_plans if self.account else ()
