"""Account aggregate and persisted records."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from meal_planner.domain.plans import WeeklyPlanData
from meal_planner.domain.profile import UserProfile
from meal_planner.domain.shopping import ShoppingListResult

MEASUREMENT_INTERVAL = timedelta(days=7)
REMINDER_COOLDOWN = timedelta(days=1)


class _Unset(Enum):
    UNSET = "UNSET"


UNSET = _Unset.UNSET


@dataclass(frozen=True)
class AuthIdentity:
    """Authenticated identity returned by the account store."""

    user_id: UUID
    email: str


@dataclass(frozen=True)
class BodyMetricLog:
    """Body measurements taken at a point in time."""

    logged_at: datetime
    weight: float
    neck: float = 0.0
    biceps: float = 0.0
    chest: float = 0.0
    waist: float = 0.0
    hips: float = 0.0


@dataclass(frozen=True)
class SavedPlan:
    """Named, immutable snapshot of a plan with its inputs."""

    id: UUID
    name: str
    created_at: datetime
    plan: WeeklyPlanData
    profile: UserProfile
    shopping_list: ShoppingListResult | None


@dataclass(frozen=True)
class StateRecord:
    """Per-user state row: the current triple plus reminder bookkeeping."""

    profile: UserProfile | None = None
    plan: WeeklyPlanData | None = None
    shopping_list: ShoppingListResult | None = None
    last_notification: datetime | None = None


@dataclass(frozen=True)
class StateUpdate:
    """Partial state write; UNSET fields are left untouched, None clears."""

    profile: UserProfile | None | _Unset = UNSET
    plan: WeeklyPlanData | None | _Unset = UNSET
    shopping_list: ShoppingListResult | None | _Unset = UNSET
    last_notification: datetime | None | _Unset = UNSET

    def changes(self) -> dict[str, object]:
        """Return only the provided fields."""
        values = {
            "profile": self.profile,
            "plan": self.plan,
            "shopping_list": self.shopping_list,
            "last_notification": self.last_notification,
        }
        return {key: value for key, value in values.items() if value is not UNSET}


@dataclass(frozen=True)
class UserAccount:
    """Aggregate root for everything persisted for a user."""

    id: UUID
    email: str
    logs: tuple[BodyMetricLog, ...] = ()
    current_profile: UserProfile | None = None
    current_plan: WeeklyPlanData | None = None
    current_shopping_list: ShoppingListResult | None = None
    saved_plans: tuple[SavedPlan, ...] = field(default_factory=tuple)
    last_notification: datetime | None = None

    @classmethod
    def empty(cls, identity: AuthIdentity) -> "UserAccount":
        """Return a fresh account for a newly registered identity."""
        return cls(id=identity.user_id, email=identity.email)

    @property
    def has_active_plan(self) -> bool:
        """True when the current triple holds both a profile and a plan."""
        return self.current_profile is not None and self.current_plan is not None

    def with_current(
        self,
        profile: UserProfile | None,
        plan: WeeklyPlanData | None,
        shopping_list: ShoppingListResult | None,
    ) -> "UserAccount":
        """Return a copy with the current triple replaced."""
        return replace(
            self,
            current_profile=profile,
            current_plan=plan,
            current_shopping_list=shopping_list,
        )


def needs_measurement(logs: tuple[BodyMetricLog, ...], now: datetime) -> bool:
    """True when there is no log or the latest one is over a week old."""
    if not logs:
        return True
    return now - logs[-1].logged_at > MEASUREMENT_INTERVAL


def reminder_due(last_notification: datetime | None, now: datetime) -> bool:
    """True when no reminder was sent during the last day."""
    if last_notification is None:
        return True
    return now - last_notification > REMINDER_COOLDOWN
