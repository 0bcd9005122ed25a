"""Supabase repository for per-user planner records."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel
from supabase import Client

from meal_planner.domain.accounts import (
    BodyMetricLog,
    SavedPlan,
    StateRecord,
    StateUpdate,
)
from meal_planner.domain.plans import WeeklyPlanData
from meal_planner.domain.profile import UserProfile
from meal_planner.domain.shopping import ShoppingListResult
from meal_planner.services.accounts import AccountRepository

_STATE_COLUMNS = "user_id, profile, current_plan, shopping_list, last_notification"
_LOG_COLUMNS = "date, weight, neck, biceps, chest, waist, hips"
_SAVED_PLAN_COLUMNS = "id, name, created_at, plan_data, user_profile, shopping_list"
_STATE_FIELD_COLUMNS = {
    "profile": "profile",
    "plan": "current_plan",
    "shopping_list": "shopping_list",
    "last_notification": "last_notification",
}


def to_millis(moment: datetime) -> int:
    """Encode a timestamp as epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_millis(value: int | float | str) -> datetime:
    """Decode epoch milliseconds into an aware UTC timestamp."""
    return datetime.fromtimestamp(int(float(value)) / 1000, tz=UTC)


def _dump(value: object) -> object:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return to_millis(value)
    return value


def _state_from_row(row: dict[str, object]) -> StateRecord:
    profile = row.get("profile")
    plan = row.get("current_plan")
    shopping_list = row.get("shopping_list")
    last_notification = row.get("last_notification")
    return StateRecord(
        profile=UserProfile.model_validate(profile) if profile else None,
        plan=WeeklyPlanData.model_validate(plan) if plan else None,
        shopping_list=(
            ShoppingListResult.model_validate(shopping_list) if shopping_list else None
        ),
        last_notification=(
            from_millis(last_notification)  # type: ignore[arg-type]
            if last_notification is not None
            else None
        ),
    )


def _log_from_row(row: dict[str, object]) -> BodyMetricLog:
    return BodyMetricLog(
        logged_at=from_millis(row["date"]),  # type: ignore[arg-type]
        weight=float(row["weight"]),  # type: ignore[arg-type]
        neck=float(row.get("neck") or 0),  # type: ignore[arg-type]
        biceps=float(row.get("biceps") or 0),  # type: ignore[arg-type]
        chest=float(row.get("chest") or 0),  # type: ignore[arg-type]
        waist=float(row.get("waist") or 0),  # type: ignore[arg-type]
        hips=float(row.get("hips") or 0),  # type: ignore[arg-type]
    )


def _saved_plan_from_row(row: dict[str, object]) -> SavedPlan:
    shopping_list = row.get("shopping_list")
    return SavedPlan(
        id=UUID(str(row["id"])),
        name=str(row["name"]),
        created_at=from_millis(row["created_at"]),  # type: ignore[arg-type]
        plan=WeeklyPlanData.model_validate(row["plan_data"]),
        profile=UserProfile.model_validate(row["user_profile"]),
        shopping_list=(
            ShoppingListResult.model_validate(shopping_list) if shopping_list else None
        ),
    )


@dataclass
class SupabaseAccountRepository(AccountRepository):
    """Supabase implementation over user_state, body_logs and saved_plans."""

    client: Client

    def get_state(self, user_id: UUID) -> StateRecord | None:
        """Return the user's state row, if present."""
        response = (
            self.client.table("user_state")
            .select(_STATE_COLUMNS)
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _state_from_row(response.data[0])

    def create_state(self, user_id: UUID) -> StateRecord:
        """Insert an empty state row."""
        response = (
            self.client.table("user_state")
            .insert({"user_id": str(user_id)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create user state")
        return _state_from_row(response.data[0])

    def upsert_state(self, user_id: UUID, update: StateUpdate) -> None:
        """Write only the provided fields of the state row."""
        payload: dict[str, object] = {"user_id": str(user_id)}
        for field_name, value in update.changes().items():
            payload[_STATE_FIELD_COLUMNS[field_name]] = _dump(value)
        self.client.table("user_state").upsert(payload).execute()

    def list_logs(self, user_id: UUID) -> list[BodyMetricLog]:
        """Return body logs oldest first."""
        response = (
            self.client.table("body_logs")
            .select(_LOG_COLUMNS)
            .eq("user_id", str(user_id))
            .order("date", desc=False)
            .execute()
        )
        return [_log_from_row(row) for row in response.data or []]

    def insert_log(self, user_id: UUID, log: BodyMetricLog) -> None:
        """Append a body log."""
        self.client.table("body_logs").insert(
            {
                "user_id": str(user_id),
                "date": to_millis(log.logged_at),
                "weight": log.weight,
                "neck": log.neck,
                "biceps": log.biceps,
                "chest": log.chest,
                "waist": log.waist,
                "hips": log.hips,
            }
        ).execute()

    def list_saved_plans(self, user_id: UUID) -> list[SavedPlan]:
        """Return saved plans newest first."""
        response = (
            self.client.table("saved_plans")
            .select(_SAVED_PLAN_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [_saved_plan_from_row(row) for row in response.data or []]

    def insert_saved_plan(self, user_id: UUID, plan: SavedPlan) -> None:
        """Insert a saved plan keyed by its own id."""
        self.client.table("saved_plans").insert(
            {
                "id": str(plan.id),
                "user_id": str(user_id),
                "name": plan.name,
                "created_at": to_millis(plan.created_at),
                "plan_data": _dump(plan.plan),
                "user_profile": _dump(plan.profile),
                "shopping_list": _dump(plan.shopping_list),
            }
        ).execute()

    def delete_saved_plan(self, user_id: UUID, plan_id: UUID) -> None:
        """Delete a saved plan owned by the user; missing ids are a no-op."""
        self.client.table("saved_plans").delete().eq("id", str(plan_id)).eq(
            "user_id", str(user_id)
        ).execute()
