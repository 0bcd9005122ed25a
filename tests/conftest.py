"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from meal_planner.config import Settings
from meal_planner.containers import AppContainer
from meal_planner.domain.accounts import (
    AuthIdentity,
    BodyMetricLog,
    SavedPlan,
    StateRecord,
    StateUpdate,
)
from meal_planner.domain.profile import (
    ActivityLevel,
    Gender,
    Goal,
    MealType,
    UserProfile,
)
from meal_planner.services.accounts import (
    AccountRepository,
    AccountService,
    AuthClient,
)
from meal_planner.services.generation import GenerationClient, GenerationService
from meal_planner.services.planner import PlannerService
from meal_planner.services.retry import RetryPolicy
from meal_planner.services.sessions import SessionRegistry

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)
DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def make_profile(**overrides: object) -> UserProfile:
    values: dict[str, object] = {
        "age": 30,
        "weight": 70,
        "height": 175,
        "gender": Gender.MALE,
        "activity_level": ActivityLevel.MODERATELY_ACTIVE,
        "goal": Goal.FAT_LOSS_MEDIUM,
        "selected_meals": (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER),
    }
    values.update(overrides)
    return UserProfile.model_validate(values)


def food_payload(name: str = "Oats", calories: float = 300) -> dict[str, object]:
    return {
        "name": name,
        "weight": "80g",
        "calories": calories,
        "glycemic_index": "Low",
        "is_sugar_or_sweetener": False,
    }


def plan_payload(days: int = 7) -> dict[str, object]:
    return {
        "bmr": 1700,
        "tdee": 2600,
        "target_calories": 2100,
        "days": [
            {
                "day": DAY_NAMES[index % 7],
                "meals": [
                    {
                        "type": "Breakfast",
                        "foods": [food_payload("Oats"), food_payload("Eggs", 150)],
                        "total_calories": 450,
                    },
                    {
                        "type": "Lunch",
                        "foods": [food_payload("Chicken", 400)],
                        "total_calories": 400,
                    },
                ],
                "daily_calories": 850,
            }
            for index in range(days)
        ],
    }


def shopping_payload(
    *names: str, estimated_cost: str = "Low - about $50"
) -> dict[str, object]:
    item_names = names or ("Chicken", "Rice", "Broccoli")
    categories = {"Chicken": "Butcher", "Rice": "Grocery"}
    return {
        "items": [
            {
                "name": name,
                "quantity": "1kg",
                "category": categories.get(name, "Produce"),
            }
            for name in item_names
        ],
        "estimated_cost": estimated_cost,
    }


@dataclass
class FakeGenerationClient(GenerationClient):
    """Fake generation client returning queued or default payloads."""

    queued: dict[str, list[object]] = field(default_factory=dict)
    calls: list[dict[str, object]] = field(default_factory=list)

    def queue(self, schema_name: str, *results: object) -> None:
        self.queued.setdefault(schema_name, []).extend(results)

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instruction: str,
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        self.calls.append(
            {"schema_name": schema_name, "instruction": instruction, "model": model}
        )
        pending = self.queued.get(schema_name)
        result = pending.pop(0) if pending else self._default(schema_name)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, str):
            return result
        return json.dumps(result)

    def calls_for(self, schema_name: str) -> list[dict[str, object]]:
        return [call for call in self.calls if call["schema_name"] == schema_name]

    @staticmethod
    def _default(schema_name: str) -> object:
        if schema_name == "weekly_plan":
            return plan_payload()
        if schema_name == "food_substitute":
            return food_payload("Quinoa", 280)
        if schema_name == "shopping_item_substitute":
            return {"name": "Turkey", "quantity": "1kg", "category": "Butcher"}
        return shopping_payload()


@dataclass
class FakeAuthClient(AuthClient):
    """Fake auth client keeping identities in memory."""

    users: dict[str, tuple[str, AuthIdentity]] = field(default_factory=dict)
    session: AuthIdentity | None = None
    sign_up_error: Exception | None = None
    signed_out: int = 0

    def add_user(self, email: str, password: str) -> AuthIdentity:
        identity = AuthIdentity(user_id=uuid4(), email=email)
        self.users[email] = (password, identity)
        return identity

    def sign_up(self, email: str, password: str) -> AuthIdentity | None:
        if self.sign_up_error is not None:
            raise self.sign_up_error
        if email in self.users:
            raise RuntimeError("User already registered")
        self.session = self.add_user(email, password)
        return self.session

    def sign_in(self, email: str, password: str) -> AuthIdentity | None:
        stored = self.users.get(email)
        if stored is None or stored[0] != password:
            raise RuntimeError("Invalid login credentials")
        self.session = stored[1]
        return self.session

    def current_identity(self) -> AuthIdentity | None:
        return self.session

    def sign_out(self) -> None:
        self.signed_out += 1
        self.session = None


@dataclass
class InMemoryAccountRepository(AccountRepository):
    """In-memory account repository for tests."""

    states: dict[UUID, StateRecord] = field(default_factory=dict)
    logs: dict[UUID, list[BodyMetricLog]] = field(default_factory=dict)
    saved_plans: dict[UUID, list[SavedPlan]] = field(default_factory=dict)
    fail_writes: bool = False
    fail_reads: bool = False
    deletes: list[UUID] = field(default_factory=list)

    def _check_write(self) -> None:
        if self.fail_writes:
            raise RuntimeError("write failed")

    def get_state(self, user_id: UUID) -> StateRecord | None:
        if self.fail_reads:
            raise RuntimeError("read failed")
        return self.states.get(user_id)

    def create_state(self, user_id: UUID) -> StateRecord:
        self._check_write()
        self.states[user_id] = StateRecord()
        return self.states[user_id]

    def upsert_state(self, user_id: UUID, update: StateUpdate) -> None:
        self._check_write()
        current = self.states.get(user_id, StateRecord())
        changes = update.changes()
        self.states[user_id] = StateRecord(
            profile=changes.get("profile", current.profile),  # type: ignore[arg-type]
            plan=changes.get("plan", current.plan),  # type: ignore[arg-type]
            shopping_list=changes.get(  # type: ignore[arg-type]
                "shopping_list", current.shopping_list
            ),
            last_notification=changes.get(  # type: ignore[arg-type]
                "last_notification", current.last_notification
            ),
        )

    def list_logs(self, user_id: UUID) -> list[BodyMetricLog]:
        return sorted(self.logs.get(user_id, []), key=lambda log: log.logged_at)

    def insert_log(self, user_id: UUID, log: BodyMetricLog) -> None:
        self._check_write()
        self.logs.setdefault(user_id, []).append(log)

    def list_saved_plans(self, user_id: UUID) -> list[SavedPlan]:
        return sorted(
            self.saved_plans.get(user_id, []),
            key=lambda plan: plan.created_at,
            reverse=True,
        )

    def insert_saved_plan(self, user_id: UUID, plan: SavedPlan) -> None:
        self._check_write()
        self.saved_plans.setdefault(user_id, []).append(plan)

    def delete_saved_plan(self, user_id: UUID, plan_id: UUID) -> None:
        self._check_write()
        self.deletes.append(plan_id)
        self.saved_plans[user_id] = [
            plan for plan in self.saved_plans.get(user_id, []) if plan.id != plan_id
        ]


@dataclass
class RecordingSleep:
    """Async sleep stand-in that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@dataclass
class FixedClock:
    """Clock returning a settable instant."""

    now: datetime = NOW

    def __call__(self) -> datetime:
        return self.now


def make_generation_service(
    client: GenerationClient, sleep: RecordingSleep | None = None
) -> GenerationService:
    return GenerationService(
        client=client,
        model="gpt-5.2",
        reasoning_effort="medium",
        store=False,
        retry_policy=RetryPolicy(sleep=sleep or RecordingSleep()),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def auth_client() -> FakeAuthClient:
    return FakeAuthClient()


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def account_service(
    auth_client: FakeAuthClient, account_repository: InMemoryAccountRepository
) -> AccountService:
    return AccountService(auth=auth_client, repository=account_repository)


@pytest.fixture
def planner(
    account_service: AccountService,
    generation_client: FakeGenerationClient,
    clock: FixedClock,
) -> PlannerService:
    return PlannerService(
        accounts=account_service,
        generation=make_generation_service(generation_client),
        clock=clock,
    )


@pytest.fixture
def generation_service(generation_client: FakeGenerationClient) -> GenerationService:
    return make_generation_service(generation_client)


@pytest.fixture
def sessions(
    auth_client: FakeAuthClient,
    account_repository: InMemoryAccountRepository,
    generation_service: GenerationService,
    clock: FixedClock,
) -> SessionRegistry:
    def open_planner() -> PlannerService:
        # Each session signs in on its own auth client over one user directory.
        accounts = AccountService(
            auth=FakeAuthClient(users=auth_client.users),
            repository=account_repository,
        )
        return PlannerService(
            accounts=accounts, generation=generation_service, clock=clock
        )

    return SessionRegistry(factory=open_planner, clock=clock)


@pytest.fixture
def container(
    settings: Settings,
    generation_service: GenerationService,
    sessions: SessionRegistry,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        generation_service=generation_service,
        sessions=sessions,
        close_resources=close_resources,
    )
