"""Stand-in collaborators used when a backing service is not configured."""

from dataclasses import dataclass
from uuid import UUID

from meal_planner.domain.accounts import (
    AuthIdentity,
    BodyMetricLog,
    SavedPlan,
    StateRecord,
    StateUpdate,
)
from meal_planner.domain.errors import ConfigurationError
from meal_planner.services.accounts import AccountRepository, AuthClient
from meal_planner.services.generation import GenerationClient


@dataclass
class UnconfiguredAuthClient(AuthClient):
    """Auth client that reports missing account store settings."""

    message: str

    def sign_up(self, email: str, password: str) -> AuthIdentity | None:
        """Raise a configuration error."""
        raise ConfigurationError(self.message)

    def sign_in(self, email: str, password: str) -> AuthIdentity | None:
        """Raise a configuration error."""
        raise ConfigurationError(self.message)

    def current_identity(self) -> AuthIdentity | None:
        """Raise a configuration error."""
        raise ConfigurationError(self.message)

    def sign_out(self) -> None:
        """Nothing to sign out of."""


@dataclass
class UnconfiguredAccountRepository(AccountRepository):
    """Repository that reports missing account store settings."""

    message: str

    def get_state(self, user_id: UUID) -> StateRecord | None:
        raise ConfigurationError(self.message)

    def create_state(self, user_id: UUID) -> StateRecord:
        raise ConfigurationError(self.message)

    def upsert_state(self, user_id: UUID, update: StateUpdate) -> None:
        raise ConfigurationError(self.message)

    def list_logs(self, user_id: UUID) -> list[BodyMetricLog]:
        raise ConfigurationError(self.message)

    def insert_log(self, user_id: UUID, log: BodyMetricLog) -> None:
        raise ConfigurationError(self.message)

    def list_saved_plans(self, user_id: UUID) -> list[SavedPlan]:
        raise ConfigurationError(self.message)

    def insert_saved_plan(self, user_id: UUID, plan: SavedPlan) -> None:
        raise ConfigurationError(self.message)

    def delete_saved_plan(self, user_id: UUID, plan_id: UUID) -> None:
        raise ConfigurationError(self.message)


@dataclass
class UnconfiguredGenerationClient(GenerationClient):
    """Generation client that reports a missing API key."""

    message: str

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
        """Raise a configuration error."""
        raise ConfigurationError(self.message)

    async def close(self) -> None:
        """Nothing to close."""
