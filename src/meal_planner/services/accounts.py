"""Account store façade: authentication and per-user records."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from meal_planner.domain.accounts import (
    AuthIdentity,
    BodyMetricLog,
    SavedPlan,
    StateRecord,
    StateUpdate,
    UserAccount,
)
from meal_planner.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

SIGN_UP_RATE_LIMITED_MESSAGE = (
    "Too many sign-up attempts. Please wait a few minutes or try logging in "
    "(your account may already exist)."
)
_RATE_LIMIT_MARKERS = ("rate limit", "too many")


class AuthClient(Protocol):
    """Interface for identity and session management."""

    def sign_up(self, email: str, password: str) -> AuthIdentity | None:
        """Create an identity and return it, if the store returned one."""

    def sign_in(self, email: str, password: str) -> AuthIdentity | None:
        """Authenticate and return the identity."""

    def current_identity(self) -> AuthIdentity | None:
        """Return the identity of the active session, if any."""

    def sign_out(self) -> None:
        """End the active session."""


class AccountRepository(Protocol):
    """Persistence interface for per-user records."""

    def get_state(self, user_id: UUID) -> StateRecord | None:
        """Return the user's state row, if present."""

    def create_state(self, user_id: UUID) -> StateRecord:
        """Insert an empty state row and return it."""

    def upsert_state(self, user_id: UUID, update: StateUpdate) -> None:
        """Write the provided state fields, leaving the others untouched."""

    def list_logs(self, user_id: UUID) -> list[BodyMetricLog]:
        """Return body logs ordered by time ascending."""

    def insert_log(self, user_id: UUID, log: BodyMetricLog) -> None:
        """Append a body log."""

    def list_saved_plans(self, user_id: UUID) -> list[SavedPlan]:
        """Return saved plans, newest first."""

    def insert_saved_plan(self, user_id: UUID, plan: SavedPlan) -> None:
        """Insert a saved plan keyed by its id."""

    def delete_saved_plan(self, user_id: UUID, plan_id: UUID) -> None:
        """Delete a saved plan owned by the user."""


def _is_rate_limited(error: Exception) -> bool:
    if getattr(error, "status", None) == 429:  # noqa: PLR2004
        return True
    message = str(error).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)


@dataclass
class AccountService:
    """Maps planner intents onto the account store."""

    auth: AuthClient
    repository: AccountRepository

    def register(self, email: str, password: str) -> UserAccount:
        """Create an identity; a failed state-row insert is tolerated."""
        try:
            identity = self.auth.sign_up(email, password)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.warning("Sign-up failed for %s: %s", email, exc)
            if _is_rate_limited(exc):
                raise AuthenticationError(SIGN_UP_RATE_LIMITED_MESSAGE) from exc
            raise AuthenticationError(str(exc) or "Could not create account.") from exc
        if identity is None:
            raise AuthenticationError("Sign-up returned no user.")

        try:
            self.repository.create_state(identity.user_id)
        except Exception:
            logger.warning(
                "Could not create state row for %s; it will be created on load",
                identity.user_id,
                exc_info=True,
            )
        return UserAccount.empty(identity)

    def login(self, email: str, password: str) -> UserAccount:
        """Authenticate and load the full account."""
        try:
            identity = self.auth.sign_in(email, password)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.warning("Login failed for %s: %s", email, exc)
            raise AuthenticationError(str(exc) or "Could not log in.") from exc
        if identity is None:
            raise AuthenticationError("Could not log in.")
        return self.load_account(identity.user_id, identity.email)

    def current_session(self) -> UserAccount | None:
        """Return the account of the active session, or None."""
        try:
            identity = self.auth.current_identity()
        except ConfigurationError:
            raise
        except Exception as exc:
            raise AuthenticationError("Could not check the current session.") from exc
        if identity is None:
            return None
        return self.load_account(identity.user_id, identity.email)

    def logout(self) -> None:
        """End the active session."""
        try:
            self.auth.sign_out()
        except ConfigurationError:
            raise
        except Exception as exc:
            raise AuthenticationError("Could not log out.") from exc

    def load_account(self, user_id: UUID, email: str) -> UserAccount:
        """Rebuild the account aggregate from the three collections."""
        try:
            state = self.repository.get_state(user_id)
            if state is None:
                state = self._create_missing_state(user_id)
            logs = self.repository.list_logs(user_id)
            saved_plans = self.repository.list_saved_plans(user_id)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.exception("Failed to load account %s", user_id)
            raise PersistenceError("Could not load your account data.") from exc

        return UserAccount(
            id=user_id,
            email=email,
            logs=tuple(logs),
            current_profile=state.profile,
            current_plan=state.plan,
            current_shopping_list=state.shopping_list,
            saved_plans=tuple(saved_plans),
            last_notification=state.last_notification,
        )

    def save_state(self, user_id: UUID, update: StateUpdate) -> None:
        """Write the provided fields of the user's state row."""
        if not update.changes():
            return
        self._write("save state", lambda: self.repository.upsert_state(user_id, update))

    def append_log(self, user_id: UUID, log: BodyMetricLog) -> None:
        """Append a body log."""
        self._write("append log", lambda: self.repository.insert_log(user_id, log))

    def save_saved_plan(self, user_id: UUID, plan: SavedPlan) -> None:
        """Insert a saved plan."""
        self._write(
            "save plan", lambda: self.repository.insert_saved_plan(user_id, plan)
        )

    def delete_saved_plan(self, user_id: UUID, plan_id: UUID) -> None:
        """Delete a saved plan owned by the user."""
        self._write(
            "delete plan",
            lambda: self.repository.delete_saved_plan(user_id, plan_id),
        )

    def _create_missing_state(self, user_id: UUID) -> StateRecord:
        logger.warning("State row missing for %s, creating default", user_id)
        try:
            return self.repository.create_state(user_id)
        except Exception:
            logger.exception("Failed to auto-create state row for %s", user_id)
            return StateRecord()

    @staticmethod
    def _write(action: str, operation: Callable[[], None]) -> None:
        try:
            operation()
        except ConfigurationError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Could not {action}.") from exc
