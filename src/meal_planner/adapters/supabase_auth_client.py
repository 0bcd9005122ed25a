"""Supabase Auth client for email/password sessions."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from meal_planner.domain.accounts import AuthIdentity
from meal_planner.services.accounts import AuthClient


def _identity(user: object | None) -> AuthIdentity | None:
    if user is None:
        return None
    return AuthIdentity(
        user_id=UUID(str(user.id)),  # type: ignore[attr-defined]
        email=user.email or "",  # type: ignore[attr-defined]
    )


@dataclass
class SupabaseAuthClient(AuthClient):
    """Supabase implementation for authentication."""

    client: Client

    def sign_up(self, email: str, password: str) -> AuthIdentity | None:
        """Create an identity with email and password."""
        response = self.client.auth.sign_up({"email": email, "password": password})
        return _identity(response.user)

    def sign_in(self, email: str, password: str) -> AuthIdentity | None:
        """Authenticate with email and password."""
        response = self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        return _identity(response.user)

    def current_identity(self) -> AuthIdentity | None:
        """Return the identity of the stored session, if any."""
        session = self.client.auth.get_session()
        if session is None:
            return None
        return _identity(session.user)

    def sign_out(self) -> None:
        """End the stored session."""
        self.client.auth.sign_out()
