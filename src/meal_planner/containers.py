"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_planner.adapters.openai_generation_client import OpenAIGenerationClient
from meal_planner.adapters.supabase_account_repository import (
    SupabaseAccountRepository,
)
from meal_planner.adapters.supabase_auth_client import SupabaseAuthClient
from meal_planner.adapters.unconfigured import (
    UnconfiguredAccountRepository,
    UnconfiguredAuthClient,
    UnconfiguredGenerationClient,
)
from meal_planner.config import Settings
from meal_planner.services.accounts import AccountService
from meal_planner.services.generation import GenerationService
from meal_planner.services.planner import PlannerService
from meal_planner.services.sessions import SessionRegistry

logger = logging.getLogger(__name__)

ACCOUNT_STORE_MISSING_MESSAGE = (
    "The account store is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY."
)
AI_KEY_MISSING_MESSAGE = "The AI service is not configured. Set OPENAI_API_KEY."


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    generation_service: GenerationService
    sessions: SessionRegistry
    close_resources: Callable[[], Awaitable[None]]


def build_account_service(settings: Settings) -> AccountService:
    """Create an account service with its own Supabase client.

    The Supabase client keeps the signed-in session, so every planner
    session gets a fresh one.
    """
    if not settings.has_account_store:
        return AccountService(
            auth=UnconfiguredAuthClient(ACCOUNT_STORE_MISSING_MESSAGE),
            repository=UnconfiguredAccountRepository(ACCOUNT_STORE_MISSING_MESSAGE),
        )
    supabase_client = create_client(settings.supabase_url, settings.supabase_anon_key)
    return AccountService(
        auth=SupabaseAuthClient(supabase_client),
        repository=SupabaseAccountRepository(supabase_client),
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    missing = resolved_settings.missing_collaborators()
    if missing:
        logger.warning("Running in degraded mode, missing: %s", ", ".join(missing))

    generation_client: OpenAIGenerationClient | UnconfiguredGenerationClient
    if resolved_settings.openai_api_key:
        generation_client = OpenAIGenerationClient.create(
            resolved_settings.openai_api_key
        )
    else:
        generation_client = UnconfiguredGenerationClient(AI_KEY_MISSING_MESSAGE)

    generation_service = GenerationService(
        client=generation_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )

    def open_planner() -> PlannerService:
        return PlannerService(
            accounts=build_account_service(resolved_settings),
            generation=generation_service,
        )

    sessions = SessionRegistry(
        factory=open_planner, ttl_seconds=resolved_settings.session_ttl_seconds
    )

    async def close_resources() -> None:
        await generation_client.close()

    return AppContainer(
        settings=resolved_settings,
        generation_service=generation_service,
        sessions=sessions,
        close_resources=close_resources,
    )
