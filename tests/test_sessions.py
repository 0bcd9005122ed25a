"""Tests for the session registry."""

from datetime import timedelta

from meal_planner.services.planner import PlannerService
from meal_planner.services.sessions import SessionRegistry
from tests.conftest import FixedClock


def test_tokens_resolve_to_their_own_planner(sessions: SessionRegistry) -> None:
    first = sessions.create()
    second = sessions.create()

    first_token = sessions.add(first)
    second_token = sessions.add(second)

    assert first_token != second_token
    assert sessions.get(first_token) is first
    assert sessions.get(second_token) is second
    assert first.accounts.auth is not second.accounts.auth


def test_created_planner_is_unreachable_until_added(
    sessions: SessionRegistry,
) -> None:
    sessions.create()

    assert len(sessions) == 0


def test_missing_or_unknown_token_resolves_to_nothing(
    sessions: SessionRegistry,
) -> None:
    sessions.add(sessions.create())

    assert sessions.get(None) is None
    assert sessions.get("") is None
    assert sessions.get("unknown") is None


def test_discard_forgets_token(sessions: SessionRegistry) -> None:
    token = sessions.add(sessions.create())

    sessions.discard(token)
    sessions.discard(token)
    sessions.discard(None)

    assert sessions.get(token) is None
    assert len(sessions) == 0


def test_idle_sessions_expire(
    sessions: SessionRegistry, clock: FixedClock
) -> None:
    token = sessions.add(sessions.create())

    clock.now += timedelta(seconds=sessions.ttl_seconds)

    assert sessions.get(token) is None
    assert len(sessions) == 0


def test_use_extends_session_lifetime(
    sessions: SessionRegistry, clock: FixedClock
) -> None:
    planner = sessions.create()
    token = sessions.add(planner)
    start = clock.now

    clock.now = start + timedelta(seconds=sessions.ttl_seconds - 1)
    assert sessions.get(token) is planner
    clock.now = start + timedelta(seconds=sessions.ttl_seconds + 1)

    assert sessions.get(token) is planner


def test_adding_a_session_evicts_expired_ones(
    sessions: SessionRegistry, clock: FixedClock
) -> None:
    stale = sessions.add(sessions.create())
    clock.now += timedelta(seconds=sessions.ttl_seconds + 1)

    fresh: PlannerService = sessions.create()
    token = sessions.add(fresh)

    assert len(sessions) == 1
    assert sessions.get(stale) is None
    assert sessions.get(token) is fresh
