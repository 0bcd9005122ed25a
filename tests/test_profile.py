"""Tests for profile rules and plan helpers."""

import pytest
from pydantic import ValidationError

from meal_planner.domain.errors import InputValidationError
from meal_planner.domain.profile import (
    IntermittentFasting,
    MealType,
    default_profile,
    feeding_window,
    is_cheat_day,
    is_fasting_day,
    validate_for_generation,
    water_target_ml,
)
from tests.conftest import make_profile


def test_water_target_is_35ml_per_kg() -> None:
    assert water_target_ml(make_profile(weight=70)) == 2450
    assert water_target_ml(make_profile(weight=82.5)) == pytest.approx(2887.5)


def test_default_profile_is_submittable() -> None:
    validate_for_generation(default_profile())


def test_fasting_needs_days() -> None:
    profile = make_profile(intermittent_fasting={"enabled": True, "days": []})

    with pytest.raises(InputValidationError):
        validate_for_generation(profile)


def test_selected_meals_are_deduplicated() -> None:
    profile = make_profile(selected_meals=(MealType.LUNCH, MealType.LUNCH))

    assert profile.selected_meals == (MealType.LUNCH,)


@pytest.mark.parametrize(
    "fasting",
    [
        {"hours": 15},
        {"days": ["Monday"]},
        {"start_time": "25:00"},
    ],
)
def test_invalid_fasting_settings_are_rejected(fasting: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        IntermittentFasting.model_validate(fasting)


def test_cheat_day_must_be_a_weekday() -> None:
    with pytest.raises(ValidationError):
        make_profile(cheat_day="Someday")


def test_feeding_window_follows_fast() -> None:
    fasting = IntermittentFasting(enabled=True, hours=16, days=("Mon",))

    assert feeding_window(fasting) == "12:00 - 20:00"


def test_day_flags() -> None:
    profile = make_profile(
        intermittent_fasting={"enabled": True, "days": ["Mon", "Thu"]},
        cheat_day="Saturday",
    )

    assert is_fasting_day(profile, "Monday")
    assert not is_fasting_day(profile, "Tuesday")
    assert is_cheat_day(profile, "Saturday")
    assert not is_cheat_day(make_profile(), "Saturday")
