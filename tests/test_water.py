"""Tests for water tracking helpers."""

from meal_planner.domain.water import add_cup, hourly_goal, progress_percent, remove_cup


def test_add_cup_caps_at_target_plus_overflow() -> None:
    assert add_cup(0, 2000) == 250
    assert add_cup(2900, 2000) == 3000


def test_remove_cup_floors_at_zero() -> None:
    assert remove_cup(100) == 0
    assert remove_cup(500) == 250


def test_progress_percent() -> None:
    assert progress_percent(1225, 2450) == 50
    assert progress_percent(5000, 2450) == 100


def test_hourly_goal_wraps_past_midnight() -> None:
    assert hourly_goal(2800) == 200
    assert hourly_goal(2400, wake_time="22:00", bed_time="06:00") == 300
