"""User profile models and onboarding rules."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meal_planner.domain.errors import InputValidationError

WEEKDAY_ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
FASTING_HOURS = (12, 14, 16, 18, 20, 24)


class Gender(StrEnum):
    """Biological sex used for energy estimates."""

    MALE = "Male"
    FEMALE = "Female"


class ActivityLevel(StrEnum):
    """Weekly activity level."""

    SEDENTARY = "Sedentary (little or no exercise)"
    LIGHTLY_ACTIVE = "Lightly active (1-3 days/week)"
    MODERATELY_ACTIVE = "Moderately active (3-5 days/week)"
    VERY_ACTIVE = "Very active (6-7 days/week)"
    EXTRA_ACTIVE = "Extra active (heavy physical work)"


class Goal(StrEnum):
    """Nutrition goal driving calorie targets."""

    FAT_LOSS_MODERATE = "Fat loss (moderate)"
    FAT_LOSS_MEDIUM = "Fat loss (medium)"
    FAT_LOSS_HIGH = "Fat loss (aggressive)"
    MAINTAIN = "Maintain weight"
    HYPERTROPHY_MEDIUM = "Hypertrophy (medium)"
    HYPERTROPHY_HIGH = "Hypertrophy (high performance)"
    BODY_RECOMPOSITION = "Body recomposition (lose fat and gain muscle)"


class MealType(StrEnum):
    """Meals a plan can contain."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    SNACK = "Afternoon snack"
    DINNER = "Dinner"
    SUPPER = "Supper"


class IntermittentFasting(BaseModel):
    """Intermittent fasting protocol."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    hours: int = 16
    days: tuple[str, ...] = ()
    start_time: str = Field(default="20:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

    @field_validator("hours")
    @classmethod
    def _check_hours(cls, value: int) -> int:
        if value not in FASTING_HOURS:
            raise ValueError(f"fasting hours must be one of {FASTING_HOURS}")
        return value

    @field_validator("days")
    @classmethod
    def _check_days(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [day for day in value if day not in WEEKDAY_ABBREVIATIONS]
        if unknown:
            raise ValueError(f"unknown fasting days: {', '.join(unknown)}")
        return tuple(dict.fromkeys(value))


class UserProfile(BaseModel):
    """Body metrics, goal and meal preferences entered during onboarding."""

    model_config = ConfigDict(frozen=True)

    age: int = Field(gt=0, lt=130)
    weight: float = Field(gt=0)
    height: float = Field(gt=0)
    gender: Gender
    activity_level: ActivityLevel
    goal: Goal
    selected_meals: tuple[MealType, ...]
    intermittent_fasting: IntermittentFasting = IntermittentFasting()
    cheat_day: str | None = None

    @field_validator("selected_meals")
    @classmethod
    def _dedupe_meals(cls, value: tuple[MealType, ...]) -> tuple[MealType, ...]:
        return tuple(dict.fromkeys(value))

    @field_validator("cheat_day")
    @classmethod
    def _check_cheat_day(cls, value: str | None) -> str | None:
        if value is not None and value not in WEEKDAY_NAMES:
            raise ValueError(f"cheat day must be one of {WEEKDAY_NAMES}")
        return value


def default_profile() -> UserProfile:
    """Return the profile the onboarding wizard starts from."""
    return UserProfile(
        age=30,
        weight=70,
        height=170,
        gender=Gender.MALE,
        activity_level=ActivityLevel.MODERATELY_ACTIVE,
        goal=Goal.FAT_LOSS_MEDIUM,
        selected_meals=(MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER),
    )


def validate_for_generation(profile: UserProfile) -> None:
    """Raise when the profile cannot be submitted for plan generation."""
    if not profile.selected_meals:
        raise InputValidationError("Select at least one meal.")
    fasting = profile.intermittent_fasting
    if fasting.enabled and not fasting.days:
        raise InputValidationError("Select at least one fasting day.")


def water_target_ml(profile: UserProfile) -> float:
    """Daily water target: 35 ml per kg of body weight."""
    return profile.weight * 35


def feeding_window(fasting: IntermittentFasting) -> str:
    """Describe the eating window implied by the fast start time."""
    start_hour = int(fasting.start_time.split(":")[0])
    end_fast_hour = (start_hour + fasting.hours) % 24
    return f"{end_fast_hour:02d}:00 - {fasting.start_time}"


def is_fasting_day(profile: UserProfile, day_label: str) -> bool:
    """Return True when the plan day falls on an active fasting day."""
    fasting = profile.intermittent_fasting
    return fasting.enabled and any(day in day_label for day in fasting.days)


def is_cheat_day(profile: UserProfile, day_label: str) -> bool:
    """Return True when the plan day is the user's cheat day."""
    if not profile.cheat_day:
        return False
    return profile.cheat_day.lower() in day_label.lower()
