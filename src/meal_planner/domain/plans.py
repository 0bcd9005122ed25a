"""Weekly meal plan models."""

from collections.abc import Callable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

DAYS_PER_PLAN = 7


class FoodItem(BaseModel):
    """Single food with portion and energy."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str
    weight: str
    calories: float
    glycemic_index: str
    is_sugar_or_sweetener: bool | None = None


class Meal(BaseModel):
    """Meal of a given type made of foods."""

    model_config = ConfigDict(frozen=True)

    type: str
    foods: tuple[FoodItem, ...]
    total_calories: float


class DailyPlan(BaseModel):
    """Meals scheduled for one day."""

    model_config = ConfigDict(frozen=True)

    day: str
    meals: tuple[Meal, ...]
    daily_calories: float


class WeeklyPlanData(BaseModel):
    """Seven-day plan with computed energy targets."""

    model_config = ConfigDict(frozen=True)

    bmr: float
    tdee: float
    target_calories: float
    water_target: float
    days: tuple[DailyPlan, ...] = Field(
        min_length=DAYS_PER_PLAN, max_length=DAYS_PER_PLAN
    )


def new_item_id() -> str:
    """Generate an identifier for a food item."""
    return uuid4().hex


def with_fresh_ids(
    days: tuple[DailyPlan, ...], id_factory: Callable[[], str] = new_item_id
) -> tuple[DailyPlan, ...]:
    """Return the days with a newly generated id on every food item."""
    return tuple(
        day.model_copy(
            update={
                "meals": tuple(
                    meal.model_copy(
                        update={
                            "foods": tuple(
                                food.model_copy(update={"id": id_factory()})
                                for food in meal.foods
                            )
                        }
                    )
                    for meal in day.meals
                )
            }
        )
        for day in days
    )


def replace_food(
    plan: WeeklyPlanData,
    day_index: int,
    meal_index: int,
    food_id: str,
    replacement: FoodItem,
) -> WeeklyPlanData:
    """Return a plan where one food of one meal is swapped.

    Every other day, meal and food object is carried over unchanged.
    Raises ``LookupError`` when the target cannot be found.
    """
    if not 0 <= day_index < len(plan.days):
        raise LookupError(f"no day at index {day_index}")
    day = plan.days[day_index]
    if not 0 <= meal_index < len(day.meals):
        raise LookupError(f"no meal at index {meal_index}")
    meal = day.meals[meal_index]
    positions = [i for i, food in enumerate(meal.foods) if food.id == food_id]
    if not positions:
        raise LookupError(f"no food with id {food_id}")

    foods = list(meal.foods)
    foods[positions[0]] = replacement
    meals = list(day.meals)
    meals[meal_index] = meal.model_copy(update={"foods": tuple(foods)})
    days = list(plan.days)
    days[day_index] = day.model_copy(update={"meals": tuple(meals)})
    return plan.model_copy(update={"days": tuple(days)})


def find_food(
    plan: WeeklyPlanData, day_index: int, meal_index: int, food_id: str
) -> tuple[Meal, FoodItem]:
    """Return the meal and food addressed by the given position."""
    if not 0 <= day_index < len(plan.days):
        raise LookupError(f"no day at index {day_index}")
    meals = plan.days[day_index].meals
    if not 0 <= meal_index < len(meals):
        raise LookupError(f"no meal at index {meal_index}")
    meal = meals[meal_index]
    for food in meal.foods:
        if food.id == food_id:
            return meal, food
    raise LookupError(f"no food with id {food_id}")


def summarize_for_shopping(plan: WeeklyPlanData) -> list[dict[str, object]]:
    """Reduce a plan to day labels and "name (portion)" strings."""
    return [
        {
            "day": day.day,
            "foods": [
                f"{food.name} ({food.weight})"
                for meal in day.meals
                for food in meal.foods
            ],
        }
        for day in plan.days
    ]
