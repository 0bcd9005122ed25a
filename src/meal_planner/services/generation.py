"""Plan and shopping list generation through an LLM."""

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from meal_planner.domain.errors import UpstreamError
from meal_planner.domain.plans import (
    DailyPlan,
    FoodItem,
    WeeklyPlanData,
    new_item_id,
    with_fresh_ids,
)
from meal_planner.domain.profile import UserProfile, water_target_ml
from meal_planner.domain.shopping import (
    ShoppingBudget,
    ShoppingDuration,
    ShoppingItem,
    ShoppingListResult,
)
from meal_planner.services import prompts
from meal_planner.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _object(properties: dict[str, object]) -> dict[str, object]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


FOOD_ITEM_SCHEMA = _object(
    {
        "name": {"type": "string"},
        "weight": {"type": "string", "description": "Portion, e.g. 100g or 1 unit"},
        "calories": {"type": "number"},
        "glycemic_index": {
            "type": "string",
            "description": "Glycemic index: Low, Medium or High",
        },
        "is_sugar_or_sweetener": {"anyOf": [{"type": "boolean"}, {"type": "null"}]},
    }
)

MEAL_SCHEMA = _object(
    {
        "type": {"type": "string", "description": "Meal type, e.g. Breakfast"},
        "foods": {"type": "array", "items": FOOD_ITEM_SCHEMA},
        "total_calories": {"type": "number"},
    }
)

WEEKLY_PLAN_SCHEMA = _object(
    {
        "bmr": {"type": "number", "description": "Basal metabolic rate"},
        "tdee": {"type": "number", "description": "Total daily energy expenditure"},
        "target_calories": {"type": "number"},
        "days": {
            "type": "array",
            "items": _object(
                {
                    "day": {"type": "string", "description": "Weekday, e.g. Monday"},
                    "meals": {"type": "array", "items": MEAL_SCHEMA},
                    "daily_calories": {"type": "number"},
                }
            ),
        },
    }
)

SHOPPING_ITEM_SCHEMA = _object(
    {
        "name": {"type": "string"},
        "quantity": {"type": "string", "description": "Estimated total quantity"},
        "category": {"type": "string", "description": "Produce, Butcher, etc."},
    }
)

SHOPPING_LIST_SCHEMA = _object(
    {
        "items": {"type": "array", "items": SHOPPING_ITEM_SCHEMA},
        "estimated_cost": {"type": "string", "description": "Descriptive estimate"},
    }
)


class GenerationClient(Protocol):
    """Interface for structured LLM generation."""

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
        """Return the raw JSON text produced for the instruction."""


class _GeneratedPlan(BaseModel):
    bmr: float
    tdee: float
    target_calories: float
    days: tuple[DailyPlan, ...]


@dataclass
class GenerationService:
    """Builds prompts, calls the model with retries and validates results."""

    client: GenerationClient
    model: str
    reasoning_effort: str | None
    store: bool
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    id_factory: Callable[[], str] = new_item_id

    async def draft_shopping_list(
        self,
        profile: UserProfile,
        budget: ShoppingBudget = ShoppingBudget.ECONOMICAL,
    ) -> ShoppingListResult:
        """Suggest a starter shopping list from the profile alone."""
        return await self._generate(
            prompts.draft_list_prompt(profile, budget),
            SHOPPING_LIST_SCHEMA,
            "draft_shopping_list",
            ShoppingListResult,
        )

    async def generate_weekly_plan(
        self, profile: UserProfile, ingredients: Sequence[str] = ()
    ) -> WeeklyPlanData:
        """Generate a seven-day plan built around the given ingredients."""
        generated = await self._generate(
            prompts.weekly_plan_prompt(profile, ingredients),
            WEEKLY_PLAN_SCHEMA,
            "weekly_plan",
            _GeneratedPlan,
        )
        try:
            return WeeklyPlanData(
                bmr=generated.bmr,
                tdee=generated.tdee,
                target_calories=generated.target_calories,
                water_target=water_target_ml(profile),
                days=with_fresh_ids(generated.days, self.id_factory),
            )
        except ValidationError as exc:
            logger.error("Generated plan rejected: %s", exc)
            raise UpstreamError(
                "The AI service returned an incomplete weekly plan."
            ) from exc

    async def substitute_food(
        self,
        food: FoodItem,
        meal_type: str,
        goal: str,
        available_ingredients: Sequence[str] = (),
    ) -> FoodItem:
        """Suggest a replacement food with a fresh id."""
        replacement = await self._generate(
            prompts.food_substitute_prompt(
                food, meal_type, goal, available_ingredients
            ),
            FOOD_ITEM_SCHEMA,
            "food_substitute",
            FoodItem,
        )
        return replacement.model_copy(update={"id": self.id_factory()})

    async def substitute_shopping_item(
        self, item: ShoppingItem, budget: ShoppingBudget
    ) -> ShoppingItem:
        """Suggest an equivalent shopping item."""
        return await self._generate(
            prompts.shopping_substitute_prompt(item, budget),
            SHOPPING_ITEM_SCHEMA,
            "shopping_item_substitute",
            ShoppingItem,
        )

    async def generate_shopping_list(
        self,
        plan: WeeklyPlanData,
        duration: ShoppingDuration,
        budget: ShoppingBudget,
    ) -> ShoppingListResult:
        """Build a consolidated list covering the plan for a duration."""
        return await self._generate(
            prompts.shopping_list_prompt(plan, duration, budget),
            SHOPPING_LIST_SCHEMA,
            "shopping_list",
            ShoppingListResult,
        )

    async def _generate(
        self,
        instruction: str,
        schema: dict[str, object],
        schema_name: str,
        result_type: type[ModelT],
    ) -> ModelT:
        raw = await self.retry_policy.run(
            lambda: self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instruction=instruction,
                schema=schema,
                schema_name=schema_name,
            ),
            label=schema_name,
        )
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Malformed JSON for %s: %.200s", schema_name, raw)
            raise UpstreamError("The AI service returned malformed data.") from exc
        try:
            return result_type.model_validate(payload)
        except ValidationError as exc:
            logger.error("Schema violation for %s: %s", schema_name, exc)
            raise UpstreamError(
                "The AI service returned data missing required fields."
            ) from exc
