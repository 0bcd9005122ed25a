"""Instruction builders for the generation service."""

import json
from collections.abc import Sequence

from meal_planner.domain.plans import FoodItem, WeeklyPlanData, summarize_for_shopping
from meal_planner.domain.profile import UserProfile
from meal_planner.domain.shopping import (
    ShoppingBudget,
    ShoppingDuration,
    ShoppingItem,
)


def draft_list_prompt(profile: UserProfile, budget: ShoppingBudget) -> str:
    """Ask for a one-week starter shopping list for a profile."""
    meals = ", ".join(profile.selected_meals)
    return (
        "Act as a nutritionist. Create a SUGGESTED SHOPPING LIST for one week "
        "for a client with this profile:\n"
        f"- Goal: {profile.goal}\n"
        f"- Meals: {meals}\n"
        f"- Cost profile: {budget}\n\n"
        "Include the essential, basic ingredients needed to reach the goal. "
        "For hypertrophy focus on protein sources (chicken, eggs) and clean "
        "carbohydrates (rice, potatoes); for fat loss focus on vegetables and "
        "lean proteins.\n"
        "Return categories and estimated quantities for 7 days."
    )


def _fasting_details(profile: UserProfile) -> str:
    fasting = profile.intermittent_fasting
    if not fasting.enabled:
        return "No intermittent fasting."
    return (
        f"Fasting protocol: {fasting.hours} hours of fasting starting at "
        f"{fasting.start_time}. Fasting days: {', '.join(fasting.days)}."
    )


def weekly_plan_prompt(profile: UserProfile, ingredients: Sequence[str]) -> str:
    """Ask for a personalized seven-day plan."""
    sections = [
        "Act as an elite sports nutritionist. Create a HIGHLY personalized "
        "7-day meal plan.",
        "CLIENT DATA:\n"
        f"- Age: {profile.age} | Weight: {profile.weight}kg | "
        f"Height: {profile.height}cm | Gender: {profile.gender}\n"
        f"- Activity level: {profile.activity_level}\n"
        f"- Goal: {profile.goal}\n"
        f"- Intermittent fasting: {_fasting_details(profile)}\n"
        f"- Meals wanted: {', '.join(profile.selected_meals)}.",
    ]
    if ingredients:
        sections.append(
            "STOCK RULE: build the menu EXCLUSIVELY (or mostly) from these "
            f"ingredients the user already selected: {', '.join(ingredients)}. "
            "Avoid adding new items other than basic seasonings (salt, oil)."
        )
    if profile.cheat_day:
        sections.append(
            f'CHEAT DAY: "{profile.cheat_day}" is a free day. For that day do not '
            "restrict calories (set meal and daily calories to zero), name the "
            'foods "Free meal" or enjoyable suggestions, and add a note of '
            "encouragement."
        )
    sections.append(
        "GUIDELINES:\n"
        "1. Use Mifflin-St Jeor for BMR and compute TDEE.\n"
        "2. Fat loss: 15-30% calorie deficit by intensity, protein around "
        "2g/kg. Hypertrophy: 200-500kcal surplus, protein 1.6-2.2g/kg. "
        "Maintain/recomposition: adjust as needed.\n"
        "3. When fasting is active, fit meals inside the eating window and keep "
        "the calorie density needed on fasting days.\n"
        "4. Flag sugars and sweeteners and suggest substitutes (stevia, xylitol, "
        "erythritol) for weight-loss goals.\n"
        "Return exactly 7 days, one per weekday starting on Monday."
    )
    return "\n\n".join(sections)


def food_substitute_prompt(
    food: FoodItem,
    meal_type: str,
    goal: str,
    available_ingredients: Sequence[str],
) -> str:
    """Ask for one direct replacement of a food."""
    prompt = (
        "Suggest ONE direct substitution for this food in a meal plan:\n"
        f"Original food: {food.name} ({food.weight}) - {food.calories:g}kcal.\n"
        f"Meal: {meal_type}.\n"
        f"User goal: {goal}."
    )
    if available_ingredients:
        prompt += (
            "\nThe user HAS THESE INGREDIENTS AT HOME: "
            f"{', '.join(available_ingredients)}. Prefer one of them when it is "
            "nutritionally suitable for the goal."
        )
    return prompt + (
        "\nIf the original is sugar or a simple carbohydrate, prefer natural "
        "sweeteners or whole-grain, low glycemic index options. Keep the calories "
        "equivalent for the goal."
    )


def shopping_substitute_prompt(item: ShoppingItem, budget: ShoppingBudget) -> str:
    """Ask for an equivalent shopping item."""
    return (
        f'The user wants to replace this shopping item: "{item.name}" '
        f"({item.quantity}).\n"
        f"Category: {item.category}.\n"
        f"Cost profile: {budget}.\n\n"
        "Suggest an equivalent or alternative common in the supermarket (a "
        "cheaper seasonal fruit for an expensive one, a similar cut for a cut of "
        "meat). Keep the quantity proportionate."
    )


def shopping_list_prompt(
    plan: WeeklyPlanData, duration: ShoppingDuration, budget: ShoppingBudget
) -> str:
    """Ask for a consolidated list covering a plan for a duration."""
    return (
        "Based on this weekly meal plan (JSON below), generate a consolidated "
        "shopping list.\n"
        f"- List duration: {duration} (scale the weekly consumption).\n"
        f"- Cost profile: {budget}.\n"
        'If "Economical": prefer cost-effective cuts, seasonal fruit, generic '
        "brands, and cheaper nutritional equivalents. If \"Premium\": prefer "
        "organic items, prime cuts and reference brands.\n"
        "Group items by category (Produce, Butcher, Grocery, Dairy, Other) and "
        'describe the total cost (for example "Low - about $50").\n\n'
        f"MEAL PLAN (SUMMARY):\n{json.dumps(summarize_for_shopping(plan))}"
    )
