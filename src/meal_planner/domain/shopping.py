"""Shopping list models and helpers."""

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ShoppingDuration(StrEnum):
    """Period a consolidated shopping list must cover."""

    WEEKLY = "Weekly (7 days)"
    BIWEEKLY = "Biweekly (15 days)"
    MONTHLY = "Monthly (30 days)"


class ShoppingBudget(StrEnum):
    """Cost profile for suggested items."""

    ECONOMICAL = "Economical"
    PREMIUM = "Premium"


class ShoppingItem(BaseModel):
    """Purchasable item with quantity and grouping category."""

    model_config = ConfigDict(frozen=True)

    name: str
    quantity: str
    category: str
    checked: bool | None = None


class ShoppingListResult(BaseModel):
    """Shopping list with a descriptive cost estimate."""

    model_config = ConfigDict(frozen=True)

    items: tuple[ShoppingItem, ...]
    estimated_cost: str


def confirm_selection(
    draft: ShoppingListResult, selected_names: Iterable[str]
) -> ShoppingListResult:
    """Keep only the selected items, each marked as checked."""
    selected = set(selected_names)
    return ShoppingListResult(
        estimated_cost=draft.estimated_cost,
        items=tuple(
            item.model_copy(update={"checked": True})
            for item in draft.items
            if item.name in selected
        ),
    )


def replace_item(
    shopping_list: ShoppingListResult,
    original: ShoppingItem,
    replacement: ShoppingItem,
) -> ShoppingListResult:
    """Swap every item matching the original's name and category."""
    return shopping_list.model_copy(
        update={
            "items": tuple(
                replacement
                if item.name == original.name and item.category == original.category
                else item
                for item in shopping_list.items
            )
        }
    )


def find_item(
    shopping_list: ShoppingListResult, name: str, category: str | None = None
) -> ShoppingItem:
    """Return the first item with the given name (and category, if given)."""
    for item in shopping_list.items:
        if item.name == name and (category is None or item.category == category):
            return item
    raise LookupError(f"no shopping item named {name}")


def checked_names(shopping_list: ShoppingListResult | None) -> frozenset[str]:
    """Names of items flagged as checked."""
    if shopping_list is None:
        return frozenset()
    return frozenset(item.name for item in shopping_list.items if item.checked)


def group_by_category(
    items: Iterable[ShoppingItem],
) -> dict[str, list[ShoppingItem]]:
    """Group items by category, keeping first-seen category order."""
    groups: dict[str, list[ShoppingItem]] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    return groups


def export_text(
    shopping_list: ShoppingListResult,
    in_stock: Iterable[str] = (),
    title: str = "Shopping list",
) -> str:
    """Render the list as plain text with checkbox markers."""
    stocked = set(in_stock)
    lines = [
        f"[{'x' if item.checked or item.name in stocked else ' '}] "
        f"{item.name}: {item.quantity}"
        for item in shopping_list.items
    ]
    return f"{title}:\n\n" + "\n".join(lines)
