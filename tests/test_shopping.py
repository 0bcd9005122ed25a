"""Tests for shopping list helpers."""

import pytest

from meal_planner.domain.shopping import (
    ShoppingItem,
    ShoppingListResult,
    checked_names,
    confirm_selection,
    export_text,
    find_item,
    group_by_category,
    replace_item,
)
from tests.conftest import shopping_payload


def _list() -> ShoppingListResult:
    return ShoppingListResult.model_validate(shopping_payload())


def test_confirm_selection_keeps_selected_items_checked() -> None:
    confirmed = confirm_selection(_list(), ["Rice", "Broccoli", "Unknown"])

    assert [item.name for item in confirmed.items] == ["Rice", "Broccoli"]
    assert checked_names(confirmed) == frozenset({"Rice", "Broccoli"})
    assert confirmed.estimated_cost == "Low - about $50"


def test_replace_item_matches_name_and_category() -> None:
    original = find_item(_list(), "Rice", "Grocery")
    replacement = ShoppingItem(name="Quinoa", quantity="500g", category="Grocery")

    replaced = replace_item(_list(), original, replacement)

    assert [item.name for item in replaced.items] == ["Chicken", "Quinoa", "Broccoli"]


def test_find_item_unknown_raises() -> None:
    with pytest.raises(LookupError):
        find_item(_list(), "Rice", "Produce")


def test_group_by_category_keeps_first_seen_order() -> None:
    groups = group_by_category(_list().items)

    assert list(groups) == ["Butcher", "Grocery", "Produce"]


def test_export_text_marks_stocked_items() -> None:
    text = export_text(_list(), in_stock={"Rice"})

    assert text.splitlines() == [
        "Shopping list:",
        "",
        "[ ] Chicken: 1kg",
        "[x] Rice: 1kg",
        "[ ] Broccoli: 1kg",
    ]


def test_checked_names_of_missing_list() -> None:
    assert checked_names(None) == frozenset()
