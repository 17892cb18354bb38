"""Shopping list aggregation engine.

Combines the ingredient line items of a set of dishes into one row per
distinct ingredient with summed quantity and cost. Units are never converted:
lines with the same key but a different unit are added as raw numbers and the
row keeps the unit of the first occurrence.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

from party_planner.models.dish_models import DishWithIngredients, Ingredient
from party_planner.models.shopping_models import ShoppingList, ShoppingListItem


def normalize_ingredient_name(name: str) -> str:
    """Collapse whitespace and case-fold an ingredient name."""
    return " ".join(name.split()).casefold()


def ingredient_key(ingredient: Ingredient) -> tuple[str, str]:
    """Identity of an ingredient for grouping.

    Live ingredients group by id. Snapshot ingredients have no id and group
    by normalized name, so the same ingredient frozen from two different
    dishes still lands on one row.

    Args:
        ingredient: Ingredient of a line item

    Returns:
        tuple: ("id", id) or ("name", normalized name)
    """
    if ingredient.id is not None:
        return ("id", ingredient.id)
    return ("name", normalize_ingredient_name(ingredient.name))


def generate_shopping_list(dishes: Iterable[DishWithIngredients]) -> ShoppingList:
    """Aggregate dishes into a shopping list.

    Each line contributes ``quantity x servings`` to its row's total quantity
    and ``quantity x servings x unit_price`` to the row's total cost. The grand
    total is the running sum of every line cost, carried forward unrounded.

    Args:
        dishes: Dishes with their line items and servings multiplier

    Returns:
        ShoppingList: Rows in first-seen order, grand total and dish count
    """
    rows: dict[tuple[str, str], ShoppingListItem] = {}
    grand_total = Decimal("0")
    dish_count = 0

    for dish in dishes:
        dish_count += 1
        for line in dish.ingredients:
            quantity = line.quantity * dish.servings
            line_cost = quantity * line.ingredient.unit_price
            grand_total += line_cost

            key = ingredient_key(line.ingredient)
            row = rows.get(key)
            if row is None:
                row = ShoppingListItem(
                    ingredient_id=line.ingredient.id,
                    name=line.ingredient.name,
                    unit=line.unit,
                    unit_price=line.ingredient.unit_price,
                    spec=line.ingredient.spec,
                )
                rows[key] = row

            row.total_quantity += quantity
            row.total_cost += line_cost
            row.from_dishes.append(dish.name)

    return ShoppingList(
        ingredients=list(rows.values()),
        grand_total=grand_total,
        dish_count=dish_count,
        generated_at=datetime.now(UTC),
    )
