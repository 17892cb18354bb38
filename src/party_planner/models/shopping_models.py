"""Shopping list models produced by the aggregation engine."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ShoppingListItem(BaseModel):
    """One row of the shopping list: a distinct ingredient and its totals."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    ingredient_id: str | None = Field(None, description="Ingredient id for live aggregation")
    name: str = Field(..., description="Ingredient name from the first occurrence")
    unit: str = Field(..., description="Unit from the first occurrence")
    unit_price: Decimal = Field(..., description="Unit price of the representative ingredient")
    spec: str | None = Field(None, description="Specification from the first occurrence")
    total_quantity: Decimal = Field(default=Decimal("0"))
    total_cost: Decimal = Field(default=Decimal("0"))
    from_dishes: list[str] = Field(
        default_factory=list, description="Dish name per contributing line item"
    )


class ShoppingList(BaseModel):
    """Aggregated shopping list for a set of dishes."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    ingredients: list[ShoppingListItem] = Field(default_factory=list)
    grand_total: Decimal = Field(default=Decimal("0"))
    dish_count: int = Field(default=0, ge=0)
    generated_at: datetime
