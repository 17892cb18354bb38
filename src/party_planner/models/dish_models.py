"""Dish library models and the immutable dish snapshot.

Ingredients, dishes and menus are owned by the dish library service and
fetched live. A ``DishSnapshot`` freezes a dish at the moment it enters a
party so later edits to the library never change an already-planned party.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Ingredient(BaseModel):
    """Ingredient with its purchase price."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: str | None = Field(None, description="Stable ingredient id, None for snapshots")
    name: str = Field(..., description="Ingredient name")
    unit_price: Decimal = Field(..., description="Price per unit of measure", ge=0)
    unit: str = Field(default="", description="Unit of measure the price refers to")
    spec: str | None = Field(None, description="Free-text specification")


class DishIngredient(BaseModel):
    """One ingredient line item of a dish."""

    ingredient: Ingredient
    quantity: Decimal = Field(..., description="Quantity used by the dish", ge=0)
    unit: str = Field(..., description="Unit the quantity is expressed in")

    @property
    def line_cost(self) -> Decimal:
        return self.quantity * self.ingredient.unit_price


class Dish(BaseModel):
    """Dish from the host's library."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: str = Field(..., description="Unique identifier for the dish")
    owner_id: str = Field(..., description="Host who owns the dish")
    name: str = Field(..., description="Dish name")
    ingredients: list[DishIngredient] = Field(default_factory=list)
    estimated_cost: Decimal | None = Field(
        None, description="Cached sum of quantity x unit price over the line items", ge=0
    )

    @model_validator(mode="after")
    def fill_estimated_cost(self) -> "Dish":
        """Compute the estimated cost when the library did not send one."""
        if self.estimated_cost is None:
            self.estimated_cost = sum(
                (line.line_cost for line in self.ingredients), Decimal("0")
            )
        return self


class Menu(BaseModel):
    """Named, ordered collection of dishes."""

    id: str = Field(..., description="Unique identifier for the menu")
    owner_id: str = Field(..., description="Host who owns the menu")
    name: str = Field(..., description="Menu name")
    dishes: list[Dish] = Field(default_factory=list)


class DishSummary(BaseModel):
    """Catalogue entry shown to guests of a restricted party."""

    id: str
    name: str
    estimated_cost: Decimal


class SnapshotIngredient(BaseModel):
    """Frozen ingredient line of a dish snapshot."""

    model_config = ConfigDict(frozen=True)

    name: str
    quantity: Decimal = Field(..., ge=0)
    unit: str
    unit_price: Decimal = Field(..., ge=0)
    spec: str | None = None


class DishSnapshot(BaseModel):
    """Immutable copy of a dish taken when it was added to a party."""

    model_config = ConfigDict(frozen=True)

    dish_id: str = Field(..., description="Id of the library dish this was copied from")
    name: str = Field(..., description="Dish name at snapshot time")
    cost: Decimal = Field(..., description="Estimated cost at snapshot time", ge=0)
    ingredients: tuple[SnapshotIngredient, ...] = ()

    @classmethod
    def from_dish(cls, dish: Dish) -> "DishSnapshot":
        """Freeze a live dish.

        Args:
            dish: Dish fetched from the library

        Returns:
            DishSnapshot: Snapshot carrying the dish's current prices
        """
        return cls(
            dish_id=dish.id,
            name=dish.name,
            cost=dish.estimated_cost or Decimal("0"),
            ingredients=tuple(
                SnapshotIngredient(
                    name=line.ingredient.name,
                    quantity=line.quantity,
                    unit=line.unit,
                    unit_price=line.ingredient.unit_price,
                    spec=line.ingredient.spec,
                )
                for line in dish.ingredients
            ),
        )

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to a DynamoDB map attribute.

        Returns:
            dict: DynamoDB-compatible representation
        """
        ingredients = []
        for line in self.ingredients:
            entry: dict[str, Any] = {
                "name": line.name,
                "quantity": line.quantity,
                "unit": line.unit,
                "unit_price": line.unit_price,
            }
            if line.spec is not None:
                entry["spec"] = line.spec
            ingredients.append(entry)

        return {
            "dish_id": self.dish_id,
            "name": self.name,
            "cost": self.cost,
            "ingredients": ingredients,
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "DishSnapshot":
        """Create a DishSnapshot from a DynamoDB map attribute.

        Args:
            item: DynamoDB map

        Returns:
            DishSnapshot: Parsed snapshot
        """
        return cls(
            dish_id=item["dish_id"],
            name=item["name"],
            cost=Decimal(str(item["cost"])),
            ingredients=tuple(
                SnapshotIngredient(
                    name=line["name"],
                    quantity=Decimal(str(line["quantity"])),
                    unit=line["unit"],
                    unit_price=Decimal(str(line["unit_price"])),
                    spec=line.get("spec"),
                )
                for line in item.get("ingredients", [])
            ),
        )


class DishWithIngredients(BaseModel):
    """Input of the aggregation engine: a dish, its line items and a multiplier."""

    name: str
    servings: int = Field(default=1, ge=1)
    ingredients: list[DishIngredient] = Field(default_factory=list)

    @classmethod
    def from_dish(cls, dish: Dish, servings: int = 1) -> "DishWithIngredients":
        """Aggregation input for a live dish, keyed by ingredient id."""
        return cls(name=dish.name, servings=servings, ingredients=list(dish.ingredients))

    @classmethod
    def from_snapshot(cls, snapshot: DishSnapshot, servings: int = 1) -> "DishWithIngredients":
        """Aggregation input for a frozen dish.

        Snapshot lines have no real ingredient id, so they aggregate by name.
        """
        return cls(
            name=snapshot.name,
            servings=servings,
            ingredients=[
                DishIngredient(
                    ingredient=Ingredient(
                        id=None,
                        name=line.name,
                        unit_price=line.unit_price,
                        unit=line.unit,
                        spec=line.spec,
                    ),
                    quantity=line.quantity,
                    unit=line.unit,
                )
                for line in snapshot.ingredients
            ],
        )
