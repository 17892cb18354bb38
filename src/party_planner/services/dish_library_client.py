"""Client for reading dishes and menus from the Dish Library API."""

import asyncio
import logging
from decimal import Decimal
from typing import Any

import httpx
from pydantic import ValidationError

from party_planner.exceptions import DishLibraryError
from party_planner.models.dish_models import Dish, Menu

logger = logging.getLogger(__name__)


def _parse_dish(dish_data: dict[str, Any]) -> Dish:
    """Build a Dish, converting numeric fields through str to keep them exact."""
    lines = []
    for line in dish_data.get("ingredients", []):
        ingredient = dict(line["ingredient"])
        ingredient["unit_price"] = Decimal(str(ingredient["unit_price"]))
        lines.append(
            {
                "ingredient": ingredient,
                "quantity": Decimal(str(line["quantity"])),
                "unit": line["unit"],
            }
        )

    data = {**dish_data, "ingredients": lines}
    if data.get("estimated_cost") is not None:
        data["estimated_cost"] = Decimal(str(data["estimated_cost"]))

    return Dish(**data)


class DishLibraryClient:
    """HTTP client for fetching live dish data from the Dish Library.

    The library owns hosts' dishes, ingredients and menus. This client only
    reads; parties freeze what they need into snapshots. A 404 means the
    dish or menu does not exist and yields None. Any other failure raises
    DishLibraryError so an outage is never mistaken for a missing dish.
    """

    def __init__(self, base_url: str, api_key: str) -> None:
        """Initialize the Dish Library client.

        Args:
            base_url: Base URL of the Dish Library API (e.g., "https://dishes.example.com")
            api_key: API key for service-to-service authentication
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    async def _fetch(self, path: str) -> Any | None:
        """GET a library resource and return its JSON body, or None on 404."""
        url = f"{self.base_url}{path}"
        headers = {"X-API-Key": self.api_key}

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.info(f"Dish library has no resource at {path}")
                return None
            logger.error(f"Dish library request {path} failed: {e}")
            raise DishLibraryError(f"Dish library request {path} failed") from e
        except httpx.RequestError as e:
            logger.error(f"Dish library unreachable for {path}: {e}")
            raise DishLibraryError(f"Dish library unreachable for {path}") from e

    async def get_dish(self, dish_id: str) -> Dish | None:
        """Fetch a dish with its ingredient line items.

        Args:
            dish_id: The dish ID to fetch

        Returns:
            Dish, or None if the library does not know it

        Raises:
            DishLibraryError: If the request fails or the payload is malformed
        """
        data = await self._fetch(f"/dishes/{dish_id}")
        if data is None:
            return None

        try:
            return _parse_dish(data)
        except (ValidationError, KeyError, TypeError) as e:
            logger.error(f"Dish library returned malformed dish {dish_id}: {e}")
            raise DishLibraryError(f"Malformed dish {dish_id}") from e

    async def get_dishes(self, dish_ids: list[str]) -> list[Dish]:
        """Fetch several dishes concurrently, skipping ones that do not exist.

        Args:
            dish_ids: Dish IDs to fetch

        Returns:
            List of Dish objects in the order of dish_ids

        Raises:
            DishLibraryError: If any request fails
        """
        results = await asyncio.gather(*(self.get_dish(dish_id) for dish_id in dish_ids))
        return [dish for dish in results if dish is not None]

    async def get_menu(self, menu_id: str) -> Menu | None:
        """Fetch a menu with its dishes.

        Args:
            menu_id: The menu ID to fetch

        Returns:
            Menu, or None if the library does not know it

        Raises:
            DishLibraryError: If the request fails or the payload is malformed
        """
        data = await self._fetch(f"/menus/{menu_id}")
        if data is None:
            return None

        try:
            return Menu(
                id=data["id"],
                owner_id=data["owner_id"],
                name=data["name"],
                dishes=[_parse_dish(dish_data) for dish_data in data.get("dishes", [])],
            )
        except (ValidationError, KeyError, TypeError) as e:
            logger.error(f"Dish library returned malformed menu {menu_id}: {e}")
            raise DishLibraryError(f"Malformed menu {menu_id}") from e
