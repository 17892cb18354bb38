"""Unit tests for DishLibraryClient."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from party_planner.exceptions import DishLibraryError
from party_planner.models.dish_models import Dish, Menu
from party_planner.services.dish_library_client import DishLibraryClient

DISH_PAYLOAD = {
    "id": "dish_pork",
    "owner_id": "host_1",
    "name": "红烧肉",
    "ingredients": [
        {
            "ingredient": {"id": "ing_pork", "name": "Pork belly", "unit_price": 0.05, "unit": "g"},
            "quantity": 500,
            "unit": "g",
        },
        {
            "ingredient": {
                "id": "ing_soy",
                "name": "Soy sauce",
                "unit_price": "0.02",
                "unit": "ml",
                "spec": "dark",
            },
            "quantity": "30",
            "unit": "ml",
        },
    ],
}


@pytest.mark.unit
class TestDishLibraryClient:
    """Test suite for DishLibraryClient."""

    @pytest.fixture
    def client(self) -> DishLibraryClient:
        return DishLibraryClient(base_url="https://dishes.test.com/", api_key="test-api-key")

    @pytest.mark.asyncio
    async def test_client_initialization(self, client: DishLibraryClient) -> None:
        assert client.base_url == "https://dishes.test.com"
        assert client.api_key == "test-api-key"

    @pytest.mark.asyncio
    async def test_get_dish_success(self, client: DishLibraryClient) -> None:
        """Test fetching a dish keeps prices exact."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = DISH_PAYLOAD

        with patch(
            "httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_response
        ) as mock_get:
            dish = await client.get_dish("dish_pork")

        assert isinstance(dish, Dish)
        assert dish.ingredients[0].ingredient.unit_price == Decimal("0.05")
        assert dish.ingredients[1].ingredient.spec == "dark"
        assert dish.estimated_cost == Decimal("25.60")
        mock_get.assert_called_once_with(
            "https://dishes.test.com/dishes/dish_pork", headers={"X-API-Key": "test-api-key"}
        )

    @pytest.mark.asyncio
    async def test_get_dish_not_found(self, client: DishLibraryClient) -> None:
        """Test that a 404 from the library returns None."""
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Not found", request=MagicMock(), response=MagicMock(status_code=404)
        )

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_response):
            dish = await client.get_dish("missing")

        assert dish is None

    @pytest.mark.asyncio
    async def test_get_dish_network_error(self, client: DishLibraryClient) -> None:
        """Test that an unreachable library raises rather than reporting a missing dish."""
        with patch(
            "httpx.AsyncClient.get",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(DishLibraryError):
                await client.get_dish("dish_pork")

    @pytest.mark.asyncio
    async def test_get_dish_server_error(self, client: DishLibraryClient) -> None:
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Bad gateway", request=MagicMock(), response=MagicMock(status_code=502)
        )

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_response):
            with pytest.raises(DishLibraryError) as exc_info:
                await client.get_dish("dish_pork")

        assert exc_info.value.status_code == 500
        assert exc_info.value.error_code == "DISH_LIBRARY_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_get_dish_malformed_payload(self, client: DishLibraryClient) -> None:
        mock_response = MagicMock()
        mock_response.json.return_value = {"id": "dish_pork", "name": "no owner"}

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_response):
            with pytest.raises(DishLibraryError):
                await client.get_dish("dish_pork")

    @pytest.mark.asyncio
    async def test_get_dishes_skips_missing(self, client: DishLibraryClient) -> None:
        dish = Dish(id="d1", owner_id="host_1", name="Tea")

        async def fake_get_dish(dish_id: str) -> Dish | None:
            return dish if dish_id == "d1" else None

        with patch.object(client, "get_dish", side_effect=fake_get_dish):
            dishes = await client.get_dishes(["d1", "missing"])

        assert dishes == [dish]

    @pytest.mark.asyncio
    async def test_get_dishes_propagates_outage(self, client: DishLibraryClient) -> None:
        with patch.object(
            client, "get_dish", new_callable=AsyncMock, side_effect=DishLibraryError("down")
        ):
            with pytest.raises(DishLibraryError):
                await client.get_dishes(["d1"])

    @pytest.mark.asyncio
    async def test_get_menu_success(self, client: DishLibraryClient) -> None:
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "id": "menu_1",
            "owner_id": "host_1",
            "name": "Family Dinner",
            "dishes": [DISH_PAYLOAD],
        }

        with patch(
            "httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_response
        ) as mock_get:
            menu = await client.get_menu("menu_1")

        assert isinstance(menu, Menu)
        assert menu.owner_id == "host_1"
        assert [d.id for d in menu.dishes] == ["dish_pork"]
        mock_get.assert_called_once_with(
            "https://dishes.test.com/menus/menu_1", headers={"X-API-Key": "test-api-key"}
        )

    @pytest.mark.asyncio
    async def test_get_menu_not_found(self, client: DishLibraryClient) -> None:
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Not found", request=MagicMock(), response=MagicMock(status_code=404)
        )

        with patch("httpx.AsyncClient.get", new_callable=AsyncMock, return_value=mock_response):
            menu = await client.get_menu("missing")

        assert menu is None

    @pytest.mark.asyncio
    async def test_get_menu_timeout(self, client: DishLibraryClient) -> None:
        with patch(
            "httpx.AsyncClient.get",
            new_callable=AsyncMock,
            side_effect=httpx.TimeoutException("timeout"),
        ):
            with pytest.raises(DishLibraryError):
                await client.get_menu("menu_1")
