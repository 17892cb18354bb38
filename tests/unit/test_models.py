"""Unit tests for dish and party models."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from party_planner.models.dish_models import Dish, DishSnapshot
from party_planner.models.party_models import (
    GuestSelection,
    Party,
    PartyDish,
    PartyGuest,
    PartyMode,
    PartyStatus,
)


@pytest.mark.unit
class TestDish:
    """Tests for Dish and DishSnapshot."""

    def test_estimated_cost_is_computed(self, tomato_eggs: Dish) -> None:
        assert tomato_eggs.estimated_cost == Decimal("4.50")

    def test_estimated_cost_from_library_is_kept(self) -> None:
        dish = Dish(id="d1", owner_id="h1", name="Tea", estimated_cost=Decimal("1.20"))

        assert dish.estimated_cost == Decimal("1.20")

    def test_snapshot_copies_dish(self, braised_pork: Dish) -> None:
        snapshot = DishSnapshot.from_dish(braised_pork)

        assert snapshot.dish_id == "dish_pork"
        assert snapshot.name == "红烧肉"
        assert snapshot.cost == Decimal("25.00")
        assert snapshot.ingredients[0].name == "Pork belly"
        assert snapshot.ingredients[0].quantity == Decimal("500")

    def test_snapshot_is_immutable(self, braised_pork: Dish) -> None:
        snapshot = DishSnapshot.from_dish(braised_pork)

        with pytest.raises(ValidationError):
            snapshot.cost = Decimal("1")  # type: ignore[misc]

    def test_snapshot_does_not_follow_library_edits(self, braised_pork: Dish) -> None:
        """Test that changing the live dish leaves an existing snapshot unchanged."""
        snapshot = DishSnapshot.from_dish(braised_pork)

        braised_pork.ingredients[0].ingredient.unit_price = Decimal("0.10")

        assert snapshot.ingredients[0].unit_price == Decimal("0.05")
        assert snapshot.cost == Decimal("25.00")

    def test_snapshot_dynamodb_round_trip(self, tomato_eggs: Dish) -> None:
        snapshot = DishSnapshot.from_dish(tomato_eggs)

        assert DishSnapshot.from_dynamodb_item(snapshot.to_dynamodb_item()) == snapshot


@pytest.mark.unit
class TestParty:
    """Tests for the Party model."""

    @pytest.fixture
    def party(self) -> Party:
        return Party(
            party_id="party_1",
            name="Spring Feast",
            host_id="host_1",
            share_code="A1B2C3",
            created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
        )

    def test_defaults(self, party: Party) -> None:
        assert party.mode == PartyMode.ORDER
        assert party.status == PartyStatus.ACTIVE
        assert party.total_budget == Decimal("0")
        assert party.is_locked is False

    def test_share_code_length(self) -> None:
        with pytest.raises(ValidationError):
            Party(
                party_id="p",
                name="n",
                host_id="h",
                share_code="ABC",
                created_at=datetime.now(UTC),
            )

    def test_allows_any_dish_without_restriction(self, party: Party) -> None:
        assert party.allows_dish("anything") is True

    def test_allows_dish_with_restriction(self, party: Party) -> None:
        restricted = party.model_copy(update={"available_dish_ids": ["d1", "d2"]})

        assert restricted.allows_dish("d1") is True
        assert restricted.allows_dish("d3") is False

    def test_to_dynamodb_item_omits_empty_optionals(self, party: Party) -> None:
        item = party.to_dynamodb_item()

        assert item["mode"] == "order"
        assert item["status"] == "active"
        assert "available_dish_ids" not in item
        assert "updated_at" not in item

    def test_from_dynamodb_item_defaults_mode(self) -> None:
        """Test that items stored without a mode read back as order parties."""
        party = Party.from_dynamodb_item(
            {
                "party_id": "party_1",
                "name": "Old Party",
                "host_id": "host_1",
                "share_code": "ABCDEF",
                "status": "locked",
                "total_budget": Decimal("12.5"),
                "created_at": "2024-01-15T10:30:00+00:00",
            }
        )

        assert party.mode == PartyMode.ORDER
        assert party.is_locked is True
        assert party.total_budget == Decimal("12.5")


@pytest.mark.unit
class TestPartyDish:
    """Tests for PartyDish, PartyGuest and GuestSelection."""

    def test_line_total(self, braised_pork: Dish) -> None:
        entry = PartyDish(
            party_dish_id="pd_1",
            party_id="party_1",
            snapshot=DishSnapshot.from_dish(braised_pork),
            servings=3,
            added_by="Alice",
            created_at=datetime.now(UTC),
        )

        assert entry.dish_id == "dish_pork"
        assert entry.line_total == Decimal("75.00")

    def test_servings_must_be_positive(self, braised_pork: Dish) -> None:
        with pytest.raises(ValidationError):
            PartyDish(
                party_dish_id="pd_1",
                party_id="party_1",
                snapshot=DishSnapshot.from_dish(braised_pork),
                servings=0,
                added_by="Alice",
                created_at=datetime.now(UTC),
            )

    def test_party_dish_from_dynamodb_item(self, braised_pork: Dish) -> None:
        """Test that numeric servings from DynamoDB are read back as int."""
        item = PartyDish(
            party_dish_id="pd_1",
            party_id="party_1",
            snapshot=DishSnapshot.from_dish(braised_pork),
            servings=2,
            added_by="Alice",
            added_by_guest_id="guest_1",
            created_at=datetime(2024, 1, 15, tzinfo=UTC),
        ).to_dynamodb_item()
        item["servings"] = Decimal("2")

        entry = PartyDish.from_dynamodb_item(item)

        assert entry.servings == 2
        assert entry.added_by_guest_id == "guest_1"

    def test_guest_public_view_hides_token(self) -> None:
        guest = PartyGuest(
            guest_id="guest_1",
            party_id="party_1",
            nickname="Bob",
            guest_token="secret",
            joined_at=datetime.now(UTC),
        )

        public = guest.to_public()

        assert public.model_dump() == {"guest_id": "guest_1", "nickname": "Bob"}

    def test_selection_dynamodb_item(self) -> None:
        selection = GuestSelection(
            party_dish_id="pd_1",
            guest_id="guest_1",
            party_id="party_1",
            nickname="Bob",
            selected_at=datetime(2024, 1, 15, tzinfo=UTC),
        )

        item = selection.to_dynamodb_item()

        assert item["party_dish_id"] == "pd_1"
        assert item["guest_id"] == "guest_1"
        assert GuestSelection.from_dynamodb_item(item) == selection
