"""Shared pytest fixtures and configuration for all tests."""

import os

# Keep module-level app creation and OTLP exporters off during collection
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from party_planner.exceptions import DishLibraryError  # noqa: E402
from party_planner.models.dish_models import (  # noqa: E402
    Dish,
    DishIngredient,
    DishSnapshot,
    Ingredient,
    Menu,
)
from party_planner.models.party_models import (  # noqa: E402
    GuestSelection,
    Party,
    PartyDish,
    PartyGuest,
    PartyStatus,
)
from party_planner.repositories.party_repositories import order_entry_id  # noqa: E402
from party_planner.services.party_service import PartyService  # noqa: E402

HOST_ID = "host_1"
OTHER_HOST_ID = "host_2"


class InMemoryPartyRepository:
    """PartyRepository stand-in backed by a dict."""

    def __init__(self) -> None:
        self.parties: dict[str, Party] = {}
        self.fail_writes = False

    def create_party(self, party: Party) -> bool:
        if self.fail_writes or party.party_id in self.parties:
            return False
        self.parties[party.party_id] = party.model_copy()
        return True

    def get_party(self, party_id: str) -> Party | None:
        party = self.parties.get(party_id)
        return party.model_copy() if party else None

    def get_party_by_share_code(self, share_code: str) -> Party | None:
        for party in self.parties.values():
            if party.share_code == share_code:
                return party.model_copy()
        return None

    def list_parties_for_host(self, host_id: str) -> list[Party]:
        return [p.model_copy() for p in self.parties.values() if p.host_id == host_id]

    def update_name(self, party_id: str, name: str, updated_at: datetime) -> bool:
        return self._update(party_id, name=name, updated_at=updated_at)

    def update_status(self, party_id: str, status: PartyStatus, updated_at: datetime) -> bool:
        return self._update(party_id, status=status, updated_at=updated_at)

    def update_total_budget(self, party_id: str, total_budget: Decimal) -> bool:
        return self._update(party_id, total_budget=total_budget)

    def delete_party(self, party_id: str) -> bool:
        if self.fail_writes:
            return False
        self.parties.pop(party_id, None)
        return True

    def _update(self, party_id: str, **changes: object) -> bool:
        if self.fail_writes or party_id not in self.parties:
            return False
        self.parties[party_id] = self.parties[party_id].model_copy(update=changes)
        return True


class InMemoryPartyDishRepository:
    """PartyDishRepository stand-in with the same upsert semantics."""

    def __init__(self) -> None:
        self.entries: dict[str, PartyDish] = {}
        self.fail_writes = False

    def save_entry(self, entry: PartyDish) -> bool:
        if self.fail_writes:
            return False
        self.entries[entry.party_dish_id] = entry.model_copy()
        return True

    def upsert_and_increment_servings(
        self,
        party_id: str,
        snapshot: DishSnapshot,
        delta: int,
        added_by: str,
        added_by_guest_id: str | None,
        created_at: datetime,
    ) -> PartyDish | None:
        if self.fail_writes:
            return None

        entry_id = order_entry_id(party_id, snapshot.dish_id)
        existing = self.entries.get(entry_id)
        if existing is None:
            entry = PartyDish(
                party_dish_id=entry_id,
                party_id=party_id,
                snapshot=snapshot,
                servings=delta,
                added_by=added_by,
                added_by_guest_id=added_by_guest_id,
                created_at=created_at,
            )
        else:
            entry = existing.model_copy(update={"servings": existing.servings + delta})

        self.entries[entry_id] = entry
        return entry.model_copy()

    def get_entry(self, party_dish_id: str) -> PartyDish | None:
        entry = self.entries.get(party_dish_id)
        return entry.model_copy() if entry else None

    def list_entries_for_party(self, party_id: str) -> list[PartyDish]:
        return [e.model_copy() for e in self.entries.values() if e.party_id == party_id]

    def update_servings(self, party_dish_id: str, servings: int) -> bool:
        if self.fail_writes or party_dish_id not in self.entries:
            return False
        self.entries[party_dish_id] = self.entries[party_dish_id].model_copy(
            update={"servings": servings}
        )
        return True

    def delete_entry(self, party_dish_id: str) -> bool:
        if self.fail_writes:
            return False
        self.entries.pop(party_dish_id, None)
        return True


class InMemoryPartyGuestRepository:
    """PartyGuestRepository stand-in backed by a dict."""

    def __init__(self) -> None:
        self.guests: dict[str, PartyGuest] = {}

    def create_guest(self, guest: PartyGuest) -> bool:
        if guest.guest_id in self.guests:
            return False
        self.guests[guest.guest_id] = guest.model_copy()
        return True

    def get_guest_by_token(self, guest_token: str) -> PartyGuest | None:
        for guest in self.guests.values():
            if guest.guest_token == guest_token:
                return guest.model_copy()
        return None

    def list_guests_for_party(self, party_id: str) -> list[PartyGuest]:
        return [g.model_copy() for g in self.guests.values() if g.party_id == party_id]

    def delete_guest(self, guest_id: str) -> bool:
        self.guests.pop(guest_id, None)
        return True


class InMemoryGuestSelectionRepository:
    """GuestSelectionRepository stand-in keyed by (party_dish_id, guest_id)."""

    def __init__(self) -> None:
        self.selections: dict[tuple[str, str], GuestSelection] = {}

    def add_selection(self, selection: GuestSelection) -> bool:
        self.selections[(selection.party_dish_id, selection.guest_id)] = selection.model_copy()
        return True

    def remove_selection(self, party_dish_id: str, guest_id: str) -> bool:
        self.selections.pop((party_dish_id, guest_id), None)
        return True

    def list_selections_for_entry(self, party_dish_id: str) -> list[GuestSelection]:
        return sorted(
            (s.model_copy() for s in self.selections.values() if s.party_dish_id == party_dish_id),
            key=lambda s: s.guest_id,
        )

    def delete_selections_for_entry(self, party_dish_id: str) -> bool:
        for key in [k for k in self.selections if k[0] == party_dish_id]:
            del self.selections[key]
        return True


class InMemoryDishLibrary:
    """DishLibraryClient stand-in serving dishes and menus from dicts."""

    def __init__(self, dishes: list[Dish], menus: list[Menu]) -> None:
        self.dishes = {dish.id: dish for dish in dishes}
        self.menus = {menu.id: menu for menu in menus}
        self.unavailable = False

    async def get_dish(self, dish_id: str) -> Dish | None:
        self._check_available()
        return self.dishes.get(dish_id)

    async def get_dishes(self, dish_ids: list[str]) -> list[Dish]:
        self._check_available()
        return [self.dishes[dish_id] for dish_id in dish_ids if dish_id in self.dishes]

    async def get_menu(self, menu_id: str) -> Menu | None:
        self._check_available()
        return self.menus.get(menu_id)

    def _check_available(self) -> None:
        if self.unavailable:
            raise DishLibraryError("Dish library unreachable")


def _line(ingredient_id: str, name: str, unit_price: str, quantity: str, unit: str) -> DishIngredient:
    return DishIngredient(
        ingredient=Ingredient(id=ingredient_id, name=name, unit_price=Decimal(unit_price), unit=unit),
        quantity=Decimal(quantity),
        unit=unit,
    )


@pytest.fixture
def host_id() -> str:
    """Fixture providing the standard test host ID."""
    return HOST_ID


@pytest.fixture
def braised_pork() -> Dish:
    """红烧肉: 500 g pork belly at 0.05 per gram, cost 25.00."""
    return Dish(
        id="dish_pork",
        owner_id=HOST_ID,
        name="红烧肉",
        ingredients=[_line("ing_pork", "Pork belly", "0.05", "500", "g")],
    )


@pytest.fixture
def tomato_eggs() -> Dish:
    """Tomato and egg stir fry, cost 4.50."""
    return Dish(
        id="dish_tomato_eggs",
        owner_id=HOST_ID,
        name="Tomato Eggs",
        ingredients=[
            _line("ing_tomato", "Tomato", "0.01", "300", "g"),
            _line("ing_egg", "Egg", "0.50", "3", "pcs"),
        ],
    )


@pytest.fixture
def fried_rice() -> Dish:
    """Egg fried rice, cost 2.00."""
    return Dish(
        id="dish_fried_rice",
        owner_id=HOST_ID,
        name="Fried Rice",
        ingredients=[
            _line("ing_rice", "Rice", "0.005", "200", "g"),
            _line("ing_egg", "Egg", "0.50", "2", "pcs"),
        ],
    )


@pytest.fixture
def foreign_dish() -> Dish:
    """A dish owned by another host."""
    return Dish(
        id="dish_foreign",
        owner_id=OTHER_HOST_ID,
        name="Someone Else's Soup",
        ingredients=[_line("ing_water", "Water", "0.001", "1000", "ml")],
    )


@pytest.fixture
def dish_library(
    braised_pork: Dish, tomato_eggs: Dish, fried_rice: Dish, foreign_dish: Dish
) -> InMemoryDishLibrary:
    """Dish library with three host dishes, one foreign dish and one menu."""
    menu = Menu(id="menu_1", owner_id=HOST_ID, name="Family Dinner", dishes=[braised_pork, tomato_eggs])
    return InMemoryDishLibrary(
        dishes=[braised_pork, tomato_eggs, fried_rice, foreign_dish],
        menus=[menu],
    )


@pytest.fixture
def party_service(dish_library: InMemoryDishLibrary) -> PartyService:
    """PartyService wired to in-memory repositories."""
    return PartyService(
        party_repository=InMemoryPartyRepository(),  # type: ignore[arg-type]
        dish_repository=InMemoryPartyDishRepository(),  # type: ignore[arg-type]
        guest_repository=InMemoryPartyGuestRepository(),  # type: ignore[arg-type]
        selection_repository=InMemoryGuestSelectionRepository(),  # type: ignore[arg-type]
        dish_library_client=dish_library,  # type: ignore[arg-type]
    )
