"""Party service: lifecycle, dishes, guests and selections of parties."""

import logging
import secrets
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

from party_planner.exceptions import (
    AuthError,
    InternalError,
    NotFoundError,
    StateError,
    ValidationError,
)
from party_planner.models.dish_models import Dish, DishSnapshot, DishSummary, DishWithIngredients
from party_planner.models.party_models import (
    ExportDish,
    GuestSelection,
    Party,
    PartyDetail,
    PartyDish,
    PartyDishView,
    PartyExport,
    PartyGuest,
    PartyMode,
    PartyStatus,
    PartySummary,
)
from party_planner.models.shopping_models import ShoppingList
from party_planner.observability import traced
from party_planner.observability.metrics import (
    record_dish_added,
    record_guest_joined,
    record_party_created,
    record_selection_changed,
    record_shopping_list_generated,
)
from party_planner.repositories.party_repositories import (
    GuestSelectionRepository,
    PartyDishRepository,
    PartyGuestRepository,
    PartyRepository,
    order_entry_id,
)
from party_planner.services.aggregation import generate_shopping_list
from party_planner.services.dish_library_client import DishLibraryClient

logger = logging.getLogger(__name__)

SHARE_CODE_ATTEMPTS = 10
HOST_CONTRIBUTOR = "host"
ANONYMOUS_CONTRIBUTOR = "anonymous"

# (entry, selections) pairs; selections are always empty for order parties
ScopedEntries = list[tuple[PartyDish, list[GuestSelection]]]


def generate_share_code() -> str:
    """Six uppercase hex characters from three random bytes."""
    return secrets.token_hex(3).upper()


def generate_guest_token() -> str:
    """Opaque guest credential: sixteen random bytes as hex."""
    return secrets.token_hex(16)


def _dedupe(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in ids:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class PartyService:
    """Service owning the state of parties.

    A party runs in one of two modes. In ORDER mode guests add dishes and
    repeated additions of a dish accumulate servings on a single entry; every
    entry is in scope for the budget and the shopping list. In POOL mode the
    host curates candidate dishes and guests select the ones they want; only
    entries with at least one selection are in scope. Once a party is locked
    every dish, servings and selection mutation is rejected.
    """

    def __init__(
        self,
        party_repository: PartyRepository,
        dish_repository: PartyDishRepository,
        guest_repository: PartyGuestRepository,
        selection_repository: GuestSelectionRepository,
        dish_library_client: DishLibraryClient,
        show_selector_names: bool = True,
    ) -> None:
        """Initialize the PartyService.

        Args:
            party_repository: Repository for party records
            dish_repository: Repository for party dish entries
            guest_repository: Repository for guests
            selection_repository: Repository for guest selections
            dish_library_client: Client for reading live dishes and menus
            show_selector_names: Whether guests can see who selected a dish
        """
        self.party_repository = party_repository
        self.dish_repository = dish_repository
        self.guest_repository = guest_repository
        self.selection_repository = selection_repository
        self.dish_library_client = dish_library_client
        self.show_selector_names = show_selector_names

    # Party lifecycle

    @traced("party.create")
    async def create_party(
        self,
        host_id: str,
        name: str,
        dish_ids: list[str] | None = None,
        menu_id: str | None = None,
        mode: PartyMode = PartyMode.ORDER,
    ) -> Party:
        """Create an active party with a fresh share code.

        In ORDER mode the given dishes (menu dishes first, then dish_ids)
        become the restriction set guests may order from. In POOL mode they
        are snapshotted into the candidate pool.

        Args:
            host_id: Host creating the party
            name: Party name
            dish_ids: Optional dish ids
            menu_id: Optional menu whose dishes are included
            mode: Contribution model of the party

        Returns:
            The created Party

        Raises:
            ValidationError: If the name is blank or no pool dish resolves
            NotFoundError: If the menu does not exist
            InternalError: If the party cannot be stored
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Party name is required")

        menu_dishes = await self._get_menu_dishes(menu_id, host_id) if menu_id else []
        requested_ids = _dedupe([dish.id for dish in menu_dishes] + list(dish_ids or []))

        pool_dishes: list[Dish] = []
        available_dish_ids: list[str] | None = None
        if mode == PartyMode.ORDER:
            available_dish_ids = requested_ids or None
        elif requested_ids:
            pool_dishes = await self._resolve_host_dishes(host_id, requested_ids, menu_dishes)
            if not pool_dishes:
                raise ValidationError("No valid dishes found")

        party = Party(
            party_id=f"party_{uuid.uuid4().hex[:12]}",
            name=name,
            host_id=host_id,
            share_code=self._allocate_share_code(),
            mode=mode,
            status=PartyStatus.ACTIVE,
            available_dish_ids=available_dish_ids,
            created_at=datetime.now(UTC),
        )

        # Entries first: the party only becomes reachable once all of them exist
        entries = self._insert_pool_entries(party, pool_dishes, existing_dish_ids=set())

        if not self.party_repository.create_party(party):
            self._rollback_entries(entries)
            raise InternalError("Failed to store party")

        if entries:
            record_dish_added(mode.value, len(entries))
        record_party_created(mode.value)
        logger.info(f"Party {party.party_id} created by host {host_id} in {mode.value} mode")
        return party

    @traced("party.list_for_host")
    async def list_host_parties(self, host_id: str) -> list[PartySummary]:
        """List a host's parties with guest and dish counts, newest first.

        Args:
            host_id: The host

        Returns:
            List of PartySummary, empty list if none found
        """
        parties = self.party_repository.list_parties_for_host(host_id)
        parties.sort(key=lambda p: p.created_at, reverse=True)

        return [
            PartySummary(
                **party.model_dump(),
                guest_count=len(self.guest_repository.list_guests_for_party(party.party_id)),
                dish_count=len(self.dish_repository.list_entries_for_party(party.party_id)),
            )
            for party in parties
        ]

    @traced("party.rename")
    async def rename_party(self, party_id: str, host_id: str, name: str) -> Party:
        """Rename a party. Allowed in any state.

        Raises:
            ValidationError: If the name is blank
            NotFoundError: If the party does not exist
            AuthError: If the caller is not the host
        """
        party = self._get_hosted_party(party_id, host_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Party name is required")

        now = datetime.now(UTC)
        if not self.party_repository.update_name(party_id, name, now):
            raise InternalError("Failed to rename party")

        return party.model_copy(update={"name": name, "updated_at": now})

    @traced("party.delete")
    async def delete_party(self, party_id: str, host_id: str) -> None:
        """Delete a party with its entries, selections and guests.

        Raises:
            NotFoundError: If the party does not exist
            AuthError: If the caller is not the host
            InternalError: If any record cannot be deleted
        """
        party = self._get_hosted_party(party_id, host_id)

        for entry in self.dish_repository.list_entries_for_party(party_id):
            if not self.dish_repository.delete_entry(entry.party_dish_id):
                raise InternalError("Failed to delete party dish")
            if party.mode == PartyMode.POOL:
                if not self.selection_repository.delete_selections_for_entry(entry.party_dish_id):
                    raise InternalError("Failed to delete selections")

        for guest in self.guest_repository.list_guests_for_party(party_id):
            if not self.guest_repository.delete_guest(guest.guest_id):
                raise InternalError("Failed to delete guest")

        if not self.party_repository.delete_party(party_id):
            raise InternalError("Failed to delete party")

        logger.info(f"Party {party_id} deleted by host {host_id}")

    @traced("party.set_lock")
    async def set_locked(self, party_id: str, host_id: str, locked: bool) -> Party:
        """Lock or unlock a party. Setting the current status again is a no-op.

        Args:
            party_id: The party
            host_id: Caller, must be the host
            locked: True to lock, False to unlock

        Returns:
            The party with its new status
        """
        party = self._get_hosted_party(party_id, host_id)
        status = PartyStatus.LOCKED if locked else PartyStatus.ACTIVE
        if party.status == status:
            return party

        now = datetime.now(UTC)
        if not self.party_repository.update_status(party_id, status, now):
            raise InternalError("Failed to update party status")

        logger.info(f"Party {party_id} is now {status.value}")
        return party.model_copy(update={"status": status, "updated_at": now})

    async def toggle_lock(self, party_id: str, host_id: str) -> Party:
        """Flip a party between active and locked."""
        party = self._get_hosted_party(party_id, host_id)
        return await self.set_locked(party_id, host_id, locked=not party.is_locked)

    # Guests

    @traced("party.join")
    async def join_as_guest(self, share_code: str, nickname: str) -> PartyGuest:
        """Join a party as a guest and receive a guest token.

        Joining twice with the same nickname creates two independent guests.

        Args:
            share_code: Party share code
            nickname: Display name of the guest

        Returns:
            The new PartyGuest, including its token

        Raises:
            NotFoundError: If no party has this share code
            StateError: If the party is locked
            ValidationError: If the nickname is blank
        """
        party = self._get_party_by_code(share_code)
        self._ensure_active(party, "Party is locked, cannot join")

        nickname = (nickname or "").strip()
        if not nickname:
            raise ValidationError("Nickname is required")

        guest = PartyGuest(
            guest_id=f"guest_{uuid.uuid4().hex[:12]}",
            party_id=party.party_id,
            nickname=nickname,
            guest_token=generate_guest_token(),
            joined_at=datetime.now(UTC),
        )

        if not self.guest_repository.create_guest(guest):
            raise InternalError("Failed to store guest")

        record_guest_joined()
        logger.info(f"Guest {guest.guest_id} joined party {party.party_id}")
        return guest

    # Order mode

    @traced("party.add_dish")
    async def add_dish(
        self,
        share_code: str,
        dish_id: str,
        servings: int = 1,
        added_by: str | None = None,
        guest_token: str | None = None,
    ) -> tuple[PartyDish, Decimal]:
        """Add servings of a dish to an order party.

        The first addition snapshots the dish from the library; later
        additions of the same dish increment the servings of that entry.

        Args:
            share_code: Party share code
            dish_id: Library dish id
            servings: Servings to add
            added_by: Free-text contributor label, used without a guest token
            guest_token: Token of the contributing guest, if any

        Returns:
            Tuple of (entry with its new servings, new total budget)

        Raises:
            NotFoundError: If the party or dish does not exist
            StateError: If the party is locked
            ValidationError: If the dish is outside the allowed range or
                servings is not positive
            AuthError: If a guest token is given but invalid for this party
        """
        party = self._get_party_by_code(share_code)
        self._ensure_active(party)
        self._ensure_mode(party, PartyMode.ORDER)

        if servings < 1:
            raise ValidationError("Servings must be at least 1")
        if not party.allows_dish(dish_id):
            raise ValidationError("Dish is not in the allowed range")

        guest = self._authenticate_guest(guest_token, party.party_id) if guest_token else None
        label = guest.nickname if guest else ((added_by or "").strip() or ANONYMOUS_CONTRIBUTOR)

        existing = self.dish_repository.get_entry(order_entry_id(party.party_id, dish_id))
        if existing is not None:
            snapshot = existing.snapshot
        else:
            dish = await self.dish_library_client.get_dish(dish_id)
            if dish is None:
                raise NotFoundError("Dish not found")
            snapshot = DishSnapshot.from_dish(dish)

        entry = self.dish_repository.upsert_and_increment_servings(
            party_id=party.party_id,
            snapshot=snapshot,
            delta=servings,
            added_by=label,
            added_by_guest_id=guest.guest_id if guest else None,
            created_at=datetime.now(UTC),
        )
        if entry is None:
            raise InternalError("Failed to store party dish")

        record_dish_added(party.mode.value)
        return entry, self._refresh_budget(party)

    @traced("party.change_servings")
    async def change_servings(self, party_dish_id: str, host_id: str, servings: int) -> Decimal:
        """Set the servings of an order entry. Below one removes the entry.

        Args:
            party_dish_id: The entry
            host_id: Caller, must be the host
            servings: Exact new servings count

        Returns:
            The new total budget

        Raises:
            NotFoundError: If the entry or party does not exist
            AuthError: If the caller is not the host
            StateError: If the party is locked
        """
        entry = self._get_entry(party_dish_id)
        party = self._get_hosted_party(entry.party_id, host_id)
        self._ensure_active(party)
        self._ensure_mode(party, PartyMode.ORDER)

        if servings < 1:
            self._delete_entry(party, entry)
        elif not self.dish_repository.update_servings(party_dish_id, servings):
            raise InternalError("Failed to update servings")

        return self._refresh_budget(party)

    # Pool mode

    @traced("party.add_to_pool")
    async def add_to_pool(
        self,
        party_id: str,
        host_id: str,
        dish_id: str | None = None,
        menu_id: str | None = None,
    ) -> list[PartyDish]:
        """Snapshot a host dish, or every dish of a host menu, into the pool.

        Dishes already in the pool are skipped.

        Returns:
            The newly created pool entries

        Raises:
            ValidationError: If no dish owned by the host can be resolved
            StateError: If the party is locked
        """
        party = self._get_hosted_party(party_id, host_id)
        self._ensure_active(party)
        self._ensure_mode(party, PartyMode.POOL)

        dishes: list[Dish] = []
        if dish_id:
            dishes = await self._resolve_host_dishes(host_id, [dish_id], [])
        elif menu_id:
            menu = await self.dish_library_client.get_menu(menu_id)
            if menu is not None and menu.owner_id == host_id:
                dishes = menu.dishes

        if not dishes:
            raise ValidationError("No valid dishes found")

        existing = {entry.dish_id for entry in self.dish_repository.list_entries_for_party(party_id)}
        added = self._insert_pool_entries(party, dishes, existing)
        if added:
            record_dish_added(party.mode.value, len(added))
        self._refresh_budget(party)
        return added

    @traced("party.remove_dish")
    async def remove_dish(
        self, party_dish_id: str, host_id: str, party_id: str | None = None
    ) -> Decimal:
        """Remove an entry (order line or pool candidate) from a party.

        Args:
            party_dish_id: The entry
            host_id: Caller, must be the host
            party_id: If given, the entry must belong to this party

        Returns:
            The new total budget
        """
        entry = self._get_entry(party_dish_id)
        if party_id is not None and entry.party_id != party_id:
            raise NotFoundError("Party dish not found")

        party = self._get_hosted_party(entry.party_id, host_id)
        self._ensure_active(party)

        self._delete_entry(party, entry)
        return self._refresh_budget(party)

    async def select_dish(
        self, guest_token: str | None, party_dish_id: str, party_id: str | None = None
    ) -> Decimal:
        """Select a pool entry for a guest. Selecting twice has no further effect."""
        return await self._change_selection(guest_token, party_dish_id, True, party_id)

    async def unselect_dish(
        self, guest_token: str | None, party_dish_id: str, party_id: str | None = None
    ) -> Decimal:
        """Unselect a pool entry for a guest. A no-op if it was not selected."""
        return await self._change_selection(guest_token, party_dish_id, False, party_id)

    @traced("party.change_selection")
    async def _change_selection(
        self,
        guest_token: str | None,
        party_dish_id: str,
        selected: bool,
        party_id: str | None,
    ) -> Decimal:
        guest = self._authenticate_guest(guest_token, party_id)
        party = self._get_party(guest.party_id)
        self._ensure_active(party, "Party is locked, selections cannot change")
        self._ensure_mode(party, PartyMode.POOL)

        entry = self._get_entry(party_dish_id)
        if entry.party_id != party.party_id:
            raise NotFoundError("Pool dish not found")

        if selected:
            ok = self.selection_repository.add_selection(
                GuestSelection(
                    party_dish_id=party_dish_id,
                    guest_id=guest.guest_id,
                    party_id=party.party_id,
                    nickname=guest.nickname,
                    selected_at=datetime.now(UTC),
                )
            )
        else:
            ok = self.selection_repository.remove_selection(party_dish_id, guest.guest_id)

        if not ok:
            raise InternalError("Failed to update selection")

        record_selection_changed("select" if selected else "unselect")
        return self._refresh_budget(party)

    # Reads

    @traced("party.detail")
    async def get_party_detail(self, share_code: str) -> PartyDetail:
        """Party page data by share code. Guest tokens are never included.

        Selector nicknames are included when selector visibility is enabled;
        the restricted dish catalogue is included when a restriction set exists.
        """
        party = self._get_party_by_code(share_code)
        entries = self._list_entries(party.party_id)

        views = []
        for entry in entries:
            selections = (
                self.selection_repository.list_selections_for_entry(entry.party_dish_id)
                if party.mode == PartyMode.POOL
                else []
            )
            views.append(
                PartyDishView(
                    party_dish_id=entry.party_dish_id,
                    dish_id=entry.dish_id,
                    dish_name=entry.snapshot.name,
                    cost=entry.snapshot.cost,
                    servings=entry.servings,
                    added_by=entry.added_by,
                    selection_count=len(selections),
                    selected_by=(
                        [s.nickname for s in selections] if self.show_selector_names else []
                    ),
                )
            )

        available: list[DishSummary] = []
        if party.available_dish_ids:
            dishes = await self.dish_library_client.get_dishes(party.available_dish_ids)
            available = [
                DishSummary(id=d.id, name=d.name, estimated_cost=d.estimated_cost or Decimal("0"))
                for d in dishes
            ]

        guests = self.guest_repository.list_guests_for_party(party.party_id)
        guests.sort(key=lambda g: g.joined_at)

        return PartyDetail(
            party=party,
            dishes=views,
            guests=[g.to_public() for g in guests],
            available_dishes=available,
        )

    async def get_total_budget(self, party_id: str) -> Decimal:
        """Budget of the entries currently in scope, computed fresh."""
        party = self._get_party(party_id)
        return self._compute_budget(self._entries_in_scope(party))

    @traced("party.shopping_list")
    async def get_shopping_list(self, share_code: str) -> tuple[Party, ShoppingList]:
        """Aggregate the in-scope entries of a party from their snapshots.

        Returns:
            Tuple of (party, shopping list)
        """
        party = self._get_party_by_code(share_code)
        return party, self._build_shopping_list(self._entries_in_scope(party))

    @traced("party.export")
    async def export_party(self, party_id: str, host_id: str) -> PartyExport:
        """Host export: roster, in-scope dishes with selectors, shopping list."""
        party = self._get_hosted_party(party_id, host_id)
        scoped = self._entries_in_scope(party)
        guests = self.guest_repository.list_guests_for_party(party_id)
        guests.sort(key=lambda g: g.joined_at)

        return PartyExport(
            party_name=party.name,
            host_id=party.host_id,
            status=party.status,
            mode=party.mode,
            guest_count=len(guests),
            guests=[g.nickname for g in guests],
            dishes=[
                ExportDish(
                    name=entry.snapshot.name,
                    cost=entry.snapshot.cost,
                    servings=entry.servings,
                    added_by=entry.added_by,
                    selected_by=[s.nickname for s in selections],
                )
                for entry, selections in scoped
            ],
            shopping_list=self._build_shopping_list(scoped),
        )

    @traced("menu.shopping_list")
    async def get_menu_shopping_list(self, menu_id: str, host_id: str) -> ShoppingList:
        """Aggregate a host menu from live library data, grouping by ingredient id.

        Raises:
            NotFoundError: If the menu does not exist or belongs to another host
        """
        dishes = await self._get_menu_dishes(menu_id, host_id)
        shopping_list = generate_shopping_list(DishWithIngredients.from_dish(d) for d in dishes)
        record_shopping_list_generated("live", len(shopping_list.ingredients))
        return shopping_list

    # Helpers

    def _allocate_share_code(self) -> str:
        for _ in range(SHARE_CODE_ATTEMPTS):
            code = generate_share_code()
            if self.party_repository.get_party_by_share_code(code) is None:
                return code
            logger.warning(f"Share code collision on {code}, retrying")

        raise InternalError("Could not allocate a unique share code")

    def _get_party(self, party_id: str) -> Party:
        party = self.party_repository.get_party(party_id)
        if party is None:
            raise NotFoundError("Party not found")
        return party

    def _get_party_by_code(self, share_code: str) -> Party:
        party = self.party_repository.get_party_by_share_code((share_code or "").strip().upper())
        if party is None:
            raise NotFoundError("Party not found")
        return party

    def _get_hosted_party(self, party_id: str, host_id: str) -> Party:
        party = self._get_party(party_id)
        if party.host_id != host_id:
            raise AuthError("Only the host can manage this party")
        return party

    def _get_entry(self, party_dish_id: str) -> PartyDish:
        entry = self.dish_repository.get_entry(party_dish_id)
        if entry is None:
            raise NotFoundError("Party dish not found")
        return entry

    def _authenticate_guest(self, guest_token: str | None, party_id: str | None) -> PartyGuest:
        if not guest_token:
            raise AuthError("Guest token required", status_code=401)

        guest = self.guest_repository.get_guest_by_token(guest_token)
        if guest is None or (party_id is not None and guest.party_id != party_id):
            raise AuthError("Invalid guest token")
        return guest

    @staticmethod
    def _ensure_active(party: Party, message: str = "Party is locked") -> None:
        if party.is_locked:
            raise StateError(message)

    @staticmethod
    def _ensure_mode(party: Party, mode: PartyMode) -> None:
        if party.mode != mode:
            raise ValidationError(f"Operation is not available for {party.mode.value} parties")

    async def _get_menu_dishes(self, menu_id: str, host_id: str) -> list[Dish]:
        menu = await self.dish_library_client.get_menu(menu_id)
        if menu is None or menu.owner_id != host_id:
            raise NotFoundError("Menu not found")
        return menu.dishes

    async def _resolve_host_dishes(
        self, host_id: str, dish_ids: list[str], known: list[Dish]
    ) -> list[Dish]:
        """Dishes for the given ids that the host owns, fetching unknown ones."""
        by_id = {dish.id: dish for dish in known}
        missing = [dish_id for dish_id in dish_ids if dish_id not in by_id]
        for dish in await self.dish_library_client.get_dishes(missing):
            by_id[dish.id] = dish

        return [
            by_id[dish_id]
            for dish_id in dish_ids
            if dish_id in by_id and by_id[dish_id].owner_id == host_id
        ]

    def _insert_pool_entries(
        self, party: Party, dishes: list[Dish], existing_dish_ids: set[str]
    ) -> list[PartyDish]:
        """Store a pool entry per new dish. All or nothing: on a failed write
        the entries stored by this call are deleted again."""
        added: list[PartyDish] = []
        seen = set(existing_dish_ids)
        for dish in dishes:
            if dish.id in seen:
                continue
            seen.add(dish.id)

            entry = PartyDish(
                party_dish_id=f"pd_{uuid.uuid4().hex[:12]}",
                party_id=party.party_id,
                snapshot=DishSnapshot.from_dish(dish),
                servings=1,
                added_by=HOST_CONTRIBUTOR,
                created_at=datetime.now(UTC),
            )
            if not self.dish_repository.save_entry(entry):
                self._rollback_entries(added)
                raise InternalError("Failed to store pool dish")
            added.append(entry)

        return added

    def _rollback_entries(self, entries: list[PartyDish]) -> None:
        for entry in entries:
            if not self.dish_repository.delete_entry(entry.party_dish_id):
                logger.error(f"Rollback left orphan pool entry {entry.party_dish_id}")

    def _delete_entry(self, party: Party, entry: PartyDish) -> None:
        if not self.dish_repository.delete_entry(entry.party_dish_id):
            raise InternalError("Failed to delete party dish")
        if party.mode == PartyMode.POOL:
            if not self.selection_repository.delete_selections_for_entry(entry.party_dish_id):
                raise InternalError("Failed to delete selections")

    def _list_entries(self, party_id: str) -> list[PartyDish]:
        entries = self.dish_repository.list_entries_for_party(party_id)
        entries.sort(key=lambda e: e.created_at)
        return entries

    def _entries_in_scope(self, party: Party) -> ScopedEntries:
        entries = self._list_entries(party.party_id)
        if party.mode == PartyMode.ORDER:
            return [(entry, []) for entry in entries]

        scoped = []
        for entry in entries:
            selections = self.selection_repository.list_selections_for_entry(entry.party_dish_id)
            if selections:
                scoped.append((entry, selections))
        return scoped

    @staticmethod
    def _compute_budget(scoped: ScopedEntries) -> Decimal:
        return sum((entry.line_total for entry, _ in scoped), Decimal("0"))

    def _refresh_budget(self, party: Party) -> Decimal:
        budget = self._compute_budget(self._entries_in_scope(party))
        if not self.party_repository.update_total_budget(party.party_id, budget):
            raise InternalError("Failed to persist party budget")
        return budget

    def _build_shopping_list(self, scoped: ScopedEntries) -> ShoppingList:
        shopping_list = generate_shopping_list(
            DishWithIngredients.from_snapshot(entry.snapshot, servings=entry.servings)
            for entry, _ in scoped
        )
        record_shopping_list_generated("snapshot", len(shopping_list.ingredients))
        return shopping_list
