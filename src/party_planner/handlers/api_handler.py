"""FastAPI application for the party planner API."""

import logging
from decimal import Decimal
from typing import Literal

from fastapi import Depends, FastAPI, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from party_planner.auth.api_dependencies import (
    get_guest_token_from_header,
    get_host_id_from_header,
)
from party_planner.auth.host_key_validator import HostKeyValidator
from party_planner.exceptions import PartyPlannerError
from party_planner.models.party_models import (
    GuestPublic,
    Party,
    PartyDetail,
    PartyDish,
    PartyExport,
    PartyMode,
    PartyStatus,
    PartySummary,
)
from party_planner.models.shopping_models import ShoppingList
from party_planner.services.party_service import PartyService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class CreatePartyRequest(BaseModel):
    """Request body for creating a party."""

    name: str
    dish_ids: list[str] | None = None
    menu_id: str | None = None
    mode: PartyMode = PartyMode.ORDER


class CreatePartyResponse(BaseModel):
    party: Party
    share_code: str


class RenamePartyRequest(BaseModel):
    name: str


class LockRequest(BaseModel):
    action: Literal["lock", "unlock"]


class JoinRequest(BaseModel):
    nickname: str


class JoinResponse(BaseModel):
    """Returned once to a joining guest. The token is not shown again."""

    guest_token: str
    guest: GuestPublic


class AddDishRequest(BaseModel):
    dish_id: str
    servings: int = Field(default=1, description="Servings to add")
    added_by: str | None = Field(None, description="Contributor label without a guest token")


class AddDishResponse(BaseModel):
    total_budget: Decimal
    entry: PartyDish


class BudgetResponse(BaseModel):
    total_budget: Decimal


class ServingsRequest(BaseModel):
    servings: int


class PoolAddRequest(BaseModel):
    dish_id: str | None = None
    menu_id: str | None = None


class PoolAddResponse(BaseModel):
    added: list[PartyDish]


class PoolRemoveRequest(BaseModel):
    pool_dish_id: str


class SelectRequest(BaseModel):
    pool_dish_id: str
    action: Literal["select", "unselect"]


class PartyShoppingListResponse(BaseModel):
    party_name: str
    status: PartyStatus
    shopping_list: ShoppingList


def create_app(party_service: PartyService, host_keys: dict[str, str]) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        party_service: Service owning party state
        host_keys: Mapping of host API key to host id

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Party Planner API",
        description="Plan shared meals: parties, dishes, guests and shopping lists",
        version="1.0.0",
    )

    app.state.party_service = party_service
    app.state.host_key_validator = HostKeyValidator(host_keys=host_keys)

    @app.exception_handler(PartyPlannerError)
    async def handle_party_planner_error(request: Request, exc: PartyPlannerError) -> JSONResponse:
        detail = exc.message
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
            detail = "Internal server error"

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": detail, "error_code": exc.error_code},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request"
        return JSONResponse(
            status_code=400,
            content={"detail": message, "error_code": "VALIDATION_ERROR"},
        )

    def require_host(x_api_key: str | None = Header(None)) -> str:
        """Dependency resolving the calling host."""
        return get_host_id_from_header(x_api_key=x_api_key, validator=app.state.host_key_validator)

    def require_guest(x_guest_token: str | None = Header(None)) -> str:
        """Dependency requiring a guest token."""
        return get_guest_token_from_header(x_guest_token=x_guest_token)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        return HealthResponse(status="healthy")

    # Host: party lifecycle

    @app.post("/parties", response_model=CreatePartyResponse, status_code=201, tags=["Parties"])
    async def create_party(
        body: CreatePartyRequest,
        host_id: str = Depends(require_host),
    ) -> CreatePartyResponse:
        """Create a party and return its share code."""
        party: Party = await app.state.party_service.create_party(
            host_id=host_id,
            name=body.name,
            dish_ids=body.dish_ids,
            menu_id=body.menu_id,
            mode=body.mode,
        )
        return CreatePartyResponse(party=party, share_code=party.share_code)

    @app.get("/parties/mine", response_model=list[PartySummary], tags=["Parties"])
    async def list_my_parties(host_id: str = Depends(require_host)) -> list[PartySummary]:
        parties: list[PartySummary] = await app.state.party_service.list_host_parties(host_id)
        return parties

    @app.put("/parties/{party_id}", response_model=Party, tags=["Parties"])
    async def rename_party(
        party_id: str,
        body: RenamePartyRequest,
        host_id: str = Depends(require_host),
    ) -> Party:
        party: Party = await app.state.party_service.rename_party(party_id, host_id, body.name)
        return party

    @app.delete("/parties/{party_id}", status_code=204, tags=["Parties"])
    async def delete_party(party_id: str, host_id: str = Depends(require_host)) -> Response:
        """Delete a party and everything that belongs to it."""
        await app.state.party_service.delete_party(party_id, host_id)
        return Response(status_code=204)

    @app.put("/parties/{party_id}/toggle-lock", response_model=Party, tags=["Parties"])
    async def toggle_lock(party_id: str, host_id: str = Depends(require_host)) -> Party:
        party: Party = await app.state.party_service.toggle_lock(party_id, host_id)
        return party

    @app.put("/parties/{party_id}/lock", response_model=Party, tags=["Parties"])
    async def set_lock(
        party_id: str,
        body: LockRequest,
        host_id: str = Depends(require_host),
    ) -> Party:
        party: Party = await app.state.party_service.set_locked(
            party_id, host_id, locked=body.action == "lock"
        )
        return party

    @app.get("/parties/{party_id}/export", response_model=PartyExport, tags=["Parties"])
    async def export_party(party_id: str, host_id: str = Depends(require_host)) -> PartyExport:
        export: PartyExport = await app.state.party_service.export_party(party_id, host_id)
        return export

    # Public: share code access

    @app.get("/parties/join/{code}", response_model=PartyDetail, tags=["Guests"])
    async def get_party_by_code(code: str) -> PartyDetail:
        """Party page by share code. No authentication required."""
        detail: PartyDetail = await app.state.party_service.get_party_detail(code)
        return detail

    @app.post(
        "/parties/join/{code}/guest",
        response_model=JoinResponse,
        status_code=201,
        tags=["Guests"],
    )
    async def join_party(code: str, body: JoinRequest) -> JoinResponse:
        guest = await app.state.party_service.join_as_guest(code, body.nickname)
        return JoinResponse(guest_token=guest.guest_token, guest=guest.to_public())

    @app.post(
        "/parties/join/{code}/add-dish",
        response_model=AddDishResponse,
        status_code=201,
        tags=["Guests"],
    )
    async def add_dish(
        code: str,
        body: AddDishRequest,
        x_guest_token: str | None = Header(None),
    ) -> AddDishResponse:
        """Add servings of a dish to an order party.

        A guest token, when present, attributes the dish to that guest.
        """
        entry, total_budget = await app.state.party_service.add_dish(
            share_code=code,
            dish_id=body.dish_id,
            servings=body.servings,
            added_by=body.added_by,
            guest_token=x_guest_token,
        )
        return AddDishResponse(total_budget=total_budget, entry=entry)

    @app.get(
        "/parties/join/{code}/shopping-list",
        response_model=PartyShoppingListResponse,
        tags=["Shopping"],
    )
    async def get_party_shopping_list(code: str) -> PartyShoppingListResponse:
        party, shopping_list = await app.state.party_service.get_shopping_list(code)
        return PartyShoppingListResponse(
            party_name=party.name, status=party.status, shopping_list=shopping_list
        )

    # Host: dishes

    @app.delete("/parties/dish/{party_dish_id}", response_model=BudgetResponse, tags=["Dishes"])
    async def remove_dish(
        party_dish_id: str,
        host_id: str = Depends(require_host),
    ) -> BudgetResponse:
        total_budget = await app.state.party_service.remove_dish(party_dish_id, host_id)
        return BudgetResponse(total_budget=total_budget)

    @app.put(
        "/parties/dish/{party_dish_id}/servings",
        response_model=BudgetResponse,
        tags=["Dishes"],
    )
    async def change_servings(
        party_dish_id: str,
        body: ServingsRequest,
        host_id: str = Depends(require_host),
    ) -> BudgetResponse:
        """Set servings of an order entry; fewer than one removes it."""
        total_budget = await app.state.party_service.change_servings(
            party_dish_id, host_id, body.servings
        )
        return BudgetResponse(total_budget=total_budget)

    @app.post(
        "/parties/{party_id}/pool",
        response_model=PoolAddResponse,
        status_code=201,
        tags=["Dishes"],
    )
    async def add_to_pool(
        party_id: str,
        body: PoolAddRequest,
        host_id: str = Depends(require_host),
    ) -> PoolAddResponse:
        added = await app.state.party_service.add_to_pool(
            party_id, host_id, dish_id=body.dish_id, menu_id=body.menu_id
        )
        return PoolAddResponse(added=added)

    @app.delete("/parties/{party_id}/pool", response_model=BudgetResponse, tags=["Dishes"])
    async def remove_from_pool(
        party_id: str,
        body: PoolRemoveRequest,
        host_id: str = Depends(require_host),
    ) -> BudgetResponse:
        total_budget = await app.state.party_service.remove_dish(
            body.pool_dish_id, host_id, party_id=party_id
        )
        return BudgetResponse(total_budget=total_budget)

    # Guest: selections

    @app.post("/parties/{party_id}/select", response_model=BudgetResponse, tags=["Guests"])
    async def change_selection(
        party_id: str,
        body: SelectRequest,
        guest_token: str = Depends(require_guest),
    ) -> BudgetResponse:
        """Select or unselect a pool dish for the calling guest."""
        service: PartyService = app.state.party_service
        if body.action == "select":
            total_budget = await service.select_dish(guest_token, body.pool_dish_id, party_id)
        else:
            total_budget = await service.unselect_dish(guest_token, body.pool_dish_id, party_id)
        return BudgetResponse(total_budget=total_budget)

    # Host: live menu aggregation

    @app.get("/menus/{menu_id}/shopping-list", response_model=ShoppingList, tags=["Shopping"])
    async def get_menu_shopping_list(
        menu_id: str,
        host_id: str = Depends(require_host),
    ) -> ShoppingList:
        shopping_list: ShoppingList = await app.state.party_service.get_menu_shopping_list(
            menu_id, host_id
        )
        return shopping_list

    return app
