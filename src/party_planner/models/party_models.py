"""Party, party dish, guest and selection models.

These models represent a party's state for DynamoDB storage and retrieval.
Each table model knows how to convert itself to and from a DynamoDB item.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from party_planner.models.dish_models import DishSnapshot, DishSummary
from party_planner.models.shopping_models import ShoppingList


class PartyStatus(str, Enum):
    """Enumeration of party lifecycle states."""

    ACTIVE = "active"
    LOCKED = "locked"


class PartyMode(str, Enum):
    """How guests contribute dishes to a party.

    ORDER merges repeated additions of a dish into one entry with servings.
    POOL lets guests select entries from a host-curated candidate pool.
    """

    ORDER = "order"
    POOL = "pool"


class Party(BaseModel):
    """A meal event owned by a host.

    Stored in DynamoDB with party_id as partition key, with global secondary
    indexes on share_code and host_id.
    """

    model_config = ConfigDict(json_encoders={Decimal: str})

    party_id: str = Field(..., description="Unique party identifier")
    name: str = Field(..., description="Party name")
    host_id: str = Field(..., description="Host who created the party")
    share_code: str = Field(..., description="Public join code", min_length=6, max_length=6)
    mode: PartyMode = Field(default=PartyMode.ORDER, description="Dish contribution model")
    status: PartyStatus = Field(default=PartyStatus.ACTIVE, description="Lifecycle status")
    available_dish_ids: list[str] | None = Field(
        None, description="Dishes guests may add; None means no restriction"
    )
    total_budget: Decimal = Field(default=Decimal("0"), description="Cached budget", ge=0)
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last modification timestamp")

    @property
    def is_locked(self) -> bool:
        return self.status == PartyStatus.LOCKED

    def allows_dish(self, dish_id: str) -> bool:
        """Check a dish against the restriction set.

        Args:
            dish_id: Library dish id

        Returns:
            bool: True if no restriction is configured or the dish is a member
        """
        if not self.available_dish_ids:
            return True
        return dish_id in self.available_dish_ids

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "party_id": self.party_id,
            "name": self.name,
            "host_id": self.host_id,
            "share_code": self.share_code,
            "mode": self.mode.value,
            "status": self.status.value,
            "total_budget": self.total_budget,
            "created_at": self.created_at.isoformat(),
        }

        if self.available_dish_ids:
            item["available_dish_ids"] = list(self.available_dish_ids)

        if self.updated_at is not None:
            item["updated_at"] = self.updated_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Party":
        """Create Party from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Party: Parsed model instance
        """
        data: dict[str, Any] = {
            "party_id": item["party_id"],
            "name": item["name"],
            "host_id": item["host_id"],
            "share_code": item["share_code"],
            "mode": PartyMode(item.get("mode", PartyMode.ORDER.value)),
            "status": PartyStatus(item["status"]),
            "total_budget": Decimal(str(item.get("total_budget", "0"))),
            "created_at": datetime.fromisoformat(item["created_at"]),
        }

        if item.get("available_dish_ids"):
            data["available_dish_ids"] = [str(d) for d in item["available_dish_ids"]]

        if "updated_at" in item:
            data["updated_at"] = datetime.fromisoformat(item["updated_at"])

        return cls(**data)


class PartySummary(Party):
    """Party with roster and dish counts, for the host's party list."""

    guest_count: int = Field(default=0, ge=0)
    dish_count: int = Field(default=0, ge=0)


class PartyDish(BaseModel):
    """A dish entry of a party: an order line or a pool candidate.

    Stored in DynamoDB with party_dish_id as partition key and a global
    secondary index on party_id. Order lines use a deterministic id per
    (party, dish) so servings can be incremented atomically.
    """

    model_config = ConfigDict(json_encoders={Decimal: str})

    party_dish_id: str = Field(..., description="Unique entry identifier")
    party_id: str = Field(..., description="Party this entry belongs to")
    snapshot: DishSnapshot = Field(..., description="Dish frozen at insertion time")
    servings: int = Field(default=1, description="Number of servings", ge=1)
    added_by: str = Field(..., description="Display label of the contributor")
    added_by_guest_id: str | None = Field(None, description="Guest who added the entry")
    created_at: datetime = Field(..., description="Insertion timestamp")

    @field_validator("servings")
    @classmethod
    def validate_servings(cls, v: int) -> int:
        """Validate that servings is positive."""
        if v < 1:
            raise ValueError("servings must be positive")
        return v

    @property
    def dish_id(self) -> str:
        return self.snapshot.dish_id

    @property
    def line_total(self) -> Decimal:
        return self.snapshot.cost * self.servings

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "party_dish_id": self.party_dish_id,
            "party_id": self.party_id,
            "snapshot": self.snapshot.to_dynamodb_item(),
            "servings": self.servings,
            "added_by": self.added_by,
            "created_at": self.created_at.isoformat(),
        }

        if self.added_by_guest_id is not None:
            item["added_by_guest_id"] = self.added_by_guest_id

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "PartyDish":
        """Create PartyDish from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            PartyDish: Parsed model instance
        """
        return cls(
            party_dish_id=item["party_dish_id"],
            party_id=item["party_id"],
            snapshot=DishSnapshot.from_dynamodb_item(item["snapshot"]),
            servings=int(item.get("servings", 1)),
            added_by=item["added_by"],
            added_by_guest_id=item.get("added_by_guest_id"),
            created_at=datetime.fromisoformat(item["created_at"]),
        )


class PartyGuest(BaseModel):
    """A guest who joined a party with a nickname.

    The guest token is the guest's bearer credential. It is returned once,
    when the guest joins, and never included in other responses.
    """

    guest_id: str = Field(..., description="Unique guest identifier")
    party_id: str = Field(..., description="Party the guest joined")
    nickname: str = Field(..., description="Display name chosen by the guest")
    guest_token: str = Field(..., description="Secret bearer credential")
    joined_at: datetime = Field(..., description="Join timestamp")

    def to_public(self) -> "GuestPublic":
        return GuestPublic(guest_id=self.guest_id, nickname=self.nickname)

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "guest_id": self.guest_id,
            "party_id": self.party_id,
            "nickname": self.nickname,
            "guest_token": self.guest_token,
            "joined_at": self.joined_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "PartyGuest":
        """Create PartyGuest from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            PartyGuest: Parsed model instance
        """
        return cls(
            guest_id=item["guest_id"],
            party_id=item["party_id"],
            nickname=item["nickname"],
            guest_token=item["guest_token"],
            joined_at=datetime.fromisoformat(item["joined_at"]),
        )


class GuestPublic(BaseModel):
    """Guest as shown to other guests, without the token."""

    guest_id: str
    nickname: str


class GuestSelection(BaseModel):
    """A guest's wish for a pool entry.

    Stored in DynamoDB with (party_dish_id, guest_id) as composite key, so a
    guest can select an entry at most once.
    """

    party_dish_id: str = Field(..., description="Selected pool entry")
    guest_id: str = Field(..., description="Selecting guest")
    party_id: str = Field(..., description="Party of the pool entry")
    nickname: str = Field(..., description="Guest nickname at selection time")
    selected_at: datetime = Field(..., description="Selection timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "party_dish_id": self.party_dish_id,
            "guest_id": self.guest_id,
            "party_id": self.party_id,
            "nickname": self.nickname,
            "selected_at": self.selected_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "GuestSelection":
        """Create GuestSelection from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            GuestSelection: Parsed model instance
        """
        return cls(
            party_dish_id=item["party_dish_id"],
            guest_id=item["guest_id"],
            party_id=item["party_id"],
            nickname=item["nickname"],
            selected_at=datetime.fromisoformat(item["selected_at"]),
        )


class PartyDishView(BaseModel):
    """A party entry as displayed on the party page."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    party_dish_id: str
    dish_id: str
    dish_name: str
    cost: Decimal
    servings: int
    added_by: str
    selection_count: int = 0
    selected_by: list[str] = Field(default_factory=list)


class PartyDetail(BaseModel):
    """Everything a guest needs to render a party by share code."""

    party: Party
    dishes: list[PartyDishView] = Field(default_factory=list)
    guests: list[GuestPublic] = Field(default_factory=list)
    available_dishes: list[DishSummary] = Field(default_factory=list)


class ExportDish(BaseModel):
    """An in-scope dish in the host export."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    name: str
    cost: Decimal
    servings: int
    added_by: str
    selected_by: list[str] = Field(default_factory=list)


class PartyExport(BaseModel):
    """Host-oriented full export of a party."""

    party_name: str
    host_id: str
    status: PartyStatus
    mode: PartyMode
    guest_count: int
    guests: list[str] = Field(default_factory=list)
    dishes: list[ExportDish] = Field(default_factory=list)
    shopping_list: ShoppingList
