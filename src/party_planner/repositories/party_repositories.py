"""DynamoDB repository classes for party models.

These repositories provide CRUD operations for parties, party dishes, guests
and guest selections. Expected failures are reported with simple return values
(None/False/empty list) and logged; the service layer decides whether a failed
write is fatal.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from party_planner.models.dish_models import DishSnapshot
from party_planner.models.party_models import (
    GuestSelection,
    Party,
    PartyDish,
    PartyGuest,
    PartyStatus,
)

logger = logging.getLogger(__name__)


def order_entry_id(party_id: str, dish_id: str) -> str:
    """Deterministic entry id of the merged order line for a (party, dish) pair."""
    return f"pd_{party_id}_{dish_id}"


def _query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Run a query and follow LastEvaluatedKey until every page is read."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


class PartyRepository:
    """Repository for party CRUD operations.

    Manages party records in DynamoDB with party_id as partition key, plus
    global secondary indexes share_code-index and host_id-index.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_party(self, party: Party) -> bool:
        """Insert a new party, refusing to overwrite an existing id.

        Args:
            party: Party to insert

        Returns:
            bool: True if the insert succeeded, False otherwise
        """
        try:
            self.table.put_item(
                Item=party.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(party_id)",
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to create party: {e}")
            return False

    def get_party(self, party_id: str) -> Party | None:
        """Retrieve a party by id.

        Args:
            party_id: Party identifier

        Returns:
            Party if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"party_id": party_id})

            if "Item" not in response:
                return None

            return Party.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get party: {e}")  # pragma: no cover
            return None

    def get_party_by_share_code(self, share_code: str) -> Party | None:
        """Retrieve a party by its share code.

        Uses a Global Secondary Index on share_code.

        Args:
            share_code: Six-character join code

        Returns:
            Party if found, None otherwise
        """
        try:
            response = self.table.query(
                IndexName="share_code-index",
                KeyConditionExpression="share_code = :code",
                ExpressionAttributeValues={":code": share_code},
                Limit=1,
            )

            items = response.get("Items", [])
            if not items:
                return None

            return Party.from_dynamodb_item(items[0])

        except ClientError as e:
            logger.error(f"Failed to get party by share code: {e}")  # pragma: no cover
            return None

    def list_parties_for_host(self, host_id: str) -> list[Party]:
        """List a host's parties, newest first.

        Uses a Global Secondary Index on host_id with created_at as sort key.

        Args:
            host_id: Host identifier

        Returns:
            list: List of Party objects (empty list if none found)
        """
        try:
            items = _query_all(
                self.table,
                IndexName="host_id-index",
                KeyConditionExpression="host_id = :hid",
                ExpressionAttributeValues={":hid": host_id},
                ScanIndexForward=False,  # Most recent first
            )

            return [Party.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list parties: {e}")  # pragma: no cover
            return []

    def update_name(self, party_id: str, name: str, updated_at: datetime) -> bool:
        """Rename a party.

        Args:
            party_id: Party identifier
            name: New party name
            updated_at: Modification timestamp

        Returns:
            bool: True if update succeeded, False otherwise
        """
        try:
            self.table.update_item(
                Key={"party_id": party_id},
                UpdateExpression="SET #name = :name, updated_at = :now",
                ExpressionAttributeNames={"#name": "name"},
                ExpressionAttributeValues={":name": name, ":now": updated_at.isoformat()},
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to rename party: {e}")  # pragma: no cover
            return False

    def update_status(self, party_id: str, status: PartyStatus, updated_at: datetime) -> bool:
        """Update the lifecycle status of a party.

        Args:
            party_id: Party identifier
            status: New status
            updated_at: Modification timestamp

        Returns:
            bool: True if update succeeded, False otherwise
        """
        try:
            self.table.update_item(
                Key={"party_id": party_id},
                UpdateExpression="SET #status = :status, updated_at = :now",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":status": status.value,
                    ":now": updated_at.isoformat(),
                },
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to update party status: {e}")  # pragma: no cover
            return False

    def update_total_budget(self, party_id: str, total_budget: Decimal) -> bool:
        """Persist the recomputed budget of a party.

        Args:
            party_id: Party identifier
            total_budget: Recomputed budget

        Returns:
            bool: True if update succeeded, False otherwise
        """
        try:
            self.table.update_item(
                Key={"party_id": party_id},
                UpdateExpression="SET total_budget = :budget",
                ExpressionAttributeValues={":budget": total_budget},
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to update party budget: {e}")  # pragma: no cover
            return False

    def delete_party(self, party_id: str) -> bool:
        """Delete a party record.

        Args:
            party_id: Party identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"party_id": party_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete party: {e}")  # pragma: no cover
            return False


class PartyDishRepository:
    """Repository for party dish entries.

    Manages entries in DynamoDB with party_dish_id as partition key and a
    global secondary index party_id-index.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def save_entry(self, entry: PartyDish) -> bool:
        """Save a pool entry.

        Args:
            entry: PartyDish to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=entry.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save party dish: {e}")  # pragma: no cover
            return False

    def upsert_and_increment_servings(
        self,
        party_id: str,
        snapshot: DishSnapshot,
        delta: int,
        added_by: str,
        added_by_guest_id: str | None,
        created_at: datetime,
    ) -> PartyDish | None:
        """Add servings to the order line of a dish, creating it if missing.

        A single UpdateItem call: ADD is atomic on the server, and the
        if_not_exists guards keep the first snapshot and contributor, so two
        concurrent additions of the same dish never lose an increment.

        Args:
            party_id: Party identifier
            snapshot: Snapshot to store if the line does not exist yet
            delta: Servings to add
            added_by: Contributor label for a new line
            added_by_guest_id: Contributing guest for a new line
            created_at: Insertion timestamp for a new line

        Returns:
            PartyDish with the new servings total, None on failure
        """
        try:
            response = self.table.update_item(
                Key={"party_dish_id": order_entry_id(party_id, snapshot.dish_id)},
                UpdateExpression=(
                    "SET #party_id = if_not_exists(#party_id, :party_id), "
                    "#snapshot = if_not_exists(#snapshot, :snapshot), "
                    "#added_by = if_not_exists(#added_by, :added_by), "
                    "#added_by_guest_id = if_not_exists(#added_by_guest_id, :guest_id), "
                    "#created_at = if_not_exists(#created_at, :created_at) "
                    "ADD #servings :delta"
                ),
                ExpressionAttributeNames={
                    "#party_id": "party_id",
                    "#snapshot": "snapshot",
                    "#added_by": "added_by",
                    "#added_by_guest_id": "added_by_guest_id",
                    "#created_at": "created_at",
                    "#servings": "servings",
                },
                ExpressionAttributeValues={
                    ":party_id": party_id,
                    ":snapshot": snapshot.to_dynamodb_item(),
                    ":added_by": added_by,
                    ":guest_id": added_by_guest_id,
                    ":created_at": created_at.isoformat(),
                    ":delta": delta,
                },
                ReturnValues="ALL_NEW",
            )

            return PartyDish.from_dynamodb_item(response["Attributes"])

        except ClientError as e:
            logger.error(f"Failed to upsert party dish: {e}")
            return None

    def get_entry(self, party_dish_id: str) -> PartyDish | None:
        """Retrieve an entry by id.

        Args:
            party_dish_id: Entry identifier

        Returns:
            PartyDish if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"party_dish_id": party_dish_id})

            if "Item" not in response:
                return None

            return PartyDish.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get party dish: {e}")  # pragma: no cover
            return None

    def list_entries_for_party(self, party_id: str) -> list[PartyDish]:
        """List all entries of a party in insertion order.

        Uses a Global Secondary Index on party_id with created_at as sort key.

        Args:
            party_id: Party identifier

        Returns:
            list: List of PartyDish objects (empty list if none found)
        """
        try:
            items = _query_all(
                self.table,
                IndexName="party_id-index",
                KeyConditionExpression="party_id = :pid",
                ExpressionAttributeValues={":pid": party_id},
            )

            return [PartyDish.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list party dishes: {e}")  # pragma: no cover
            return []

    def update_servings(self, party_dish_id: str, servings: int) -> bool:
        """Set the servings of an entry to an exact value.

        Args:
            party_dish_id: Entry identifier
            servings: New servings count

        Returns:
            bool: True if update succeeded, False otherwise
        """
        try:
            self.table.update_item(
                Key={"party_dish_id": party_dish_id},
                UpdateExpression="SET servings = :servings",
                ConditionExpression="attribute_exists(party_dish_id)",
                ExpressionAttributeValues={":servings": servings},
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to update servings: {e}")  # pragma: no cover
            return False

    def delete_entry(self, party_dish_id: str) -> bool:
        """Delete an entry.

        Args:
            party_dish_id: Entry identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"party_dish_id": party_dish_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete party dish: {e}")  # pragma: no cover
            return False


class PartyGuestRepository:
    """Repository for party guests.

    Manages guest records in DynamoDB with guest_id as partition key and
    global secondary indexes guest_token-index and party_id-index.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_guest(self, guest: PartyGuest) -> bool:
        """Insert a new guest.

        Args:
            guest: PartyGuest to insert

        Returns:
            bool: True if the insert succeeded, False otherwise
        """
        try:
            self.table.put_item(
                Item=guest.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(guest_id)",
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to create guest: {e}")
            return False

    def get_guest_by_token(self, guest_token: str) -> PartyGuest | None:
        """Resolve a guest token.

        Uses a Global Secondary Index on guest_token.

        Args:
            guest_token: Bearer token issued at join time

        Returns:
            PartyGuest if found, None otherwise
        """
        try:
            response = self.table.query(
                IndexName="guest_token-index",
                KeyConditionExpression="guest_token = :token",
                ExpressionAttributeValues={":token": guest_token},
                Limit=1,
            )

            items = response.get("Items", [])
            if not items:
                return None

            return PartyGuest.from_dynamodb_item(items[0])

        except ClientError as e:
            logger.error(f"Failed to get guest by token: {e}")  # pragma: no cover
            return None

    def list_guests_for_party(self, party_id: str) -> list[PartyGuest]:
        """List the guest roster of a party.

        Uses a Global Secondary Index on party_id.

        Args:
            party_id: Party identifier

        Returns:
            list: List of PartyGuest objects (empty list if none found)
        """
        try:
            items = _query_all(
                self.table,
                IndexName="party_id-index",
                KeyConditionExpression="party_id = :pid",
                ExpressionAttributeValues={":pid": party_id},
            )

            return [PartyGuest.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list guests: {e}")  # pragma: no cover
            return []

    def delete_guest(self, guest_id: str) -> bool:
        """Delete a guest.

        Args:
            guest_id: Guest identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"guest_id": guest_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete guest: {e}")  # pragma: no cover
            return False


class GuestSelectionRepository:
    """Repository for guest selections.

    Manages selections in DynamoDB with composite key (party_dish_id, guest_id).
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def add_selection(self, selection: GuestSelection) -> bool:
        """Record a selection. Selecting twice overwrites the same item.

        Args:
            selection: GuestSelection to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=selection.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save selection: {e}")  # pragma: no cover
            return False

    def remove_selection(self, party_dish_id: str, guest_id: str) -> bool:
        """Remove a selection. Removing a missing selection succeeds.

        Args:
            party_dish_id: Pool entry identifier
            guest_id: Guest identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"party_dish_id": party_dish_id, "guest_id": guest_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete selection: {e}")  # pragma: no cover
            return False

    def list_selections_for_entry(self, party_dish_id: str) -> list[GuestSelection]:
        """List the guests who selected a pool entry, in guest id order.

        Args:
            party_dish_id: Pool entry identifier

        Returns:
            list: List of GuestSelection objects (empty list if none found)
        """
        try:
            items = _query_all(
                self.table,
                KeyConditionExpression="party_dish_id = :pdid",
                ExpressionAttributeValues={":pdid": party_dish_id},
            )

            return [GuestSelection.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list selections: {e}")  # pragma: no cover
            return []

    def delete_selections_for_entry(self, party_dish_id: str) -> bool:
        """Delete every selection of a pool entry.

        Args:
            party_dish_id: Pool entry identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        selections = self.list_selections_for_entry(party_dish_id)

        try:
            with self.table.batch_writer() as batch:
                for selection in selections:
                    batch.delete_item(
                        Key={"party_dish_id": selection.party_dish_id, "guest_id": selection.guest_id}
                    )
            return True

        except ClientError as e:
            logger.error(f"Failed to delete selections: {e}")  # pragma: no cover
            return False
