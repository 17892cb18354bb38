"""Environment-driven construction of the service's dependencies."""

import logging
import os
from typing import Any

import boto3

from party_planner.auth.host_key_validator import parse_host_keys
from party_planner.repositories.party_repositories import (
    GuestSelectionRepository,
    PartyDishRepository,
    PartyGuestRepository,
    PartyRepository,
)
from party_planner.services.dish_library_client import DishLibraryClient
from party_planner.services.party_service import PartyService

logger = logging.getLogger(__name__)

DEVELOPMENT_HOST_KEY = "dummy-key-for-development"
DEVELOPMENT_HOST_ID = "dev-host"


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )

    # Production - boto3 uses the default credential chain
    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def get_host_keys() -> dict[str, str]:
    """Read host API keys from HOST_API_KEYS, falling back to a development key."""
    host_keys = parse_host_keys(os.getenv("HOST_API_KEYS", ""))

    if not host_keys:
        logger.warning("No HOST_API_KEYS configured - using development key")
        host_keys = {DEVELOPMENT_HOST_KEY: DEVELOPMENT_HOST_ID}

    return host_keys


def create_party_service(dynamodb_resource: Any) -> PartyService:
    """Wire repositories and the dish library client into a PartyService.

    Args:
        dynamodb_resource: Boto3 DynamoDB resource

    Returns:
        Configured PartyService

    Raises:
        ValueError: If the dish library is not configured
    """
    parties_table = os.getenv("DYNAMODB_PARTIES_TABLE", "party-planner-parties")
    dishes_table = os.getenv("DYNAMODB_PARTY_DISHES_TABLE", "party-planner-party-dishes")
    guests_table = os.getenv("DYNAMODB_PARTY_GUESTS_TABLE", "party-planner-party-guests")
    selections_table = os.getenv(
        "DYNAMODB_GUEST_SELECTIONS_TABLE", "party-planner-guest-selections"
    )

    dish_library_url = os.getenv("DISH_LIBRARY_BASE_URL")
    dish_library_api_key = os.getenv("DISH_LIBRARY_API_KEY")

    if not dish_library_url or not dish_library_api_key:
        raise ValueError(
            "DISH_LIBRARY_BASE_URL and DISH_LIBRARY_API_KEY must be set in environment"
        )

    logger.info(
        f"Repositories configured - parties: {parties_table}, dishes: {dishes_table}, "
        f"guests: {guests_table}, selections: {selections_table}"
    )
    logger.info(f"Dish library client configured - URL: {dish_library_url}")

    return PartyService(
        party_repository=PartyRepository(dynamodb_resource, parties_table),
        dish_repository=PartyDishRepository(dynamodb_resource, dishes_table),
        guest_repository=PartyGuestRepository(dynamodb_resource, guests_table),
        selection_repository=GuestSelectionRepository(dynamodb_resource, selections_table),
        dish_library_client=DishLibraryClient(
            base_url=dish_library_url, api_key=dish_library_api_key
        ),
        show_selector_names=os.getenv("SHOW_SELECTOR_NAMES", "true").lower() == "true",
    )
