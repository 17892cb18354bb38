"""Cached dependency factory for the Lambda handler.

Dependencies are created once per Lambda container and reused across
invocations.
"""

import logging
import os
from typing import Any

from fastapi import FastAPI

from party_planner.config import create_party_service, get_dynamodb_resource, get_host_keys
from party_planner.handlers.api_handler import create_app
from party_planner.observability import configure_logging, setup_observability
from party_planner.services.party_service import PartyService

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_party_service: PartyService | None = None
_fastapi_app: FastAPI | None = None


def get_cached_dynamodb_resource() -> Any:
    global _dynamodb_resource

    if _dynamodb_resource is None:
        _dynamodb_resource = get_dynamodb_resource()

    return _dynamodb_resource


def get_party_service() -> PartyService:
    """Create or retrieve the cached party service."""
    global _party_service

    if _party_service is None:
        _party_service = create_party_service(get_cached_dynamodb_resource())
        logger.info("Party service initialized")

    return _party_service


def get_fastapi_app() -> FastAPI:
    """Create or retrieve the cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is None:
        _fastapi_app = create_app(party_service=get_party_service(), host_keys=get_host_keys())
        setup_observability(_fastapi_app)
        logger.info("FastAPI application initialized")

    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Configure logging. Called once during Lambda cold start."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    logger.info("Lambda environment initialized")
