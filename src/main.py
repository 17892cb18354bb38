"""Main application entry point for the party planner service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os

from fastapi import FastAPI

from party_planner.config import create_party_service, get_dynamodb_resource, get_host_keys
from party_planner.handlers.api_handler import create_app
from party_planner.observability import configure_logging, setup_observability

logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the DynamoDB resource, repositories and party service
    3. Creates the FastAPI app
    4. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing party planner service...")

    party_service = create_party_service(get_dynamodb_resource())
    app = create_app(party_service=party_service, host_keys=get_host_keys())

    setup_observability(app)

    logger.info("Party planner service initialized successfully")
    return app


# Create the FastAPI application instance (only when not in test mode)
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8002"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
