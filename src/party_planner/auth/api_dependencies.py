"""FastAPI dependencies for host and guest authentication."""

from typing import Annotated

from fastapi import Header

from party_planner.auth.host_key_validator import HostKeyValidator
from party_planner.exceptions import AuthError


def get_host_id_from_header(
    x_api_key: Annotated[str | None, Header()] = None,
    validator: HostKeyValidator | None = None,
) -> str:
    """Resolve the calling host from the X-API-Key header.

    Args:
        x_api_key: API key from X-API-Key header (injected by FastAPI)
        validator: HostKeyValidator instance

    Returns:
        str: The host id the key belongs to

    Raises:
        AuthError: 401 if the key is missing or unknown
    """
    if not x_api_key:
        raise AuthError("Missing API key", status_code=401)

    host_id = validator.get_host_id(x_api_key) if validator else None
    if host_id is None:
        raise AuthError("Invalid API key", status_code=401)

    return host_id


def get_guest_token_from_header(
    x_guest_token: Annotated[str | None, Header()] = None,
) -> str:
    """Extract the guest token from the X-Guest-Token header.

    The token itself is checked against the party by the service.

    Raises:
        AuthError: 401 if the header is missing
    """
    if not x_guest_token:
        raise AuthError("Guest token required", status_code=401)

    return x_guest_token
