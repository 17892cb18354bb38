"""Domain exceptions for party planning operations.

Every exception carries a user-facing message, a stable error code and the
HTTP status the API layer maps it to. Services raise them; the FastAPI
exception handler in ``handlers.api_handler`` turns them into responses.
"""


class PartyPlannerError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400
    error_code: str = "PARTY_PLANNER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: User-facing description of the failure
            error_code: Optional override of the class error code
            status_code: Optional override of the class HTTP status
        """
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(PartyPlannerError):
    """Missing or invalid input, or a dish outside the allowed range."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class AuthError(PartyPlannerError):
    """Missing/invalid credentials or a non-host calling a host-only action."""

    status_code = 403
    error_code = "AUTH_ERROR"


class NotFoundError(PartyPlannerError):
    """Unknown party, dish, pool entry or share code."""

    status_code = 404
    error_code = "NOT_FOUND"


class StateError(PartyPlannerError):
    """Mutation attempted while the party is locked."""

    status_code = 403
    error_code = "PARTY_LOCKED"


class InternalError(PartyPlannerError):
    """Storage or upstream failure. The message is never shown to callers."""

    status_code = 500
    error_code = "INTERNAL_ERROR"


class DishLibraryError(InternalError):
    """Dish library unreachable, failing or returning unusable data."""

    error_code = "DISH_LIBRARY_UNAVAILABLE"
