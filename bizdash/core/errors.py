"""Exception hierarchy for Bizdash.

Services raise these; the handlers registered in ``bizdash.main`` turn them
into ``{"detail": ...}`` JSON responses with the matching status code.
"""

from fastapi import status


class DashboardError(Exception):
    """Base exception for all Bizdash errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(DashboardError):
    """No session, or the session token is invalid / expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class Unauthorized(DashboardError):
    """Authenticated, but a role, ownership or secret check failed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed"


class NotAMember(Unauthorized):
    default_detail = "Not a member of this organization"


class NotFound(DashboardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ValidationFailed(DashboardError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class InvalidURL(ValidationFailed):
    default_detail = "Invalid URL"


class Conflict(DashboardError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Already exists"


class UpstreamError(DashboardError):
    """An external call (LLM, logo service, page fetch) failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed"


class EnrichmentError(UpstreamError):
    """A resource-enrichment stage failed. ``stage`` names which one."""

    def __init__(self, stage: str, detail: str | None = None) -> None:
        self.stage = stage
        super().__init__(detail or f"Resource enrichment failed at stage '{stage}'")
