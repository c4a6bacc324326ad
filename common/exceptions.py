"""Error kinds raised by the lifecycle operations.

Every kind is a DRF `APIException`, so a view that lets one propagate gets the
matching HTTP status and a `{"detail": ...}` body from DRF's default exception
handler. Service code raises these instead of returning error responses.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class DomainError(APIException):
    """Base class for all marketplace errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."
    default_code = "error"


class NotFoundError(DomainError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class ForbiddenError(DomainError):
    """Actor is not allowed to perform the action on the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "forbidden"


class ConflictError(DomainError):
    """State-machine precondition violated (wrong status, duplicate action)."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The resource is not in a state that allows this action."
    default_code = "conflict"


class ValidationError(DomainError):
    """Malformed input, e.g. an unknown status value."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "invalid"


class GatewayError(DomainError):
    """The payment provider failed, timed out or answered unexpectedly."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment gateway unavailable."
    default_code = "gateway_error"
