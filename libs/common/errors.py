"""Application error taxonomy.

Services raise these; ``libs.common.error_handler`` renders them into the
``{"success": false, ...}`` envelope with the matching status code.
"""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    """Malformed or missing request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class GatewayInitiationFailed(AppError):
    """The payment gateway explicitly refused to open a session."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "GATEWAY_INITIATION_FAILED"

    def __init__(self, reason: str, response_data: Optional[dict] = None):
        self.reason = reason
        self.response_data = response_data or {}
        super().__init__(reason)


class GatewayUnavailable(AppError):
    """Network, timeout or protocol failure talking to the gateway."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "GATEWAY_UNAVAILABLE"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ValidationMismatch(AppError):
    """Gateway validation disagrees with what we expected for the transaction."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_MISMATCH"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
