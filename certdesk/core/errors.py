"""
core/errors.py
Error taxonomy shared by the lifecycle engine, the stores and the API layer.

Every error carries the HTTP status the API layer answers with and a
human-readable ``detail`` the client can show as-is.
"""
from typing import Optional


class CertDeskError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(CertDeskError):
    """Bad input; nothing was persisted."""

    status_code = 422

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            "Please fill in all required fields: " + ", ".join(self.missing_fields)
        )


class NotFoundError(CertDeskError):
    """A referenced request or user does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} '{entity_id}' not found.")


class PermissionDeniedError(CertDeskError):
    """The actor is not allowed to act on this entity."""

    status_code = 403


# Messages shown when a status precondition fails, keyed by operation.
_INVALID_STATE_MESSAGES = {
    "approve_and_sign": "This request was already reviewed by someone else.",
    "reject": "This request was already reviewed by someone else.",
    "delete_own": "Only pending requests can be deleted.",
}


class InvalidStateError(CertDeskError):
    """The request's current status does not allow the operation."""

    status_code = 409

    def __init__(self, operation: str, request_id: str, current_status: Optional[str] = None):
        self.operation = operation
        self.request_id = request_id
        self.current_status = current_status
        super().__init__(
            _INVALID_STATE_MESSAGES.get(operation, "The request is no longer pending.")
        )


class SigningServiceError(CertDeskError):
    """The signing service failed, timed out or returned a non-success answer."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(f"Signing failed: {message}")


class InvalidTemplateError(CertDeskError):
    """A template name or upload that cannot be stored or signed with."""

    status_code = 422
