"""
Engine error taxonomy.

Every failure the engine reports to a caller is a BracketError subclass carrying
a stable error code and the HTTP status the API layer renders it with.
Persistence-level failures (sqlalchemy OperationalError) are not wrapped here;
the orchestrator retries those.
"""
from typing import Any, Dict, Optional


class BracketError(Exception):
    """Base exception for bracket engine errors."""

    code = "BRACKET_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = {"detail": self.message, "error_code": self.code}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(BracketError):
    """Bad participant count, score values or format (400)."""

    code = "VALIDATION_ERROR"
    status_code = 400


class PreconditionFailedError(BracketError):
    """Operation is well-formed but the match is not ready for it (400)."""

    code = "PRECONDITION_FAILED"
    status_code = 400


class NotFoundError(BracketError):
    """Unknown tournament or match (404)."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[int] = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message += f": {resource_id}"
        super().__init__(message, {"resource": resource, "id": resource_id})


class ConflictError(BracketError):
    """Schedule already exists, match already completed, or slot collision (409)."""

    code = "CONFLICT"
    status_code = 409
