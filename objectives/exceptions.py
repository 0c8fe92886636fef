"""
Typed outcomes of the objective lifecycle.

Every error the engine raises belongs to this closed family. Each carries an
``ErrorKind`` tag, and the HTTP status used by the REST layer is a pure
function of that tag, never of the message text.
"""
import enum
import logging
from typing import Any, Dict, Iterable, Optional

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    LEVEL_MISMATCH = "level_mismatch"
    WORKFLOW_VIOLATION = "workflow_violation"
    LIMIT_EXCEEDED = "limit_exceeded"
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"


class OKRError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        return {}


class ValidationError(OKRError):
    """Malformed input: missing required fields, bad ranges, unknown choices."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def details(self) -> Dict[str, Any]:
        return {"field": self.field} if self.field else {}


class LevelMismatchError(OKRError):
    kind = ErrorKind.LEVEL_MISMATCH

    def __init__(self, child_level: str, parent_level: str, message: Optional[str] = None):
        super().__init__(
            message
            or f"A {child_level} objective cannot have a {parent_level} objective as parent. "
            "Parent must be a higher level."
        )
        self.child_level = child_level
        self.parent_level = parent_level

    def details(self) -> Dict[str, Any]:
        return {"child_level": self.child_level, "parent_level": self.parent_level}


class WorkflowViolation(OKRError):
    kind = ErrorKind.WORKFLOW_VIOLATION

    def __init__(self, action: str, current_state: str, expected_states: Iterable[str] = ()):
        self.action = action
        self.current_state = current_state
        self.expected_states = sorted(expected_states)
        message = f"Cannot {action}: current status is {current_state}"
        if self.expected_states:
            message += f" (expected {' or '.join(self.expected_states)})"
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "current_state": self.current_state,
            "expected_states": self.expected_states,
        }


class LimitExceeded(OKRError):
    kind = ErrorKind.LIMIT_EXCEEDED

    def __init__(self, message: str, usage: Optional[Dict[str, Any]] = None, limits: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.usage = usage
        self.limits = limits

    def details(self) -> Dict[str, Any]:
        return {"usage": self.usage, "limits": self.limits}


class NotFound(OKRError):
    kind = ErrorKind.NOT_FOUND


class NotAuthorized(OKRError):
    kind = ErrorKind.NOT_AUTHORIZED


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.LEVEL_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.WORKFLOW_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorKind.LIMIT_EXCEEDED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
}


def http_status_for(error: OKRError) -> int:
    return HTTP_STATUS_BY_KIND[error.kind]


def api_exception_handler(exc, context):
    """DRF exception handler rendering OKRError in the API envelope."""
    if isinstance(exc, OKRError):
        code = http_status_for(exc)
        body = {"status": code, "error": exc.kind.value, "message": exc.message}
        body.update(exc.details())
        view = context.get("view")
        logger.warning(f"{type(exc).__name__} in {type(view).__name__ if view else 'view'}: {exc.message}")
        return Response(body, status=code)

    response = exception_handler(exc, context)
    if response is None:
        return None
    data = response.data
    if isinstance(data, dict) and set(data) == {"detail"}:
        response.data = {"status": response.status_code, "message": str(data["detail"])}
    else:
        response.data = {"status": response.status_code, "message": "Invalid request data", "errors": data}
    return response
