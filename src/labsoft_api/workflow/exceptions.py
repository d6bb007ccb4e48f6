"""
Workflow Exceptions

Failure conditions raised by the access policy, the lifecycle service and the
request stores. Every failure of a call is exactly one of these, or an
unexpected error that the broad exception middleware turns into a 500.
"""

from typing import Optional


class LabRequestError(Exception):
    """Base class for all lab software request errors."""


class AuthenticationFailed(LabRequestError):
    """Bearer token missing, malformed, expired or signed with an unknown key."""


class AuthorizationDenied(LabRequestError):
    """The principal's roles (or ownership, when enforced) do not allow the operation."""

    def __init__(self, identity: str, operation: str, reason: Optional[str] = None):
        self.identity = identity
        self.operation = operation
        self.reason = reason or "missing required role"
        super().__init__(f"{identity!r} is not allowed to {operation}: {self.reason}")


class RequestNotFound(LabRequestError):
    """No request with the given id exists (or it is not visible to the caller)."""

    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(f"Request not found: {request_id}")


class InvalidStatus(LabRequestError):
    """Status value is not one of the workflow states."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Unknown request status: {status!r}")


class InvalidStatusTransition(LabRequestError):
    """Status change not allowed by the workflow."""

    def __init__(self, request_id: int, current: str, requested: str):
        self.request_id = request_id
        self.current = current
        self.requested = requested
        super().__init__(f"Request {request_id} cannot move from {current} to {requested}")


class StorageFailure(LabRequestError):
    """The underlying record store failed. The original error is chained as __cause__."""
