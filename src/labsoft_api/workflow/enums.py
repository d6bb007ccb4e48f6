"""
Workflow Enums

All enum types used throughout the request workflow.
Values must match exactly what is stored in the status column.
"""

from enum import Enum

# ════════════════════════════════════════════════════════════════════════════
# Request Enums
# ════════════════════════════════════════════════════════════════════════════


class RequestStatus(str, Enum):
    """Software installation request workflow status."""

    PENDING = "PENDING"  # Submitted, waiting for an administrator
    APPROVED = "APPROVED"  # Accepted, waiting for installation
    REJECTED = "REJECTED"  # Declined by an administrator
    INSTALLED = "INSTALLED"  # Software is installed in the lab


INITIAL_STATUS = RequestStatus.PENDING

# Legal moves when strict status transitions are enabled
ALLOWED_TRANSITIONS = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset({RequestStatus.INSTALLED}),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.INSTALLED: frozenset(),
}

LATEST_VERSION = "latest"  # softwareVersion sentinel for "most recent release"


# ════════════════════════════════════════════════════════════════════════════
# Access Control Enums
# ════════════════════════════════════════════════════════════════════════════


class Role(str, Enum):
    """Coarse permission grants carried by a principal."""

    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"


class Operation(str, Enum):
    """Operations exposed by the request lifecycle service."""

    LIST_ALL = "list_all"
    LIST_OWN = "list_own"
    GET = "get"
    CREATE = "create"
    UPDATE_STATUS = "update_status"
    DELETE = "delete"
