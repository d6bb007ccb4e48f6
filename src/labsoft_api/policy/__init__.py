"""Role-based access policy for request operations."""

from labsoft_api.policy.access_policy import OPERATION_ROLES
from labsoft_api.policy.access_policy import authorize
from labsoft_api.policy.access_policy import is_permitted
from labsoft_api.policy.access_policy import owns

__all__ = [
    "OPERATION_ROLES",
    "authorize",
    "is_permitted",
    "owns",
]
