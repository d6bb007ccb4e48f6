"""
Access Policy

Maps each lifecycle operation to the roles allowed to invoke it, and provides
the ownership predicate used for row-level filtering.

The role check is coarse: it never looks at which record is targeted and it
runs before the lifecycle service touches the store.
"""

from typing import FrozenSet
from typing import Iterable
from typing import Mapping
from typing import Union

from loguru import logger

from labsoft_api.auth.principal import Principal
from labsoft_api.workflow.enums import Operation
from labsoft_api.workflow.enums import Role
from labsoft_api.workflow.exceptions import AuthorizationDenied
from labsoft_api.workflow.models import SoftwareRequest

# A principal needs at least one of the listed roles
OPERATION_ROLES: Mapping[Operation, FrozenSet[Role]] = {
    Operation.LIST_ALL: frozenset({Role.ADMIN}),
    Operation.LIST_OWN: frozenset({Role.INSTRUCTOR}),
    Operation.GET: frozenset({Role.ADMIN, Role.INSTRUCTOR}),
    Operation.CREATE: frozenset({Role.INSTRUCTOR}),
    Operation.UPDATE_STATUS: frozenset({Role.ADMIN}),
    Operation.DELETE: frozenset({Role.ADMIN, Role.INSTRUCTOR}),
}


def is_permitted(roles: Iterable[Role], operation: Operation) -> bool:
    """Return True if any of ``roles`` is allowed to invoke ``operation``."""
    required = OPERATION_ROLES.get(operation, frozenset())
    return not required.isdisjoint(roles)


def authorize(principal: Principal, operation: Operation) -> None:
    """
    Raise AuthorizationDenied unless the principal may invoke the operation.

    Args:
        principal: Verified caller
        operation: Operation about to be invoked

    Raises:
        AuthorizationDenied: if none of the principal's roles is in the operation's role set
    """
    if is_permitted(principal.roles, operation):
        return

    required = sorted(role.value for role in OPERATION_ROLES.get(operation, frozenset()))
    logger.warning(
        "Authorization denied",
        identity=principal.identity,
        operation=operation.value,
        granted_roles=sorted(role.value for role in principal.roles),
        required_roles=required,
    )
    raise AuthorizationDenied(
        principal.identity,
        operation.value,
        reason=f"requires one of {', '.join(required) or 'nothing (operation disabled)'}",
    )


def owns(principal: Union[Principal, str], request: SoftwareRequest) -> bool:
    """Ownership predicate: exact, case-sensitive match on the requester identity."""
    identity = principal.identity if isinstance(principal, Principal) else principal
    return request.requester_identity == identity
