"""
Request Lifecycle Service

The only component that reads or mutates software installation requests.
Role checks happen earlier (see labsoft_api.policy); this service applies the
fine-grained rules: forced initial status and requester, own-request
filtering, status workflow and, when enabled, delete ownership.

The service is stateless. All state lives in the injected store and no
in-process locking is done; concurrent updates to the same request are
last-writer-wins at the store.
"""

from datetime import date
from typing import List
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from labsoft_api.auth.principal import Principal
from labsoft_api.policy.access_policy import owns
from labsoft_api.workflow.db.store import RequestStore
from labsoft_api.workflow.enums import ALLOWED_TRANSITIONS
from labsoft_api.workflow.enums import INITIAL_STATUS
from labsoft_api.workflow.enums import Operation
from labsoft_api.workflow.enums import RequestStatus
from labsoft_api.workflow.exceptions import AuthorizationDenied
from labsoft_api.workflow.exceptions import InvalidStatus
from labsoft_api.workflow.exceptions import InvalidStatusTransition
from labsoft_api.workflow.exceptions import RequestNotFound
from labsoft_api.workflow.models import NewSoftwareRequest
from labsoft_api.workflow.models import SoftwareRequest


class RequestInput(BaseModel):
    """Caller-supplied fields for a new request. Copied verbatim, never validated."""

    software_name: Optional[str] = None
    software_version: Optional[str] = None
    lab_id: Optional[str] = None
    request_date: Optional[date] = None


class RequestLifecycleService:
    """
    Create, list, transition and delete software installation requests.

    Parameters
    ----------
    store : RequestStore
        Durable record store
    strict_status_transitions : bool
        Reject unknown statuses and moves outside the workflow diagram.
        When False any string is persisted as the new status.
    enforce_delete_ownership : bool
        Only administrators may delete requests they do not own.
        When False any caller that passed the role check may delete any id.
    """

    def __init__(
        self,
        store: RequestStore,
        strict_status_transitions: bool = True,
        enforce_delete_ownership: bool = False,
    ):
        self.store = store
        self.strict_status_transitions = strict_status_transitions
        self.enforce_delete_ownership = enforce_delete_ownership

    async def list_all(self) -> List[SoftwareRequest]:
        """Return every request, unfiltered, in store order."""
        return await self.store.find_all()

    async def list_own(self, identity: str) -> List[SoftwareRequest]:
        """Return the requests created by ``identity``."""
        return await self.store.find_by_requester(identity)

    async def get(self, request_id: int, principal: Principal) -> SoftwareRequest:
        """
        Return one request.

        Administrators see every request; anyone else only sees their own.
        A request that exists but is not visible is reported as not found.
        """
        request = await self.store.find_by_id(request_id)
        if request is None or not (principal.is_admin or owns(principal, request)):
            raise RequestNotFound(request_id)
        return request

    async def create(self, data: RequestInput, identity: str) -> SoftwareRequest:
        """
        Store a new request on behalf of ``identity``.

        Status always starts at PENDING and the requester is always the caller,
        whatever the input contained. No duplicate detection.
        """
        created = await self.store.create(
            NewSoftwareRequest(
                software_name=data.software_name,
                software_version=data.software_version,
                lab_id=data.lab_id,
                request_date=data.request_date,
                status=INITIAL_STATUS.value,
                requester_identity=identity,
            )
        )
        logger.info(
            "Software request created",
            request_id=created.id,
            requester=identity,
            software_name=created.software_name,
            lab_id=created.lab_id,
        )
        return created

    async def update_status(self, request_id: int, new_status: str) -> SoftwareRequest:
        """
        Overwrite the status of an existing request; every other field is kept.

        Raises
        ------
        RequestNotFound
            If no request has ``request_id`` (the store is left unchanged)
        InvalidStatus
            Strict mode only, if ``new_status`` is not a workflow state
        InvalidStatusTransition
            Strict mode only, if the workflow does not allow the move
        """
        current = await self.store.find_by_id(request_id)
        if current is None:
            logger.warning("Status update for unknown request", request_id=request_id, new_status=new_status)
            raise RequestNotFound(request_id)

        if self.strict_status_transitions:
            self._check_transition(current, new_status)

        updated = await self.store.save(current.model_copy(update={"status": new_status}))
        logger.info(
            "Software request status changed",
            request_id=request_id,
            old_status=current.status,
            new_status=updated.status,
        )
        return updated

    async def delete(self, request_id: int, principal: Principal) -> None:
        """
        Delete a request. Deleting an absent id succeeds without effect.

        Raises
        ------
        AuthorizationDenied
            Only when delete ownership is enforced and a non-administrator
            targets a request created by someone else
        """
        if not principal.is_admin:
            await self._check_delete_ownership(request_id, principal)

        deleted = await self.store.delete_by_id(request_id)
        if deleted:
            logger.info("Software request deleted", request_id=request_id, deleted_by=principal.identity)
        else:
            logger.warning("Delete of unknown request ignored", request_id=request_id, deleted_by=principal.identity)

    async def _check_delete_ownership(self, request_id: int, principal: Principal) -> None:
        request = await self.store.find_by_id(request_id)
        if request is None or owns(principal, request):
            return

        if self.enforce_delete_ownership:
            logger.warning(
                "Delete of another user's request denied",
                request_id=request_id,
                identity=principal.identity,
                owner=request.requester_identity,
            )
            raise AuthorizationDenied(
                principal.identity,
                Operation.DELETE.value,
                reason="request belongs to another user",
            )

        logger.warning(
            "Request deleted by non-owner (delete ownership not enforced)",
            request_id=request_id,
            identity=principal.identity,
            owner=request.requester_identity,
        )

    def _check_transition(self, current: SoftwareRequest, new_status: str) -> None:
        try:
            target = RequestStatus(new_status)
        except ValueError:
            raise InvalidStatus(new_status) from None

        if current.status == target.value:
            return

        try:
            allowed = ALLOWED_TRANSITIONS[RequestStatus(current.status)]
        except ValueError:
            # Unknown status written while strict mode was off; it has no outgoing moves
            allowed = frozenset()

        if target not in allowed:
            raise InvalidStatusTransition(current.id, current.status, target.value)
