"""
Request Store Protocol

Persistence contract consumed by the lifecycle service. Implementations:
- InMemoryRequestStore (process memory, local runs and tests)
- RequestRepository (PostgreSQL via asyncpg)

Any failure of the backing store surfaces as StorageFailure.
"""

from typing import List
from typing import Optional
from typing import Protocol

from labsoft_api.workflow.models import NewSoftwareRequest
from labsoft_api.workflow.models import SoftwareRequest


class RequestStore(Protocol):
    """Durable record store for software installation requests."""

    async def create(self, fields: NewSoftwareRequest) -> SoftwareRequest:
        """Insert a request and return it with its newly assigned id."""
        ...

    async def find_by_id(self, request_id: int) -> Optional[SoftwareRequest]:
        """Return the request or None if absent."""
        ...

    async def find_all(self) -> List[SoftwareRequest]:
        """Return every request in store order."""
        ...

    async def find_by_requester(self, identity: str) -> List[SoftwareRequest]:
        """Return requests whose requester identity equals ``identity`` exactly."""
        ...

    async def save(self, request: SoftwareRequest) -> SoftwareRequest:
        """Overwrite an existing request and return the stored version."""
        ...

    async def delete_by_id(self, request_id: int) -> bool:
        """Delete a request. Returns False if the id was absent."""
        ...
