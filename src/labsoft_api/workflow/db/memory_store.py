"""
In-Memory Request Store

Keeps requests in a dict keyed by id. Used when no database connection string
is configured and throughout the test suite.
"""

import itertools
from typing import Dict
from typing import List
from typing import Optional

from loguru import logger

from labsoft_api.workflow.exceptions import RequestNotFound
from labsoft_api.workflow.models import NewSoftwareRequest
from labsoft_api.workflow.models import SoftwareRequest


class InMemoryRequestStore:
    """Process-local request store. Ids start at 1 and are never reused."""

    def __init__(self):
        self._records: Dict[int, SoftwareRequest] = {}
        self._ids = itertools.count(1)
        logger.info("In-memory request store initialized (data is lost on restart)")

    async def create(self, fields: NewSoftwareRequest) -> SoftwareRequest:
        record = SoftwareRequest(id=next(self._ids), **fields.model_dump())
        self._records[record.id] = record
        return record

    async def find_by_id(self, request_id: int) -> Optional[SoftwareRequest]:
        return self._records.get(request_id)

    async def find_all(self) -> List[SoftwareRequest]:
        return list(self._records.values())

    async def find_by_requester(self, identity: str) -> List[SoftwareRequest]:
        return [r for r in self._records.values() if r.requester_identity == identity]

    async def save(self, request: SoftwareRequest) -> SoftwareRequest:
        if request.id not in self._records:
            raise RequestNotFound(request.id)
        self._records[request.id] = request
        return request

    async def delete_by_id(self, request_id: int) -> bool:
        return self._records.pop(request_id, None) is not None

    def __len__(self) -> int:
        return len(self._records)
