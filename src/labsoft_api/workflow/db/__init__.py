"""Record stores for software installation requests."""

from labsoft_api.workflow.db.memory_store import InMemoryRequestStore
from labsoft_api.workflow.db.store import RequestStore

__all__ = [
    "InMemoryRequestStore",
    "RequestStore",
]
