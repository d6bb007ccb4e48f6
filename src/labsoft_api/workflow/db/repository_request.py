"""
Request Repository

PostgreSQL-backed request store (asyncpg). Rows live in labsoft.software_requests;
ids come from a BIGSERIAL sequence, so they are never reused.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from typing import List
from typing import Optional

import asyncpg
from loguru import logger

from labsoft_api.workflow.exceptions import RequestNotFound
from labsoft_api.workflow.exceptions import StorageFailure
from labsoft_api.workflow.models import NewSoftwareRequest
from labsoft_api.workflow.models import SoftwareRequest

# Errors that mean "the store failed", as opposed to programming errors
STORAGE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)

# Range of the BIGSERIAL id column; ids outside it cannot exist in the table
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1

COLUMNS = "id, software_name, software_version, lab_id, request_date, status, requester_identity"


class RequestRepository:
    """Request repository with domain-specific queries."""

    def __init__(self, pool: asyncpg.Pool, table_name: str = "software_requests"):
        """
        Initialize request repository.

        Args:
            pool: asyncpg connection pool
            table_name: Database table name (without schema prefix)
        """
        self.pool = pool
        self.table = f"labsoft.{table_name}"

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection and translate driver errors into StorageFailure."""
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except STORAGE_ERRORS as e:
            logger.error(
                "Request store operation failed: {operation}",
                operation=operation,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise StorageFailure(f"{operation} failed: {type(e).__name__}") from e

    async def create(self, fields: NewSoftwareRequest) -> SoftwareRequest:
        async with self._connection("create") as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO {self.table}
                    (software_name, software_version, lab_id, request_date, status, requester_identity)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {COLUMNS}
                """,
                fields.software_name,
                fields.software_version,
                fields.lab_id,
                fields.request_date,
                fields.status,
                fields.requester_identity,
            )
        return SoftwareRequest(**dict(row))

    async def find_by_id(self, request_id: int) -> Optional[SoftwareRequest]:
        if not _storable_id(request_id):
            return None
        async with self._connection("find_by_id") as conn:
            row = await conn.fetchrow(
                f"SELECT {COLUMNS} FROM {self.table} WHERE id = $1",
                request_id,
            )
        return SoftwareRequest(**dict(row)) if row else None

    async def find_all(self) -> List[SoftwareRequest]:
        async with self._connection("find_all") as conn:
            rows = await conn.fetch(f"SELECT {COLUMNS} FROM {self.table}")
        return [SoftwareRequest(**dict(row)) for row in rows]

    async def find_by_requester(self, identity: str) -> List[SoftwareRequest]:
        async with self._connection("find_by_requester") as conn:
            rows = await conn.fetch(
                f"SELECT {COLUMNS} FROM {self.table} WHERE requester_identity = $1",
                identity,
            )
        return [SoftwareRequest(**dict(row)) for row in rows]

    async def save(self, request: SoftwareRequest) -> SoftwareRequest:
        async with self._connection("save") as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE {self.table}
                SET software_name = $2,
                    software_version = $3,
                    lab_id = $4,
                    request_date = $5,
                    status = $6,
                    requester_identity = $7
                WHERE id = $1
                RETURNING {COLUMNS}
                """,
                request.id,
                request.software_name,
                request.software_version,
                request.lab_id,
                request.request_date,
                request.status,
                request.requester_identity,
            )
        if row is None:
            # Deleted concurrently between lookup and save
            raise RequestNotFound(request.id)
        return SoftwareRequest(**dict(row))

    async def delete_by_id(self, request_id: int) -> bool:
        if not _storable_id(request_id):
            return False
        async with self._connection("delete_by_id") as conn:
            result = await conn.execute(f"DELETE FROM {self.table} WHERE id = $1", request_id)
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return result.split()[-1] != "0"


def _storable_id(request_id: int) -> bool:
    """asyncpg refuses to encode ints outside BIGINT; such ids are simply absent."""
    return MIN_ID <= request_id <= MAX_ID
