"""
Request Model

Stored representation of a software installation request.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict


class SoftwareRequest(BaseModel):
    """Software installation request record."""

    id: int
    # Descriptive fields are stored exactly as submitted (no validation)
    software_name: Optional[str] = None
    software_version: Optional[str] = None
    lab_id: Optional[str] = None
    request_date: Optional[date] = None
    status: str  # PENDING, APPROVED, REJECTED, INSTALLED (any string in legacy mode)
    requester_identity: str

    model_config = ConfigDict(from_attributes=True, frozen=True)


class NewSoftwareRequest(BaseModel):
    """Fields a store needs to insert a request (the id is assigned by the store)."""

    software_name: Optional[str] = None
    software_version: Optional[str] = None
    lab_id: Optional[str] = None
    request_date: Optional[date] = None
    status: str
    requester_identity: str

    model_config = ConfigDict(frozen=True)
