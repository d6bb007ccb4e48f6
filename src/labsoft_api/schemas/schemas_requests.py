"""
Software Request API Schemas

Request/response bodies for the /requests endpoints. Field names are camelCase
on the wire (softwareName, labId, requestDate, ...).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from labsoft_api.workflow.enums import LATEST_VERSION
from labsoft_api.workflow.models import SoftwareRequest
from labsoft_api.workflow.service import RequestInput

CAMEL_CASE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# create (Crud)
class CreateSoftwareRequestBody(BaseModel):
    """
    Body for submitting a new request.

    id, status and requesterIdentity are not part of the body; if a client sends
    them anyway they are dropped.
    """

    software_name: Optional[str] = None
    software_version: Optional[str] = None
    lab_id: Optional[str] = None
    request_date: Optional[date] = None

    model_config = ConfigDict(
        **CAMEL_CASE_CONFIG,
        json_schema_extra={
            "example": {
                "softwareName": "Visual Studio Code",
                "softwareVersion": LATEST_VERSION,
                "labId": "LAB-01",
                "requestDate": "2024-01-10",
            }
        },
    )

    def to_input(self) -> RequestInput:
        return RequestInput(**self.model_dump())


# update (crUd)
class UpdateStatusBody(BaseModel):
    """Body for changing a request's status. Any other field is ignored."""

    status: str

    model_config = ConfigDict(
        **CAMEL_CASE_CONFIG,
        json_schema_extra={"example": {"status": "APPROVED"}},
    )


# read (cRud)
class SoftwareRequestResponse(BaseModel):
    """External representation of a stored request."""

    id: int
    software_name: Optional[str] = None
    software_version: Optional[str] = None
    lab_id: Optional[str] = None
    request_date: Optional[date] = None
    status: str
    requester_identity: str

    model_config = CAMEL_CASE_CONFIG

    @classmethod
    def from_record(cls, record: SoftwareRequest) -> "SoftwareRequestResponse":
        return cls(**record.model_dump())
