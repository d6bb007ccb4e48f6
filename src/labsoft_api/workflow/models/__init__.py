"""
Workflow Models Module

Pydantic models for stored software installation requests.
"""

from labsoft_api.workflow.models.request import NewSoftwareRequest
from labsoft_api.workflow.models.request import SoftwareRequest

__all__ = [
    "NewSoftwareRequest",
    "SoftwareRequest",
]
