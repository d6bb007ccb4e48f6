from typing import List

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import Response
from fastapi import status
from loguru import logger

from labsoft_api.auth.principal import Principal
from labsoft_api.dependencies import get_lifecycle_service
from labsoft_api.dependencies import require_operation
from labsoft_api.schemas.schemas_requests import CreateSoftwareRequestBody
from labsoft_api.schemas.schemas_requests import SoftwareRequestResponse
from labsoft_api.schemas.schemas_requests import UpdateStatusBody
from labsoft_api.workflow.enums import Operation
from labsoft_api.workflow.service import RequestLifecycleService

ROUTER_REQUESTS = APIRouter(tags=["Requests"])

_ERROR_RESPONSES = {
    status.HTTP_401_UNAUTHORIZED: {
        "description": "Missing or invalid bearer token",
        "content": {"application/json": {"example": {"detail": "Missing bearer token"}}},
    },
    status.HTTP_403_FORBIDDEN: {
        "description": "Caller lacks the role required for this operation",
        "content": {"application/json": {"example": {"detail": "Access denied for the requested operation."}}},
    },
}

_NOT_FOUND_RESPONSE = {
    status.HTTP_404_NOT_FOUND: {
        "description": "Request not found",
        "content": {"application/json": {"example": {"detail": "Request not found: 42"}}},
    },
}


@ROUTER_REQUESTS.get(
    "/requests",
    responses=_ERROR_RESPONSES,
)
async def list_requests(
    request: Request,
    principal: Principal = Depends(require_operation(Operation.LIST_ALL)),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
) -> List[SoftwareRequestResponse]:
    """List every software request (administrators only)."""
    logger.info(
        "Listing all software requests",
        method=request.method,
        path=request.url.path,
        identity=principal.identity,
    )
    records = await service.list_all()

    logger.info("Software requests retrieved", count=len(records))
    return [SoftwareRequestResponse.from_record(record) for record in records]


##########################


@ROUTER_REQUESTS.get(
    "/requests/mine",
    responses=_ERROR_RESPONSES,
)
async def list_my_requests(
    request: Request,
    principal: Principal = Depends(require_operation(Operation.LIST_OWN)),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
) -> List[SoftwareRequestResponse]:
    """List the requests submitted by the calling instructor."""
    logger.info(
        "Listing own software requests",
        method=request.method,
        path=request.url.path,
        identity=principal.identity,
    )
    records = await service.list_own(principal.identity)

    logger.info("Own software requests retrieved", count=len(records), identity=principal.identity)
    return [SoftwareRequestResponse.from_record(record) for record in records]


##########################


@ROUTER_REQUESTS.get(
    "/requests/{request_id}",
    responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
)
async def get_request(
    request: Request,
    request_id: int,
    principal: Principal = Depends(require_operation(Operation.GET)),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
) -> SoftwareRequestResponse:
    """Get one request. Instructors only see requests they submitted."""
    logger.info(
        "Getting software request",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        identity=principal.identity,
    )
    record = await service.get(request_id, principal)
    return SoftwareRequestResponse.from_record(record)


##########################


@ROUTER_REQUESTS.post(
    "/requests",
    status_code=status.HTTP_201_CREATED,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_201_CREATED: {"description": "Request submitted with status PENDING"},
    },
)
async def create_request(
    request: Request,
    body: CreateSoftwareRequestBody,
    principal: Principal = Depends(require_operation(Operation.CREATE)),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
) -> SoftwareRequestResponse:
    """Submit a new software installation request on behalf of the caller."""
    logger.info(
        "Creating software request",
        method=request.method,
        path=request.url.path,
        identity=principal.identity,
        software_name=body.software_name,
        lab_id=body.lab_id,
    )
    record = await service.create(body.to_input(), principal.identity)
    return SoftwareRequestResponse.from_record(record)


##########################


@ROUTER_REQUESTS.put(
    "/requests/{request_id}",
    responses={
        **_ERROR_RESPONSES,
        **_NOT_FOUND_RESPONSE,
        status.HTTP_409_CONFLICT: {
            "description": "Status change not allowed by the workflow",
            "content": {
                "application/json": {"example": {"detail": "Request 42 cannot move from INSTALLED to PENDING"}}
            },
        },
    },
)
async def update_request_status(
    request: Request,
    request_id: int,
    body: UpdateStatusBody,
    principal: Principal = Depends(require_operation(Operation.UPDATE_STATUS)),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
) -> SoftwareRequestResponse:
    """Change the status of a request (administrators only)."""
    logger.info(
        "Updating software request status",
        request_id=request_id,
        new_status=body.status,
        method=request.method,
        path=request.url.path,
        identity=principal.identity,
    )
    record = await service.update_status(request_id, body.status)
    return SoftwareRequestResponse.from_record(record)


##########################


@ROUTER_REQUESTS.delete(
    "/requests/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        **_ERROR_RESPONSES,
        status.HTTP_204_NO_CONTENT: {"description": "Request deleted (or did not exist)"},
    },
)
async def delete_request(
    request: Request,
    request_id: int,
    principal: Principal = Depends(require_operation(Operation.DELETE)),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
) -> Response:
    """Delete a request. Deleting an id that does not exist still succeeds."""
    logger.info(
        "Deleting software request",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        identity=principal.identity,
    )
    await service.delete(request_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
