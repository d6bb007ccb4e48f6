"""Error handling for the FastAPI application and lab request workflow exceptions."""

import pydantic
from fastapi import Request
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger

from labsoft_api.monitoring.logger import log_response_info
from labsoft_api.workflow.exceptions import AuthenticationFailed
from labsoft_api.workflow.exceptions import AuthorizationDenied
from labsoft_api.workflow.exceptions import InvalidStatus
from labsoft_api.workflow.exceptions import InvalidStatusTransition
from labsoft_api.workflow.exceptions import LabRequestError
from labsoft_api.workflow.exceptions import RequestNotFound
from labsoft_api.workflow.exceptions import StorageFailure

# Explicit exports
__all__ = [
    "handle_broad_exceptions",
    "handle_lab_request_errors",
    "handle_pydantic_validation_errors",
]


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_type = type(err).__name__
        logger.opt(exception=err).error(
            "Unhandled exception: {error_type}",
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=error_type,
        )

        # Message and traceback stay in the log; the client only learns the type
        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "error_type": error_type},
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    """
    Turn a pydantic.ValidationError raised outside request parsing into a 422.

    Request bodies are validated by FastAPI itself; this covers models built inside
    handlers and services, e.g. a stored row that no longer fits SoftwareRequest.
    """
    errors = exc.errors(include_url=False)
    error_response = {"detail": [{"loc": list(error["loc"]), "msg": error["msg"]} for error in errors]}

    logger.warning(
        "Validation error: {error_count} validation errors",
        error_count=len(errors),
        http_status=422,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="ValidationError",
        validation_errors=errors,
    )

    response = JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=jsonable_encoder(error_response),
    )
    log_response_info(response)

    return response


async def handle_lab_request_errors(request: Request, exc: LabRequestError) -> JSONResponse:
    """
    Convert lab request workflow exceptions to HTTP responses.

    Maps exceptions to HTTP status codes:
    - AuthenticationFailed -> 401 Unauthorized
    - AuthorizationDenied -> 403 Forbidden
    - RequestNotFound -> 404 Not Found
    - InvalidStatusTransition -> 409 Conflict
    - InvalidStatus -> 422 Unprocessable Entity
    - StorageFailure -> 503 Service Unavailable (details are not exposed)
    - Other LabRequestError -> 500 Internal Server Error

    Parameters
    ----------
    request : Request
        FastAPI request object
    exc : LabRequestError
        Workflow exception

    Returns
    -------
    JSONResponse
        HTTP response with appropriate status code and error details
    """
    error_type = type(exc).__name__
    headers = None

    if isinstance(exc, AuthenticationFailed):
        http_status = status.HTTP_401_UNAUTHORIZED
        detail = str(exc)
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, AuthorizationDenied):
        http_status = status.HTTP_403_FORBIDDEN
        detail = "Access denied for the requested operation."
    elif isinstance(exc, RequestNotFound):
        http_status = status.HTTP_404_NOT_FOUND
        detail = str(exc)
    elif isinstance(exc, InvalidStatusTransition):
        http_status = status.HTTP_409_CONFLICT
        detail = str(exc)
    elif isinstance(exc, InvalidStatus):
        http_status = status.HTTP_422_UNPROCESSABLE_CONTENT
        detail = str(exc)
    elif isinstance(exc, StorageFailure):
        http_status = status.HTTP_503_SERVICE_UNAVAILABLE
        detail = "Request storage is unavailable. Please try again later."
    else:
        http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
        detail = "Internal server error"

    error_response = {"detail": detail, "error_type": error_type}

    log = logger.opt(exception=exc if isinstance(exc, StorageFailure) else None)
    log = log.error if http_status >= 500 else log.warning
    log(
        "Request failed: {error_type}",
        http_status=http_status,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=error_type,
        error_message=str(exc),
    )

    response = JSONResponse(
        status_code=http_status,
        content=error_response,
        headers=headers,
    )
    log_response_info(response)
    return response
