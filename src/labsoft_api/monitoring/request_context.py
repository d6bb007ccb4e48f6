"""Per-request logging context: request id, client address and caller identity."""

import time
import uuid

from fastapi import Request
from fastapi import Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.base import RequestResponseEndpoint

from labsoft_api.monitoring.logger import log_request_info

REQUEST_ID_HEADER = "X-Request-ID"
FORWARDED_FOR_HEADER = "X-Forwarded-For"


def resolve_client_ip(request: Request) -> str:
    """First address in X-Forwarded-For (set by the reverse proxy), else the socket peer."""
    forwarded_for = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Bind request metadata to every log line emitted while a request is handled,
    and write one summary line per request.

    The caller identity is not known here up front: authentication runs as a
    route dependency and stores the verified identity on ``request.state``.
    The summary line is written after the route returns, so it can name the caller.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.principal_identity = None

        with logger.contextualize(
            request_id=request_id,
            client_ip=resolve_client_ip(request),
            request_path=f"{request.method} {request.url.path}",
        ):
            log_request_info(request)

            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000

            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "{http_method} {url_path} - {status_code}",
                event_type="http_request",
                http_method=request.method,
                url_path=request.url.path,
                url_query=str(request.query_params) or None,
                user_identity=request.state.principal_identity or "anonymous",
                user_agent=request.headers.get("User-Agent", "unknown"),
                status_code=response.status_code,
                response_time_ms=round(elapsed_ms, 2),
            )
            return response
