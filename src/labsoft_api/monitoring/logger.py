import json
import sys
import traceback

import loguru
from fastapi import Request
from fastapi import Response
from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<bold><white>{message}</white></bold> | <dim>{extra}</dim> {stacktrace}"
)

# Header values never written to the log
REDACTED_HEADERS = {"authorization", "cookie"}


# Runs at import time (src/labsoft_api/__init__.py) and again in create_app() with the configured level
def configure_logger(log_level: str = "INFO"):
    """
    Replace every loguru sink with a single stdout sink.

    Args:
        log_level: Minimum level written to stdout (DEBUG, INFO, WARNING, ...)
    """
    logger.remove()

    logger.add(
        sink=sys.stdout,
        level=log_level.upper(),
        format=LOG_FORMAT,
        filter=process_log_record,
        diagnose=False,  # never render local variables (tokens, DSNs) into tracebacks
    )


def process_log_record(record: "loguru.Record") -> bool:
    r"""
    Prepare a record for the one-line stdout format.

    - "extra" (contextualize values plus call kwargs) becomes a JSON string.
    - Exceptions are rendered into "stacktrace" with \r line breaks so a log
      collector keeps the whole traceback in one event.
    """
    if record["extra"]:
        record["extra"] = json.dumps(record["extra"], default=str)

    exception = record["exception"]
    record["stacktrace"] = get_formatted_stacktrace(exception, single_line=True) if exception else ""

    return True


def get_formatted_stacktrace(exception, single_line: bool) -> str:
    """Format an (exc_type, exc_value, traceback) triple, optionally on a single line."""
    exc_type, exc_value, exc_traceback = exception
    stacktrace = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))
    return stacktrace.replace("\n", "\r") if single_line else stacktrace


def _safe_headers(headers) -> dict:
    return {
        name: "<redacted>" if name.lower() in REDACTED_HEADERS else value for name, value in headers.items()
    }


def log_request_info(request: Request):
    """Log the incoming request at debug level. Credentials are redacted."""
    logger.debug(
        "Request received",
        http_request={
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params.items()),
            "headers": _safe_headers(request.headers),
            "client": str(request.client),
        },
    )


def log_response_info(response: Response):
    """Log the outgoing response at debug level."""
    logger.debug(
        "Response sent",
        http_response={
            "status_code": response.status_code,
            "headers": _safe_headers(response.headers),
        },
    )
