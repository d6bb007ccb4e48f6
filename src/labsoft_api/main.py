from contextlib import asynccontextmanager
from textwrap import dedent

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from loguru import logger

from labsoft_api.auth.token_verifier import TokenVerifier
from labsoft_api.errors import handle_broad_exceptions
from labsoft_api.errors import handle_lab_request_errors
from labsoft_api.errors import handle_pydantic_validation_errors
from labsoft_api.monitoring.logger import configure_logger
from labsoft_api.monitoring.request_context import RequestContextMiddleware
from labsoft_api.routes.routes_health import ROUTER_HEALTH
from labsoft_api.routes.routes_health import SERVICE_NAME
from labsoft_api.routes.routes_health import SERVICE_VERSION
from labsoft_api.routes.routes_requests import ROUTER_REQUESTS
from labsoft_api.settings import Settings
from labsoft_api.workflow.db.memory_store import InMemoryRequestStore
from labsoft_api.workflow.exceptions import LabRequestError
from labsoft_api.workflow.service import RequestLifecycleService


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded from environment variables (or a .env file) via pydantic-settings.
    When DATABASE_CONNECTION_STRING is set requests are stored in PostgreSQL,
    otherwise in process memory.
    """
    settings = settings or Settings()

    configure_logger(log_level=settings.log_level)

    logger.info(
        "Configuration loaded successfully",
        token_key_source_set=settings.token_verification_configured,
        database_set=bool(settings.database_connection_string),
        strict_status_transitions=settings.strict_status_transitions,
        enforce_delete_ownership=settings.enforce_delete_ownership,
    )

    app = FastAPI(
        title=SERVICE_NAME,
        version=SERVICE_VERSION,
        description=dedent(
            """
        Software installation requests for teaching labs.

        | Role | Allowed operations |
        | --- | --- |
        | Instructor | submit a request, list own requests, read own request, delete |
        | Administrator | list all requests, read any request, change status, delete |

        Status workflow: `PENDING` -> `APPROVED` | `REJECTED`, `APPROVED` -> `INSTALLED`.
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.state.token_verifier = TokenVerifier(settings)
    if not settings.token_verification_configured:
        logger.warning("No token key source configured - every authenticated endpoint will answer 401")

    if settings.database_connection_string:
        from labsoft_api.workflow.db.pool import DomainDBPool
        from labsoft_api.workflow.db.repository_request import RequestRepository

        domain_db_pool = DomainDBPool(
            settings.database_connection_string,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        app.state.domain_db_pool = domain_db_pool
        store = RequestRepository(domain_db_pool)
        logger.info("Request storage: PostgreSQL")
    else:
        store = InMemoryRequestStore()
        logger.warning("DATABASE_CONNECTION_STRING not set - requests are kept in memory and lost on restart")

    app.state.lifecycle_service = RequestLifecycleService(
        store,
        strict_status_transitions=settings.strict_status_transitions,
        enforce_delete_ownership=settings.enforce_delete_ownership,
    )

    # Add request context middleware for tracking who/where requests come from
    app.add_middleware(RequestContextMiddleware)
    app.include_router(ROUTER_HEALTH)
    app.include_router(ROUTER_REQUESTS, prefix="/api")

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=LabRequestError,
        handler=handle_lab_request_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    return app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the request database on startup and close it on shutdown (no-op for the in-memory store)."""
    domain_db_pool = getattr(app.state, "domain_db_pool", None)
    if domain_db_pool is not None:
        await domain_db_pool.initialize()
        logger.success("Request database initialized")
    yield
    if domain_db_pool is not None:
        await domain_db_pool.close()
        logger.info("Request database closed")


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
