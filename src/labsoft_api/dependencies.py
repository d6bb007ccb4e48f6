"""FastAPI dependencies for accessing app state and the authenticated principal."""

from typing import Callable
from typing import Optional

from fastapi import Depends
from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer

from labsoft_api.auth.principal import Principal
from labsoft_api.auth.token_verifier import TokenVerifier
from labsoft_api.policy.access_policy import authorize
from labsoft_api.settings import Settings
from labsoft_api.workflow.enums import Operation
from labsoft_api.workflow.exceptions import AuthenticationFailed
from labsoft_api.workflow.service import RequestLifecycleService

# Bearer token scheme (errors are raised by get_principal, not by the scheme)
_bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_token_verifier(request: Request) -> TokenVerifier:
    """Get the bearer token verifier from app state."""
    return request.app.state.token_verifier


def get_lifecycle_service(request: Request) -> RequestLifecycleService:
    """
    Get the request lifecycle service from app state.

    The service wraps whichever store was configured at startup
    (PostgreSQL repository or in-memory store).
    """
    return request.app.state.lifecycle_service


# Sync on purpose: FastAPI runs it in the threadpool, so a JWKS fetch never blocks the event loop
def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    token_verifier: TokenVerifier = Depends(get_token_verifier),
) -> Principal:
    """
    Verify the bearer token and return the caller.

    The identity is also stored on request.state so the request log line can name the caller.

    Raises
    ------
    AuthenticationFailed
        If the Authorization header is missing or the token does not verify
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Missing bearer token")

    principal = token_verifier.verify(credentials.credentials)
    request.state.principal_identity = principal.identity
    return principal


def require_operation(operation: Operation) -> Callable[..., Principal]:
    """
    Build a dependency that authorizes ``operation`` before the route body runs.

    Usage:
        principal: Principal = Depends(require_operation(Operation.CREATE))
    """

    def _authorized_principal(principal: Principal = Depends(get_principal)) -> Principal:
        authorize(principal, operation)
        return principal

    return _authorized_principal
