"""Settings for the lab software requests API."""

from typing import List
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the lab software requests API.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) is a popular
    framework for organizing, validating, and reading configuration values from a variety of sources
    including environment variables.

    This class automatically reads from:
    1. Environment variables (production)
    2. .env file (local development)

    Environment variable names are treated case-insensitively, but the canonical
    names used in this project are lowercase (jwt_secret, database_connection_string, ...).
    """

    # Token verification
    jwt_secret: Optional[str] = None
    """Shared secret for HMAC-signed (HS256/HS384/HS512) bearer tokens."""

    jwt_public_key: Optional[str] = None
    """PEM encoded public key for RSA/EC signed bearer tokens."""

    jwt_jwks_url: Optional[str] = None
    """JWKS endpoint of the identity provider. Takes precedence over jwt_secret/jwt_public_key."""

    jwt_algorithms: List[str] = ["HS256"]
    """Accepted signing algorithms."""

    jwt_audience: Optional[str] = None
    """Expected `aud` claim (not verified when unset)."""

    jwt_issuer: Optional[str] = None
    """Expected `iss` claim (not verified when unset)."""

    identity_claim: str = "sub"
    """Claim holding the principal identity (e.g. sub, email, preferred_username)."""

    roles_claim: str = "roles"
    """Claim holding granted roles, either a list or a space separated string."""

    admin_role_name: str = "ADMIN"
    """Role name in the token that grants administrator rights."""

    instructor_role_name: str = "PROFESSOR"
    """Role name in the token that grants instructor rights."""

    # Persistence
    database_connection_string: Optional[str] = None
    """PostgreSQL connection string. When unset requests are kept in process memory."""

    db_pool_min_size: int = 1
    """Minimum asyncpg pool size."""

    db_pool_max_size: int = 10
    """Maximum asyncpg pool size."""

    # Lifecycle policy
    strict_status_transitions: bool = True
    """Reject unknown status values and transitions outside PENDING -> APPROVED/REJECTED, APPROVED -> INSTALLED."""

    enforce_delete_ownership: bool = False
    """Only let instructors delete requests they created (legacy behaviour deletes any id)."""

    # Logging
    log_level: str = "INFO"
    """Minimum level for the stdout log sink."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in the model
        validate_default=True,
    )

    @property
    def token_verification_configured(self) -> bool:
        """True when at least one key source for bearer tokens is set."""
        return bool(self.jwt_jwks_url or self.jwt_secret or self.jwt_public_key)
