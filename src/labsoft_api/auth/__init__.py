"""Authentication: verified principals and bearer token verification."""

from labsoft_api.auth.principal import Principal

__all__ = ["Principal"]
