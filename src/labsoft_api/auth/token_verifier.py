"""Bearer token verification.

Turns a signed JWT issued by the identity provider into a :class:`Principal`.
The verifier only checks signatures and standard claims; it never looks at
request records, so authorization stays in the access policy.

Key sources, in order of precedence:
1. JWKS endpoint (``jwt_jwks_url``), keys fetched and cached by ``jwt.PyJWKClient``
2. PEM public key (``jwt_public_key``) for RS*/ES* algorithms
3. Shared secret (``jwt_secret``) for HS* algorithms
"""

from typing import Any
from typing import Dict
from typing import FrozenSet
from typing import Iterable
from typing import Optional

import jwt
from loguru import logger

from labsoft_api.auth.principal import Principal
from labsoft_api.settings import Settings
from labsoft_api.workflow.enums import Role
from labsoft_api.workflow.exceptions import AuthenticationFailed

SPRING_ROLE_PREFIX = "ROLE_"


class TokenVerifier:
    """
    Verify bearer tokens and extract the principal.

    Attributes
    ----------
    settings : Settings
        Token verification settings (keys, algorithms, claim names, role names)
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._jwks_client: Optional[jwt.PyJWKClient] = None
        if settings.jwt_jwks_url:
            self._jwks_client = jwt.PyJWKClient(settings.jwt_jwks_url)

        self._role_map = {
            settings.admin_role_name: Role.ADMIN,
            settings.instructor_role_name: Role.INSTRUCTOR,
        }

        logger.info(
            "TokenVerifier initialized",
            key_source=self._key_source(),
            algorithms=settings.jwt_algorithms,
            identity_claim=settings.identity_claim,
            roles_claim=settings.roles_claim,
        )

    def verify(self, token: str) -> Principal:
        """
        Verify a bearer token and return the principal it describes.

        Parameters
        ----------
        token : str
            Encoded JWT (without the "Bearer " prefix)

        Returns
        -------
        Principal
            Identity and roles taken from the token claims

        Raises
        ------
        AuthenticationFailed
            If no key is configured, the signature or a standard claim is invalid,
            or the identity claim is missing
        """
        claims = self._decode(token)

        identity = self._get_claim(claims, self.settings.identity_claim)
        if not isinstance(identity, str) or not identity:
            raise AuthenticationFailed(f"Token has no '{self.settings.identity_claim}' claim")

        roles = self._map_roles(self._get_claim(claims, self.settings.roles_claim))
        return Principal(identity=identity, roles=roles)

    def _decode(self, token: str) -> Dict[str, Any]:
        key = self._resolve_key(token)
        try:
            return jwt.decode(
                token,
                key,
                algorithms=self.settings.jwt_algorithms,
                audience=self.settings.jwt_audience,
                issuer=self.settings.jwt_issuer,
                options={"verify_aud": self.settings.jwt_audience is not None},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationFailed("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationFailed(f"Invalid token: {e}") from e

    def _resolve_key(self, token: str) -> Any:
        if self._jwks_client is not None:
            try:
                return self._jwks_client.get_signing_key_from_jwt(token).key
            except jwt.PyJWTError as e:
                raise AuthenticationFailed(f"Unable to resolve signing key: {e}") from e
        if self.settings.jwt_public_key:
            return self.settings.jwt_public_key
        if self.settings.jwt_secret:
            return self.settings.jwt_secret
        raise AuthenticationFailed("Token verification is not configured")

    def _map_roles(self, raw_roles: Any) -> FrozenSet[Role]:
        granted = set()
        for name in _iter_role_names(raw_roles):
            if name.startswith(SPRING_ROLE_PREFIX):
                name = name[len(SPRING_ROLE_PREFIX) :]
            role = self._role_map.get(name)
            if role is not None:
                granted.add(role)
        return frozenset(granted)

    @staticmethod
    def _get_claim(claims: Dict[str, Any], path: str) -> Any:
        """Read a claim, following dotted paths such as ``realm_access.roles``."""
        value: Any = claims
        for part in path.split("."):
            if not isinstance(value, dict):
                return None
            value = value.get(part)
        return value

    def _key_source(self) -> str:
        if self.settings.jwt_jwks_url:
            return "jwks"
        if self.settings.jwt_public_key:
            return "public_key"
        if self.settings.jwt_secret:
            return "shared_secret"
        return "none"


def _iter_role_names(raw_roles: Any) -> Iterable[str]:
    if raw_roles is None:
        return []
    if isinstance(raw_roles, str):
        return raw_roles.replace(",", " ").split()
    if isinstance(raw_roles, (list, tuple, set)):
        return [r for r in raw_roles if isinstance(r, str)]
    return []
