"""
GrocerHub Backend — Request Authentication & Role Guards
==========================================================

What:  Resolves the bearer token of a request to a Principal and guards routes
       by role.
How:   A TokenVerifier lives on `app.state.token_verifier`. Token issuance,
       password hashing and e-mail verification belong to an external
       identity provider; this service only verifies.

Dependencies:
    get_current_principal   → Principal, or AuthenticationError (401)
    require_roles(*roles)   → Principal with one of `roles`, or
                              AuthorizationError (403)

Static Tokens (AUTH_TOKENS):
    "tok-admin=admin:<user uuid>,tok-drv=driver:<user uuid>:<driver uuid>"
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from grocerhub.config import settings
from grocerhub.exceptions import AuthenticationError, AuthorizationError, ConfigurationError
from grocerhub.models.user import Role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller.

    profile_id is the Customer.id or Driver.id the user maps to; admins
    usually have none.
    """

    user_id: uuid.UUID
    role: Role
    profile_id: Optional[uuid.UUID] = None

    def require_profile(self) -> uuid.UUID:
        if self.profile_id is None:
            raise AuthorizationError(
                message=f"No {self.role.value} profile is linked to this account",
                context={"user_id": str(self.user_id)},
            )
        return self.profile_id


class TokenVerifier(ABC):
    """
    Abstract interface for bearer token verification.

    Implementations:
        - StaticTokenVerifier: fixed token table from settings (default)
        - (Future) a JWT verifier backed by the identity provider's keys
    """

    @abstractmethod
    async def verify(self, token: str) -> Principal:
        """
        Returns:
            The Principal the token belongs to.

        Raises:
            AuthenticationError: Unknown, expired or malformed token.
        """
        ...


def parse_principal(entry: str) -> Principal:
    """Parses `role:user_id[:profile_id]`."""
    parts = entry.split(":")
    if len(parts) not in (2, 3):
        raise ConfigurationError(
            message="Auth token entries must look like role:user_id[:profile_id]",
            context={"entry": entry},
        )
    try:
        role = Role(parts[0].strip().lower())
        user_id = uuid.UUID(parts[1].strip())
        profile_id = uuid.UUID(parts[2].strip()) if len(parts) == 3 and parts[2].strip() else None
    except ValueError as e:
        raise ConfigurationError(
            message=f"Invalid auth token entry: {e}",
            context={"entry": entry},
        ) from e
    return Principal(user_id=user_id, role=role, profile_id=profile_id)


class StaticTokenVerifier(TokenVerifier):
    """Verifies tokens against a fixed token → Principal table."""

    def __init__(self, tokens: Optional[Dict[str, Principal]] = None):
        self._tokens: Dict[str, Principal] = dict(tokens or {})

    @classmethod
    def from_settings(cls) -> "StaticTokenVerifier":
        tokens = {
            token: parse_principal(entry) for token, entry in settings.auth_tokens_map.items()
        }
        logger.info("Static token verifier loaded with %d token(s)", len(tokens))
        return cls(tokens)

    async def verify(self, token: str) -> Principal:
        principal = self._tokens.get(token)
        if principal is None:
            raise AuthenticationError(message="Not authorized, token failed")
        return principal


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """FastAPI dependency: the authenticated caller, or 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Not authorized, no token")
    verifier: TokenVerifier = request.app.state.token_verifier
    return await verifier.verify(credentials.credentials)


def require_roles(*roles: Role) -> Callable:
    """
    Build a dependency admitting only callers with one of `roles`.

    Example:
        @router.get("/users", dependencies=[Depends(require_roles(Role.ADMIN))])
    """
    allowed = frozenset(Role(r) for r in roles)

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise AuthorizationError(
                message=f"User role '{principal.role.value}' is not authorized to access this route",
                context={"required": sorted(r.value for r in allowed)},
            )
        return principal

    return dependency
