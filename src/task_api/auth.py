from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationError
from .models import UserEntity
from .repositories import Repository, get_repository
from .security import TokenClaims, TokenIssuer, get_token_issuer

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """
    The authenticated caller of a request. Route handlers pass it (or its
    user_id) explicitly into service calls.
    """

    user_id: int
    user: UserEntity
    token: str
    claims: TokenClaims


# PUBLIC_INTERFACE
def require_auth(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    repo: Repository = Depends(get_repository),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthContext:
    """
    Enforce bearer-token authentication.

    Raises:
        AuthenticationError(401) if the Authorization header is missing or not
        a bearer token, if the token is invalid, expired or revoked, or if its
        user no longer exists.
    """
    if creds is None or not creds.credentials:
        raise AuthenticationError()

    claims = issuer.decode(creds.credentials)

    if repo.is_token_revoked(claims.jti):
        logger.info("Rejected revoked token for user %s", claims.user_id)
        raise AuthenticationError()

    user = repo.get_user(claims.user_id)
    if user is None:
        logger.info("Rejected token for unknown user %s", claims.user_id)
        raise AuthenticationError()

    return AuthContext(user_id=user["id"], user=user, token=creds.credentials, claims=claims)
