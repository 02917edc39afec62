from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from .errors import AuthenticationError
from .schemas import BCRYPT_MAX_BYTES
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def hash_password(password: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of the password as text."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    secret = password.encode("utf-8")
    # Registration never accepts longer passwords, so these cannot match.
    if len(secret) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret, password_hash.encode("ascii"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    jti: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    token: str
    claims: TokenClaims


# PUBLIC_INTERFACE
class TokenIssuer:
    """
    Issues and verifies signed JWT bearer tokens bound to a user id.

    Each token carries a unique ``jti`` so that a single token can be
    revoked (logout, refresh) without touching other sessions of the user.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_minutes: int = 60) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(minutes=ttl_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(settings.jwt_secret, settings.jwt_algorithm, settings.jwt_ttl_minutes)

    def issue(self, user_id: int) -> IssuedToken:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        claims = TokenClaims(
            user_id=user_id,
            jti=uuid.uuid4().hex,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        payload = {
            "sub": str(user_id),
            "jti": claims.jti,
            "iat": claims.issued_at,
            "exp": claims.expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, claims=claims)

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.

        Raises:
            AuthenticationError: if the token is expired, malformed or was not
                signed with our secret.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "jti", "iat", "exp"]},
            )
            user_id = int(payload["sub"])
        except jwt.ExpiredSignatureError as exc:
            logger.info("Rejected expired token")
            raise AuthenticationError() from exc
        except (jwt.InvalidTokenError, ValueError, TypeError) as exc:
            logger.info("Rejected invalid token: %s", exc)
            raise AuthenticationError() from exc

        return TokenClaims(
            user_id=user_id,
            jti=str(payload["jti"]),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )


# PUBLIC_INTERFACE
def get_token_issuer() -> TokenIssuer:
    """FastAPI dependency returning a TokenIssuer built from current settings."""
    return TokenIssuer.from_settings(get_settings())
