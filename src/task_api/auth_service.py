from __future__ import annotations

import logging
from typing import Any, Mapping, Tuple, Union

from fastapi import Depends

from .auth import AuthContext
from .errors import ConflictError, InvalidCredentialsError, ValidationError
from .models import UserEntity
from .repositories import Repository, get_repository
from .schemas import LoginRequest, RegisterRequest
from .security import IssuedToken, TokenIssuer, get_token_issuer, hash_password, verify_password
from .settings import get_settings
from .validation import message_for, validate

logger = logging.getLogger(__name__)

AuthResult = Tuple[UserEntity, IssuedToken]


# PUBLIC_INTERFACE
class AuthService:
    """
    Registration, login and the session-token lifecycle (logout, refresh).

    The service never keeps a "current user": every method that needs one
    receives the AuthContext resolved for the request.
    """

    def __init__(self, repo: Repository, issuer: TokenIssuer, bcrypt_rounds: int = 12) -> None:
        self._repo = repo
        self._issuer = issuer
        self._bcrypt_rounds = bcrypt_rounds

    def register(self, payload: Union[Mapping[str, Any], RegisterRequest, None]) -> AuthResult:
        data: RegisterRequest = validate("register", payload, email_taken=self._email_taken)
        try:
            user = self._repo.create_user(
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password, self._bcrypt_rounds),
            )
        except ConflictError as exc:
            # Lost a race with a concurrent registration of the same email.
            raise ValidationError({"email": [message_for("unique", "email")]}) from exc

        logger.info("Registered user %s", user["id"])
        return user, self._issuer.issue(user["id"])

    def login(self, payload: Union[Mapping[str, Any], LoginRequest, None]) -> AuthResult:
        data: LoginRequest = validate("login", payload)
        user = self._repo.get_user_by_email(data.email)
        if user is None or not verify_password(data.password, user["password_hash"]):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        logger.info("User %s logged in", user["id"])
        return user, self._issuer.issue(user["id"])

    def logout(self, context: AuthContext) -> None:
        self._repo.revoke_token(context.claims.jti, context.claims.expires_at)
        logger.info("User %s logged out", context.user_id)

    def refresh(self, context: AuthContext) -> AuthResult:
        """Issue a fresh token for the caller and revoke the one presented."""
        fresh = self._issuer.issue(context.user_id)
        self._repo.revoke_token(context.claims.jti, context.claims.expires_at)
        logger.info("User %s refreshed their token", context.user_id)
        return context.user, fresh

    def current_user(self, context: AuthContext) -> UserEntity:
        return context.user

    def _email_taken(self, email: str) -> bool:
        return self._repo.get_user_by_email(email) is not None


# PUBLIC_INTERFACE
def get_auth_service(
    repo: Repository = Depends(get_repository),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    """FastAPI dependency building an AuthService from the configured repository and settings."""
    settings = get_settings()
    return AuthService(repo, issuer, bcrypt_rounds=settings.bcrypt_rounds)
