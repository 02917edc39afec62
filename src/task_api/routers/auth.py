from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status

from ..auth import AuthContext, require_auth
from ..auth_service import AuthService, get_auth_service
from ..models import UserEntity
from ..schemas import AuthData, Envelope, TokenOut, UserData, UserOut
from ..security import IssuedToken

router = APIRouter(tags=["auth"])


def _auth_data(user: UserEntity, issued: IssuedToken) -> AuthData:
    return AuthData(user=UserOut(**user), authorisation=TokenOut(token=issued.token))


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=Envelope[AuthData],
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and return it together with a bearer token.",
    responses={
        201: {"description": "User created successfully"},
        422: {"description": "Validation error, including an email that is already taken"},
    },
)
def register(
    payload: Optional[Dict[str, Any]] = Body(None),
    service: AuthService = Depends(get_auth_service),
) -> Envelope[AuthData]:
    user, issued = service.register(payload)
    return Envelope[AuthData](message="User created successfully", data=_auth_data(user, issued))


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=Envelope[AuthData],
    summary="Login",
    description="Exchange email and password for a bearer token.",
    responses={
        200: {"description": "Logged in"},
        401: {"description": "Unknown email or wrong password"},
        422: {"description": "Validation error"},
    },
)
def login(
    payload: Optional[Dict[str, Any]] = Body(None),
    service: AuthService = Depends(get_auth_service),
) -> Envelope[AuthData]:
    user, issued = service.login(payload)
    return Envelope[AuthData](message="Success", data=_auth_data(user, issued))


# PUBLIC_INTERFACE
@router.get(
    "/logout",
    response_model=Envelope,
    summary="Logout",
    description="Revoke the bearer token used for this request.",
    responses={200: {"description": "Logged out"}, 401: {"description": "Not authenticated"}},
)
def logout(
    auth: AuthContext = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
) -> Envelope:
    service.logout(auth)
    return Envelope(message="Successfully logged out")


# PUBLIC_INTERFACE
@router.get(
    "/refresh",
    response_model=Envelope[AuthData],
    summary="Refresh Token",
    description="Issue a new bearer token for the caller; the presented token stops working.",
    responses={200: {"description": "Token refreshed"}, 401: {"description": "Not authenticated"}},
)
def refresh(
    auth: AuthContext = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
) -> Envelope[AuthData]:
    user, issued = service.refresh(auth)
    return Envelope[AuthData](message="Success", data=_auth_data(user, issued))


# PUBLIC_INTERFACE
@router.get(
    "/user",
    response_model=Envelope[UserData],
    summary="Current User",
    description="Return the authenticated user.",
    responses={200: {"description": "Authenticated user"}, 401: {"description": "Not authenticated"}},
)
def current_user(
    auth: AuthContext = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
) -> Envelope[UserData]:
    return Envelope[UserData](message="Success", data=UserData(user=UserOut(**service.current_user(auth))))
