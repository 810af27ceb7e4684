"""Sign-up, sign-in and sign-out endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentUser, get_auth_service
from app.schemas.auth import (
    AuthResponse,
    MessageResponse,
    SignInRequest,
    SignUpRequest,
    UserOut,
)
from app.services.auth import AuthResult, AuthService

router = APIRouter()


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserOut.model_validate(result.user),
        token=result.token,
        token_type="bearer",
        expires_in=result.expires_in,
    )


@router.post("/sign-up", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    body: SignUpRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Create an account and return it with an access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    return _auth_response(service.sign_up(body))


@router.post("/sign-in", response_model=AuthResponse)
def sign_in(
    body: SignInRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Authenticate with email and password; returns a fresh access token."""
    return _auth_response(service.sign_in(body))


@router.post("/sign-out", response_model=MessageResponse)
def sign_out(
    context: CurrentUser,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """Tokens are stateless; the client must discard its token. Nothing is revoked server-side."""
    return MessageResponse(message=service.sign_out(context))
