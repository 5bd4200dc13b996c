"""Controller layer for session login and identity lookup."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field, field_validator

from campus_booking.controllers.dependencies import bearer_scheme, get_auth_service, get_current_actor
from campus_booking.domain.models import Actor, Role
from campus_booking.services.auth_service import (
    AccessCodeNotConfiguredError,
    AuthService,
    InvalidAccessCodeError,
)
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=200)
    role: Role
    access_code: str = Field(min_length=1)
    roll_number: Optional[str] = Field(default=None, max_length=50)

    @field_validator("user_id", "name")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role


class ActorResponse(BaseModel):
    user_id: str
    name: str
    role: Role
    roll_number: Optional[str] = None


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        token = auth_service.login(
            user_id=payload.user_id,
            name=payload.name,
            role=payload.role,
            access_code=payload.access_code,
            roll_number=payload.roll_number,
        )
        return LoginResponse(access_token=token, role=payload.role)
    except (AccessCodeNotConfiguredError, InvalidAccessCodeError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.get("/me", response_model=ActorResponse, status_code=status.HTTP_200_OK)
async def whoami(actor: Actor = Depends(get_current_actor)) -> ActorResponse:
    return ActorResponse(
        user_id=actor.user_id,
        name=actor.name,
        role=actor.role,
        roll_number=actor.roll_number,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if credentials is not None:
        auth_service.logout(credentials.credentials)
