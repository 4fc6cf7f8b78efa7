"""/api/v1/auth endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from nabung.auth.dependencies import get_current_user
from nabung.auth.jwt import create_access_token
from nabung.auth.password import PasswordPolicyError
from nabung.auth.schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from nabung.auth.service import authenticate_user, register_user
from nabung.config import get_settings
from nabung.database import get_session
from nabung.db.models import User

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _auth_response(user: User) -> AuthResponse:
    settings = get_settings()
    return AuthResponse(
        token=create_access_token(user.id, user.email, user.is_admin),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    """Create an account and sign it in."""
    try:
        user = await register_user(db, body.full_name, body.email, body.password)
    except PasswordPolicyError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    await db.commit()
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse:
    try:
        user = await authenticate_user(db, body.email, body.password, require_admin=bool(body.is_admin))
    except ValueError as e:
        logger.info("login_failed", reason="credentials")
        raise HTTPException(status_code=401, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e

    await db.commit()
    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)
