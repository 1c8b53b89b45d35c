"""Authentication API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import create_access_token, get_current_user
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    OAuthProfile,
    RegisterRequest,
    TokenResponse,
    UserPublic,
)
from app.services import auth as auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    return await auth_service.register(db, data)


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await auth_service.login(db, data.email, data.password)


@router.post("/oauth/{provider}", response_model=AuthResponse)
async def oauth_login(provider: str, profile: OAuthProfile, db: AsyncSession = Depends(get_db)):
    """Sign in with a profile already fetched from Google or GitHub.

    The profile is trusted as-is, so this route belongs behind the OAuth
    callback handler rather than in front of end users. An account already
    linked to another provider identity is refused with 401.
    """
    return await auth_service.oauth_login(db, provider, profile)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(user: User = Depends(get_current_user)):
    return TokenResponse(access_token=create_access_token(user))


@router.get("/profile", response_model=UserPublic)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    return {"message": "Logged out successfully"}
