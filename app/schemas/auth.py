"""Request and response models for auth and user profile endpoints."""

import re
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("email must be a valid email address")
    return value


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.strip().lower()


class OAuthProfile(BaseModel):
    """Profile as returned by the OAuth provider after the redirect dance."""
    email: str
    provider_id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserPublic(BaseModel):
    id: int
    email: str
    username: str | None
    first_name: str | None
    last_name: str | None
    avatar: str | None
    role: str

    class Config:
        from_attributes = True


class UserProfile(UserPublic):
    is_email_verified: bool
    oauth_provider: str | None
    last_login_at: datetime | None
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserPublic
    access_token: str
    token_type: str = "bearer"


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ProfileUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=50)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    avatar: str | None = None
