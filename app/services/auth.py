"""Registration, password login, OAuth login and profile updates."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, BadRequestError, ConflictError
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import OAuthProfile, ProfileUpdate, RegisterRequest, UserPublic

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = ("google", "github")


def auth_payload(user: User) -> dict:
    return {
        "user": UserPublic.model_validate(user).model_dump(),
        "access_token": create_access_token(user),
        "token_type": "bearer",
    }


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def register(session: AsyncSession, data: RegisterRequest) -> dict:
    if await get_user_by_email(session, data.email):
        raise ConflictError("User with this email already exists", message_key="auth.email_exists")

    user = User(
        email=data.email,
        username=data.username or data.email.split("@")[0],
        first_name=data.first_name,
        last_name=data.last_name,
        avatar=data.avatar,
        password_hash=hash_password(data.password),
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    logger.info(f"Registered user {user.id}")
    return auth_payload(user)


async def login(session: AsyncSession, email: str, password: str) -> dict:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthenticationError("Invalid credentials", message_key="auth.invalid_credentials")

    user.last_login_at = datetime.utcnow()
    await session.flush()
    return auth_payload(user)


async def oauth_login(session: AsyncSession, provider: str, profile: OAuthProfile) -> dict:
    """Find-or-create the user behind an OAuth profile and link the provider."""
    if provider not in OAUTH_PROVIDERS:
        raise BadRequestError(
            f"Unsupported OAuth provider: {provider}",
            message_key="auth.unsupported_provider",
            provider=provider,
        )

    user = await get_user_by_email(session, profile.email)
    if user is None:
        user = User(
            email=profile.email,
            username=profile.username or profile.email.split("@")[0],
            first_name=profile.first_name,
            last_name=profile.last_name,
            avatar=profile.avatar,
            oauth_provider=provider,
            oauth_provider_id=profile.provider_id,
            is_email_verified=True,
            email_verified_at=datetime.utcnow(),
        )
        session.add(user)
        logger.info(f"Created user from {provider} OAuth profile")
    else:
        if user.oauth_provider_id and (user.oauth_provider, user.oauth_provider_id) != (provider, profile.provider_id):
            logger.warning(f"Refused {provider} OAuth login for user {user.id}: already linked elsewhere")
            raise AuthenticationError(
                "Account is linked to a different OAuth identity",
                message_key="auth.oauth_account_mismatch",
                provider=provider,
            )
        user.oauth_provider = provider
        user.oauth_provider_id = profile.provider_id
        if not user.avatar and profile.avatar:
            user.avatar = profile.avatar

    user.last_login_at = datetime.utcnow()
    await session.flush()
    await session.refresh(user)
    return auth_payload(user)


async def update_profile(session: AsyncSession, user: User, data: ProfileUpdate) -> User:
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    await session.flush()
    await session.refresh(user)
    return user
