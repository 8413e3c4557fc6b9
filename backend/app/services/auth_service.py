"""
Authentication service handling registration, login and email confirmation.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from app.models.user import User
from app.schemas.user import UserCreate, UserLogin
from app.core.exceptions import AlreadyExists, NotFound
from app.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    generate_confirmation_code,
)
from app.core.logging import get_logger
from app.services.interfaces.notifier import Notifier

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate, notifier: Notifier) -> User:
    """
    Register a new user with hashed password and send a confirmation code.
    Raises 409 if email or username already exists.
    """
    result = await db.execute(select(User).where(User.email == user_data.email.lower()))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise AlreadyExists("Email already registered")

    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise AlreadyExists("Username already taken")

    code = generate_confirmation_code()
    user = User(
        email=user_data.email.lower(),
        username=user_data.username,
        name=user_data.name,
        hashed_password=hash_password(user_data.password),
        role="user",
        is_validated=False,
        wallet=0,
        confirmation_code_hash=hash_password(code),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    await notifier.send_confirmation(user.email, code, user.id)
    logger.info("user_registered", user_id=user.id, email=user.email)
    return user


async def confirm_email(db: AsyncSession, user_id: int, code: str) -> User:
    """Mark the account validated when the one-time code matches."""
    user = await get_user(db, user_id)

    if user.is_validated:
        return user

    if not user.confirmation_code_hash or not verify_password(code, user.confirmation_code_hash):
        logger.warning("email_confirmation_failed", user_id=user_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid confirmation code",
        )

    user.is_validated = True
    user.confirmation_code_hash = None
    await db.flush()
    logger.info("email_confirmed", user_id=user.id)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Authenticate user and return JWT access token.
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    logger.info("user_logged_in", user_id=user.id, role=user.role)
    return token


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("User not found")
    return user
