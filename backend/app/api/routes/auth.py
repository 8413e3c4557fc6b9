"""
Authentication and account endpoints: register, login, email confirmation,
profile, password change and account removal.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.user import (
    UserCreate, UserResponse, UserLogin, Token, ConfirmEmail, ChangePassword, MessageResponse,
)
from app.services.auth_service import register_user, authenticate_user, confirm_email
from app.services.user_service import resend_confirmation, change_password, delete_account
from app.services.interfaces.notifier import Notifier
from app.services.providers import get_notifier

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Register a new user account. A confirmation code is sent by email."""
    user = await register_user(db, user_data, notifier)
    return user


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_user(db, login_data)
    return Token(access_token=token)


@router.post("/confirm-email", response_model=UserResponse)
async def confirm_email_endpoint(data: ConfirmEmail, db: AsyncSession = Depends(get_db)):
    user = await confirm_email(db, data.user_id, data.code)
    return user


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user


@router.post("/resend-email", response_model=MessageResponse)
async def resend_email(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Send a fresh confirmation code to an unconfirmed account."""
    await resend_confirmation(db, user, notifier)
    return MessageResponse(message="Email was resent")


@router.post("/change-password", response_model=MessageResponse)
async def change_password_endpoint(
    data: ChangePassword,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await change_password(db, user, data.old_password, data.new_password)
    return MessageResponse(message="Password changed")


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete the signed-in account. Bookings that have not ended are cancelled."""
    await delete_account(db, user)
