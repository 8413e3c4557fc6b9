"""
Pydantic schemas for user-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9_]+$")
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ConfirmEmail(BaseModel):
    user_id: int
    code: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    name: str
    role: str
    resort_id: Optional[int]
    is_active: bool
    is_validated: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class WalletResponse(BaseModel):
    user_id: int
    wallet: int


class AddCredits(BaseModel):
    user_id: int
    amount: int = Field(..., gt=0)


class ChangePassword(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total_items: int


class MessageResponse(BaseModel):
    message: str
