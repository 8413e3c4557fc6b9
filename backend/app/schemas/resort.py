"""
Pydantic schemas for resorts (ski centers).
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ResortCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class ResortUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)


class ResortResponse(BaseModel):
    id: int
    name: str
    location: str
    description: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}
