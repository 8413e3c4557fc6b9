"""
Pydantic schemas for hotels and tracks.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from app.services.dateutils import WEEKDAYS


class ServiceBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: int = Field(..., ge=0)
    num_of_guests: int = Field(..., gt=0)
    available_days: list[str] = Field(..., min_length=1)
    auto_accept: bool = False

    @field_validator("available_days")
    @classmethod
    def check_weekdays(cls, value: list[str]) -> list[str]:
        unknown = [day for day in value if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekdays: {', '.join(unknown)}")
        return list(dict.fromkeys(value))


class HotelCreate(ServiceBase):
    address: str = Field(..., min_length=1, max_length=255)
    num_of_stars: int = Field(..., ge=1, le=5)


class TrackCreate(ServiceBase):
    length: int = Field(..., gt=0)
    rating: Literal["green", "blue", "red", "black"]


class ServiceResponse(BaseModel):
    id: int
    kind: str
    name: str
    resort_id: int
    price: int
    num_of_guests: int
    available_days: list[str]
    auto_accept: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class HotelResponse(ServiceResponse):
    address: Optional[str]
    num_of_stars: Optional[int]


class TrackResponse(ServiceResponse):
    length: Optional[int]
    rating: Optional[str]


class HotelListResponse(BaseModel):
    items: list[HotelResponse]
    total_items: int
    page: int
    per_page: int
    cached: bool = False


class TrackListResponse(BaseModel):
    items: list[TrackResponse]
    total_items: int
    page: int
    per_page: int
    cached: bool = False


class ReserveRequest(BaseModel):
    id: int
    date_from: date
    date_to: date
    num_of_guests: int = Field(..., ge=1)


class ReserveResponse(BaseModel):
    booking_id: int
    price: int
    status: str
