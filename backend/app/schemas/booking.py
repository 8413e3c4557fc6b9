"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel


class BookingResponse(BaseModel):
    id: int
    user_id: Optional[int]
    service_id: Optional[int]
    resort_id: Optional[int]
    service_type: str
    num_of_guests: int
    value: int
    date_from: date
    date_to: date
    is_approved: bool
    is_cancelled: bool
    cancelled_by: Optional[str]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingListResponse(BaseModel):
    items: list[BookingResponse]
    total_items: int


class ApprovalResponse(BaseModel):
    message: str
    denied_requests: list[BookingResponse]


class DenyResponse(BaseModel):
    message: str
    booking_id: int


class RefundResponse(BaseModel):
    message: str
    booking_id: int
    wallet: int
