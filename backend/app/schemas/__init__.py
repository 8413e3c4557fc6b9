from app.schemas.user import (
    UserCreate, UserResponse, UserLogin, Token, ConfirmEmail, WalletResponse, AddCredits,
    ChangePassword, UserListResponse, MessageResponse,
)
from app.schemas.resort import ResortCreate, ResortUpdate, ResortResponse
from app.schemas.service import (
    HotelCreate, TrackCreate, HotelResponse, TrackResponse,
    HotelListResponse, TrackListResponse, ReserveRequest, ReserveResponse,
)
from app.schemas.booking import BookingResponse, BookingListResponse, ApprovalResponse, DenyResponse, RefundResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token", "ConfirmEmail", "WalletResponse", "AddCredits",
    "ChangePassword", "UserListResponse", "MessageResponse",
    "ResortCreate", "ResortUpdate", "ResortResponse",
    "HotelCreate", "TrackCreate", "HotelResponse", "TrackResponse",
    "HotelListResponse", "TrackListResponse", "ReserveRequest", "ReserveResponse",
    "BookingResponse", "BookingListResponse", "ApprovalResponse", "DenyResponse", "RefundResponse",
]
