from app.schemas.user import UserCreate, UserResponse, UserLogin, Token
from app.schemas.catalog import PackageCreate, PackageResponse, TimeSlotCreate, TimeSlotResponse
from app.schemas.booking import BookingCreate, BookingResponse, BookingQuoteRequest, BookingQuoteResponse
from app.schemas.voucher import VoucherCreate, VoucherResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "PackageCreate", "PackageResponse", "TimeSlotCreate", "TimeSlotResponse",
    "BookingCreate", "BookingResponse", "BookingQuoteRequest", "BookingQuoteResponse",
    "VoucherCreate", "VoucherResponse",
]
