from app.models.user import User, UserRole, Permission, ROLE_PERMISSIONS
from app.models.catalog import Package, PackageType, TimeSlot, Holiday, OperatingHours, AddOn
from app.models.voucher import DiscountVoucher, DiscountType
from app.models.booking import Booking, BookingStatus, PaymentStatus, SlotOccupancy, BirthdayParty
from app.models.feedback import Review, Enquiry

__all__ = [
    "User", "UserRole", "Permission", "ROLE_PERMISSIONS",
    "Package", "PackageType", "TimeSlot", "Holiday", "OperatingHours", "AddOn",
    "DiscountVoucher", "DiscountType",
    "Booking", "BookingStatus", "PaymentStatus", "SlotOccupancy", "BirthdayParty",
    "Review", "Enquiry",
]
