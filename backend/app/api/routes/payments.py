"""
Razorpay checkout: order creation and payment verification.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.booking import BookingStatus
from app.models.user import User
from app.schemas.payment import PaymentOrderCreate, PaymentOrderResponse, PaymentVerify, PaymentVerifyResponse
from app.services import booking_service
from app.services.notification_service import notify_booking_confirmed
from app.services.payment_service import RazorpayGateway, get_payment_gateway, to_minor_units
from app.core.config import get_settings
from app.core.metrics import record_payment_verification
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/orders", response_model=PaymentOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: PaymentOrderCreate,
    user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    booking = await booking_service.get_booking_for_user(db, data.booking_id, user)
    if booking.status != BookingStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Booking is already {booking.status}",
        )

    order = await gateway.create_order(
        booking.total_amount, receipt=f"booking_{booking.id}", currency=settings.PAYMENT_CURRENCY
    )
    booking.payment_order_id = order["id"]
    await db.flush()

    return PaymentOrderResponse(
        order_id=order["id"],
        booking_id=booking.id,
        amount=booking.total_amount,
        amount_minor=to_minor_units(booking.total_amount),
        currency=settings.PAYMENT_CURRENCY,
        key_id=gateway.key_id,
    )


@router.post("/verify", response_model=PaymentVerifyResponse)
async def verify_payment(
    data: PaymentVerify,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    gateway: RazorpayGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    """Check the checkout signature, then confirm the booking."""
    booking = await booking_service.get_booking_for_user(db, data.booking_id, user)

    valid = gateway.verify_signature(data.order_id, data.payment_id, data.signature)
    record_payment_verification(valid)
    if not valid:
        logger.warning("payment_verification_failed", booking_id=booking.id, order_id=data.order_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payment signature")

    # The order must be the one created for this booking
    if booking.payment_order_id != data.order_id:
        logger.warning(
            "payment_order_mismatch",
            booking_id=booking.id,
            expected=booking.payment_order_id,
            received=data.order_id,
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Order does not match booking")

    booking = await booking_service.confirm_payment(db, booking, data.order_id, data.payment_id)
    background_tasks.add_task(notify_booking_confirmed, booking_service.booking_notice(booking))
    return PaymentVerifyResponse(success=True, booking_id=booking.id, status=booking.status)
