"""
Customer booking endpoints.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.booking import BookingCreate, BookingQuoteRequest, BookingQuoteResponse, BookingResponse
from app.services import booking_service
from app.services.notification_service import notify_booking_created

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/quote", response_model=BookingQuoteResponse)
async def quote(data: BookingQuoteRequest, db: AsyncSession = Depends(get_db)):
    """Price a booking. Does not reserve places or use up the voucher."""
    return await booking_service.quote_booking(db, data)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Book a play session for one or more children.

    The slot's places are reserved atomically; if the slot filled up in
    the meantime the request fails with 409 and nothing is stored.
    """
    booking = await booking_service.create_booking(db, user, booking_data)
    background_tasks.add_task(notify_booking_created, booking_service.booking_notice(booking))
    return booking


@router.get("", response_model=list[BookingResponse])
async def list_my_bookings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_user_bookings(db, user.id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_booking_for_user(db, booking_id, user)
