"""
Birthday party bookings.

Parties are priced as a flat package and are not counted against
play-session slot capacity. Their status follows the same state
machine as bookings.
"""

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import BirthdayParty, BookingStatus, PaymentStatus
from app.models.catalog import PackageType
from app.models.user import User
from app.schemas.booking import BirthdayPartyCreate
from app.services.availability_service import get_active_holiday
from app.services.booking_service import get_active_package
from app.services.booking_status import InvalidStatusTransition, apply_transition
from app.services.notification_service import PartyNotice
from app.core.metrics import record_status_change
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_party(db: AsyncSession, user: Optional[User], data: BirthdayPartyCreate) -> BirthdayParty:
    package = await get_active_package(db, data.package_id)
    if package.type != PackageType.BIRTHDAY.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Birthday parties require a birthday package",
        )
    if package.max_children is not None and data.number_of_guests > package.max_children:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"This package allows at most {package.max_children} guests",
        )

    holiday = await get_active_holiday(db, data.party_date)
    if holiday:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=holiday.name)

    party = BirthdayParty(
        user_id=user.id if user else None,
        total_amount=package.price,
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        **data.model_dump(),
    )
    db.add(party)
    await db.flush()
    await db.refresh(party)

    logger.info(
        "birthday_party_created",
        party_id=party.id,
        date=str(party.party_date),
        guests=party.number_of_guests,
    )
    return party


async def get_user_parties(db: AsyncSession, user_id: int) -> list[BirthdayParty]:
    result = await db.execute(
        select(BirthdayParty)
        .where(BirthdayParty.user_id == user_id)
        .order_by(BirthdayParty.party_date.desc())
    )
    return list(result.scalars().all())


async def list_parties(db: AsyncSession, party_status: Optional[BookingStatus] = None) -> list[BirthdayParty]:
    query = select(BirthdayParty).order_by(BirthdayParty.party_date, BirthdayParty.id)
    if party_status is not None:
        query = query.where(BirthdayParty.status == party_status.value)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_party_status(db: AsyncSession, party_id: int, target: BookingStatus) -> BirthdayParty:
    party = await db.get(BirthdayParty, party_id)
    if not party:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Birthday party not found")

    try:
        changed = apply_transition(party, target)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if changed:
        record_status_change(party.status)
        logger.info("birthday_party_status_changed", party_id=party.id, status=party.status)
    await db.flush()
    await db.refresh(party)
    return party


def party_notice(party: BirthdayParty) -> PartyNotice:
    return PartyNotice(
        party_id=party.id,
        parent_name=party.parent_name,
        parent_phone=party.parent_phone,
        parent_email=party.parent_email,
        child_name=party.child_name,
        child_age=party.child_age,
        party_date=party.party_date,
        number_of_guests=party.number_of_guests,
        theme=party.theme,
        total_amount=party.total_amount,
    )
