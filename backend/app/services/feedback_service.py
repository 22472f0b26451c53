"""
Reviews (shown publicly once approved) and contact enquiries.
"""

from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.feedback import Enquiry, Review
from app.models.user import User
from app.schemas.feedback import EnquiryCreate, ReviewCreate
from app.services.notification_service import EnquiryNotice
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_review(db: AsyncSession, user: User, data: ReviewCreate) -> Review:
    review = Review(user_id=user.id, is_approved=False, **data.model_dump())
    db.add(review)
    await db.flush()
    await db.refresh(review)
    logger.info("review_submitted", review_id=review.id, rating=review.rating)
    return review


async def list_reviews(db: AsyncSession, approved_only: bool = True) -> list[Review]:
    query = select(Review).order_by(Review.created_at.desc())
    if approved_only:
        query = query.where(Review.is_approved.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


async def set_review_approval(db: AsyncSession, review_id: int, approved: bool) -> Review:
    review = await db.get(Review, review_id)
    if not review:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    review.is_approved = approved
    await db.flush()
    await db.refresh(review)
    logger.info("review_moderated", review_id=review.id, approved=approved)
    return review


async def create_enquiry(db: AsyncSession, data: EnquiryCreate) -> Enquiry:
    enquiry = Enquiry(status="pending", **data.model_dump())
    db.add(enquiry)
    await db.flush()
    await db.refresh(enquiry)
    logger.info("enquiry_received", enquiry_id=enquiry.id, type=enquiry.type)
    return enquiry


async def list_enquiries(db: AsyncSession, enquiry_status: Optional[str] = None) -> list[Enquiry]:
    query = select(Enquiry).order_by(Enquiry.created_at.desc())
    if enquiry_status:
        query = query.where(Enquiry.status == enquiry_status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_enquiry_status(db: AsyncSession, enquiry_id: int, new_status: str) -> Enquiry:
    enquiry = await db.get(Enquiry, enquiry_id)
    if not enquiry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enquiry not found")
    enquiry.status = new_status
    await db.flush()
    await db.refresh(enquiry)
    logger.info("enquiry_status_changed", enquiry_id=enquiry.id, status=new_status)
    return enquiry


def enquiry_notice(enquiry: Enquiry) -> EnquiryNotice:
    return EnquiryNotice(
        enquiry_id=enquiry.id,
        name=enquiry.name,
        email=enquiry.email,
        phone=enquiry.phone,
        message=enquiry.message,
        type=enquiry.type,
    )
