"""
Public reviews and contact enquiries.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.feedback import EnquiryCreate, EnquiryResponse, ReviewCreate, ReviewResponse
from app.services import feedback_service
from app.services.notification_service import notify_enquiry_received

router = APIRouter(tags=["Feedback"])


@router.get("/reviews", response_model=list[ReviewResponse])
async def list_reviews(db: AsyncSession = Depends(get_db)):
    """Approved reviews only."""
    return await feedback_service.list_reviews(db, approved_only=True)


@router.post("/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_review(
    review_data: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.create_review(db, user, review_data)


@router.post("/enquiries", response_model=EnquiryResponse, status_code=status.HTTP_201_CREATED)
async def submit_enquiry(
    enquiry_data: EnquiryCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    enquiry = await feedback_service.create_enquiry(db, enquiry_data)
    background_tasks.add_task(notify_enquiry_received, feedback_service.enquiry_notice(enquiry))
    return enquiry
