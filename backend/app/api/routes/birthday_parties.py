"""
Birthday party booking endpoints.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.booking import BirthdayPartyCreate, BirthdayPartyResponse
from app.services import party_service
from app.services.notification_service import notify_party_created

router = APIRouter(prefix="/birthday-parties", tags=["Birthday Parties"])


@router.post("", response_model=BirthdayPartyResponse, status_code=status.HTTP_201_CREATED)
async def create_party(
    party_data: BirthdayPartyCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    party = await party_service.create_party(db, user, party_data)
    background_tasks.add_task(notify_party_created, party_service.party_notice(party))
    return party


@router.get("", response_model=list[BirthdayPartyResponse])
async def list_my_parties(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await party_service.get_user_parties(db, user.id)
