"""
Public voucher lookup for the checkout form.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.voucher import VoucherPublic
from app.services.voucher_service import resolve_voucher

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.get("/{code}", response_model=VoucherPublic)
async def lookup_voucher(
    code: str,
    package_id: Optional[int] = Query(None),
    subtotal: Optional[Decimal] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Validate a code. 404 if it does not exist, 400 with the reason otherwise."""
    voucher, check = await resolve_voucher(db, code, subtotal=subtotal, package_id=package_id)
    if voucher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Voucher not found")
    if not check.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Voucher {check.reason}")
    return voucher
