"""Contractor-facing endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_contractor
from app.schemas.auth import ActingUser
from app.schemas.lead import ContractorLeadsOut
from app.services.contractor_service import get_contractor_leads

router = APIRouter()


@router.get("/me/leads", response_model=ContractorLeadsOut)
async def my_leads(
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_contractor),
):
    """Leads in the caller's service zip codes, newest first."""
    return await get_contractor_leads(db, current_user)
