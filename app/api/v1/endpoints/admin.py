"""Admin endpoints.

All routes require the admin role.

- GET /api/v1/admin/summary → Dashboard counters
- GET /api/v1/admin/leads → Leads ranked by probability to close
- GET /api/v1/admin/contractors → Contractor roster, newest first
- POST /api/v1/admin/contractors → Add a contractor
- PUT /api/v1/admin/contractors/{id} → Edit a contractor's details or service area
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_admin
from app.models.lead import LeadStatus
from app.schemas.auth import ActingUser
from app.schemas.contractor import ContractorCreate, ContractorListOut, ContractorOut, ContractorUpdate
from app.schemas.dashboard import DashboardSummary
from app.schemas.lead import RankedLeadsOut
from app.services.contractor_service import create_contractor, list_contractors, update_contractor
from app.services.dashboard_service import get_dashboard_summary
from app.services.lead_service import list_leads_by_score

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def summary(
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_admin),
):
    """Lead, user and contractor counters for the admin dashboard."""
    return await get_dashboard_summary(db, current_user)


@router.get("/leads", response_model=RankedLeadsOut)
async def ranked_leads(
    lead_status: Optional[LeadStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_admin),
):
    return await list_leads_by_score(db, current_user, lead_status)


@router.get("/contractors", response_model=ContractorListOut)
async def contractors(
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_admin),
):
    return await list_contractors(db, current_user)


@router.post("/contractors", response_model=ContractorOut, status_code=status.HTTP_201_CREATED)
async def add_contractor(
    payload: ContractorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_admin),
):
    return await create_contractor(db, payload, current_user)


@router.put("/contractors/{contractor_id}", response_model=ContractorOut)
async def edit_contractor(
    contractor_id: UUID,
    payload: ContractorUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_admin),
):
    """Partial update. New zip codes only affect leads routed from now on."""
    return await update_contractor(db, contractor_id, payload, current_user)
