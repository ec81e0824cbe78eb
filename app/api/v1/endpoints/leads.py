"""Leads endpoints for capture, scoring, routing and status tracking.

- POST /api/v1/leads/ → Capture a lead (optionally auto-assign it)
- POST /api/v1/leads/score → Score lead facts without storing them
- GET /api/v1/leads/assignments → Assignment report (admin)
- POST /api/v1/leads/assign → Manually assign a lead to contractors (admin)
- POST /api/v1/leads/recalculate-scores → Rescore every lead (admin)
- GET /api/v1/leads/{id} → Lead details
- PUT /api/v1/leads/{id}/status → Update lead status
- POST /api/v1/leads/{id}/auto-assign → Route a lead to eligible contractors (admin)
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db
from app.core.deps import (
    get_assignment_service,
    get_current_user,
    get_session_factory,
    require_admin,
)
from app.models.profile import UserRole
from app.schemas.assignment import (
    AssignmentReport,
    AssignmentReportFilter,
    AssignmentResult,
    ManualAssignmentRequest,
)
from app.schemas.auth import ActingUser
from app.schemas.lead import LeadCaptureOut, LeadCreate, LeadOut, LeadStatusUpdate, StatusUpdateResult
from app.schemas.scoring import LeadScores, ScoreRecalculationResult, ScoreRequest
from app.services.assignment_service import LeadAssignmentService, get_assignment_report
from app.services.lead_service import create_lead, get_lead_for_user, recalculate_all_scores
from app.services.lead_status_service import update_lead_status
from app.services.scoring import compute_scores

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=LeadCaptureOut, status_code=status.HTTP_201_CREATED)
async def capture_lead(
    payload: LeadCreate,
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(get_current_user),
    assignments: LeadAssignmentService = Depends(get_assignment_service),
):
    """Store a lead captured after a render and score it."""
    if payload.user_id is None and current_user.role == UserRole.HOMEOWNER:
        payload.user_id = current_user.user_id

    lead = await create_lead(db, payload)

    result = None
    if payload.auto_assign:
        result = await assignments.assign_lead_automatically(lead.id)

    return LeadCaptureOut(lead=LeadOut.model_validate(lead), assignment=result)


@router.post("/score", response_model=LeadScores)
async def score_lead(
    payload: ScoreRequest,
    current_user: ActingUser = Depends(get_current_user),
):
    """Compute scores for the given facts. Nothing is stored."""
    return compute_scores(payload.profile, payload.lead)


@router.get("/assignments", response_model=AssignmentReport)
async def list_assignments(
    date_range: Optional[str] = Query(None, pattern="^(7d|30d|90d|all)$"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(require_admin),
):
    filters = AssignmentReportFilter(date_range=date_range, start_date=start_date, end_date=end_date)
    return await get_assignment_report(db, current_user, filters)


@router.post("/assign", response_model=AssignmentResult)
async def assign_lead(
    payload: ManualAssignmentRequest,
    current_user: ActingUser = Depends(require_admin),
    assignments: LeadAssignmentService = Depends(get_assignment_service),
):
    """Route a lead to the listed contractors. Per-contractor failures are in the results."""
    return await assignments.assign_lead_manually(payload.lead_id, payload.contractor_ids, current_user)


@router.post("/recalculate-scores", response_model=ScoreRecalculationResult)
async def recalculate_scores(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    current_user: ActingUser = Depends(require_admin),
):
    result = await recalculate_all_scores(db, current_user, session_factory=session_factory)
    logger.info("Score recalculation: %d of %d leads updated", result.updated_count, result.total_leads)
    return result


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(get_current_user),
):
    return await get_lead_for_user(db, lead_id, current_user)


@router.put("/{lead_id}/status", response_model=StatusUpdateResult)
async def change_lead_status(
    lead_id: UUID,
    payload: LeadStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: ActingUser = Depends(get_current_user),
):
    """Admins may update any lead; contractors only the lead assigned to them."""
    return await update_lead_status(
        db,
        lead_id,
        payload.new_status,
        current_user,
        notes=payload.contractor_notes,
        conversion_value=payload.conversion_value,
    )


@router.post("/{lead_id}/auto-assign", response_model=AssignmentResult)
async def auto_assign_lead(
    lead_id: UUID,
    current_user: ActingUser = Depends(require_admin),
    assignments: LeadAssignmentService = Depends(get_assignment_service),
):
    return await assignments.assign_lead_automatically(lead_id)
