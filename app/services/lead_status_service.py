"""Lead status transitions.

Admins may move any lead to any status. A contractor may only move the lead
currently assigned to them, and doing so records their response on the
matching assignment row. The read-then-write below is not version checked:
two simultaneous updates to one lead resolve as last write wins.
"""

import logging
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import store_errors
from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.contractor import Contractor
from app.models.lead import CONTACT_STATUSES, Lead, LeadStatus
from app.models.lead_assignment import LeadAssignment
from app.schemas.auth import ActingUser
from app.schemas.lead import LeadOut, StatusUpdateResult
from app.services.contractor_service import get_contractor_by_email
from app.services.lead_service import get_lead, rescore_lead
from app.services.scoring import LeadScorer, default_scorer, round_half_up
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

# Response time is only measured for the contractor's first move on the lead.
RESPONSE_TIMED_STATUSES = frozenset({LeadStatus.NEW, LeadStatus.ASSIGNED})

VALID_STATUSES = ", ".join(status.value for status in LeadStatus)


def parse_status(new_status: Union[str, LeadStatus, None]) -> LeadStatus:
    if not new_status:
        raise ValidationError("Lead ID and new status are required")
    try:
        return LeadStatus(new_status)
    except ValueError:
        raise ValidationError(f"Invalid status. Must be one of: {VALID_STATUSES}")


async def _authorize(db: AsyncSession, lead: Optional[Lead], acting_user: ActingUser) -> Optional[Contractor]:
    """Return the acting contractor (None for admins) or raise.

    Non-admins get the same error whether or not the lead exists.
    """
    if acting_user.is_admin:
        if lead is None:
            raise NotFoundError("Lead not found")
        return None

    if acting_user.is_contractor:
        contractor = await get_contractor_by_email(db, acting_user.email)
        if (
            contractor is not None
            and lead is not None
            and lead.assigned_contractor_id == contractor.id
        ):
            return contractor
        logger.warning("Contractor %s not authorized for lead update", acting_user.email)

    raise AuthorizationError("Not authorized to update this lead")


def response_time_hours(lead: Lead, now) -> int:
    started = lead.sent_at or lead.created_at
    return round_half_up((now - started).total_seconds() / 3600)


async def update_lead_status(
    db: AsyncSession,
    lead_id: UUID,
    new_status: Union[str, LeadStatus],
    acting_user: ActingUser,
    notes: Optional[str] = None,
    conversion_value: Optional[Decimal] = None,
    scorer: LeadScorer = default_scorer,
) -> StatusUpdateResult:
    """Validate, authorize and apply a status change with its side effects."""
    if not lead_id:
        raise ValidationError("Lead ID and new status are required")
    status = parse_status(new_status)

    lead = await get_lead(db, lead_id)
    contractor = await _authorize(db, lead, acting_user)

    previous_status = lead.status
    now = utcnow()

    lead.status = status
    if status in CONTACT_STATUSES:
        lead.last_contacted_at = now
    if notes is not None:
        lead.contractor_notes = notes
    if status == LeadStatus.CONVERTED:
        if conversion_value is not None:
            lead.conversion_value = conversion_value
    else:
        # Conversion value only describes converted leads.
        lead.conversion_value = None

    await rescore_lead(db, lead, scorer)

    async with store_errors(db, "update lead status"):
        if contractor is not None:
            response = {"contractor_responded": True}
            if previous_status in RESPONSE_TIMED_STATUSES:
                response["response_time_hours"] = response_time_hours(lead, now)
            await db.execute(
                update(LeadAssignment)
                .where(
                    LeadAssignment.lead_id == lead.id,
                    LeadAssignment.contractor_id == contractor.id,
                )
                .values(**response)
            )
        await db.commit()
        await db.refresh(lead)

    logger.info(
        "Lead %s status %s -> %s by %s (%s)",
        lead.id,
        previous_status.value,
        status.value,
        acting_user.email,
        acting_user.role.value,
    )
    return StatusUpdateResult(lead=LeadOut.model_validate(lead), previous_status=previous_status)
