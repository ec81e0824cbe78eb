"""Contractor lookups by login email, id list and service zip, plus admin roster management."""

import logging
from datetime import timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import store_errors
from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.contractor import Contractor
from app.models.lead import Lead
from app.schemas.auth import ActingUser
from app.schemas.contractor import (
    ContractorCreate,
    ContractorListOut,
    ContractorListStats,
    ContractorOut,
    ContractorUpdate,
)
from app.schemas.lead import ContractorLeadsOut, ContractorLeadStats, LeadOut
from app.services.scoring import HIGH_VALUE_LEAD_SCORE, round_half_up
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

RECENT_LEAD_DAYS = 7


async def get_contractor_by_email(db: AsyncSession, email: str) -> Optional[Contractor]:
    """Resolve the contractor record behind a dashboard login."""
    if not email:
        return None
    async with store_errors(db, "look up contractor"):
        result = await db.execute(select(Contractor).where(Contractor.email == email))
        return result.scalar_one_or_none()


async def get_contractors_in_order(db: AsyncSession, contractor_ids: Sequence[UUID]) -> List[Contractor]:
    """Fetch contractors, keeping the caller's order and dropping unknown or repeated ids."""
    async with store_errors(db, "load contractors"):
        result = await db.execute(select(Contractor).where(Contractor.id.in_(set(contractor_ids))))
        by_id = {contractor.id: contractor for contractor in result.scalars().all()}

    ordered = []
    seen = set()
    for contractor_id in contractor_ids:
        if contractor_id in by_id and contractor_id not in seen:
            ordered.append(by_id[contractor_id])
            seen.add(contractor_id)
    return ordered


async def find_eligible_contractors(db: AsyncSession, zip_code: Optional[str]) -> List[Contractor]:
    """Active subscribers whose service area contains the zip."""
    async with store_errors(db, "find eligible contractors"):
        result = await db.execute(
            select(Contractor)
            .where(Contractor.is_active_subscriber.is_(True))
            .order_by(Contractor.created_at)
        )
        contractors = result.scalars().all()
    # Zip lists are JSON, so containment is checked here rather than in SQL.
    return [contractor for contractor in contractors if contractor.serves_zip(zip_code)]


async def get_contractor_leads(db: AsyncSession, acting_user: ActingUser) -> ContractorLeadsOut:
    """Leads in the acting contractor's zip codes, newest first."""
    if not acting_user.is_contractor:
        raise AuthorizationError("Contractor access required")

    contractor = await get_contractor_by_email(db, acting_user.email)
    if contractor is None:
        raise NotFoundError("Contractor record not found. Please contact admin to set up your contractor profile.")

    zip_codes = list(contractor.assigned_zip_codes or [])
    empty_stats = ContractorLeadStats(total_leads=0, high_value_leads=0, recent_leads=0, avg_lead_score=0)
    if not zip_codes and not contractor.serves_all_zipcodes:
        return ContractorLeadsOut(
            leads=[],
            assigned_zip_codes=[],
            stats=empty_stats,
            message="No zip codes assigned yet. Contact admin to assign service areas.",
        )

    query = select(Lead).order_by(Lead.created_at.desc())
    if not contractor.serves_all_zipcodes:
        query = query.where(Lead.zip.in_(zip_codes))

    async with store_errors(db, "load contractor leads"):
        result = await db.execute(query)
        leads = result.scalars().all()

    week_ago = utcnow() - timedelta(days=RECENT_LEAD_DAYS)
    total = len(leads)
    stats = ContractorLeadStats(
        total_leads=total,
        high_value_leads=sum(1 for lead in leads if (lead.overall_score or 0) >= HIGH_VALUE_LEAD_SCORE),
        recent_leads=sum(1 for lead in leads if lead.created_at >= week_ago),
        avg_lead_score=round_half_up(sum(lead.overall_score or 0 for lead in leads) / total) if total else 0,
    )

    logger.info("Contractor %s fetched %d leads", contractor.id, total)
    return ContractorLeadsOut(
        leads=[LeadOut.model_validate(lead) for lead in leads],
        assigned_zip_codes=zip_codes,
        stats=stats,
    )


async def list_contractors(db: AsyncSession, acting_user: ActingUser) -> ContractorListOut:
    """Every contractor, newest first, with roster totals."""
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")

    async with store_errors(db, "load contractors"):
        result = await db.execute(select(Contractor).order_by(Contractor.created_at.desc()))
        contractors = result.scalars().all()

    total = len(contractors)
    zip_codes = set()
    for contractor in contractors:
        zip_codes.update(contractor.assigned_zip_codes or [])
    stats = ContractorListStats(
        total_contractors=total,
        active_subscribers=sum(1 for c in contractors if c.is_active_subscriber),
        total_zip_codes=len(zip_codes),
        avg_conversion_rate=round_half_up(sum(c.conversion_rate or 0 for c in contractors) / total) if total else 0,
        total_leads_received=sum(c.leads_received_count or 0 for c in contractors),
        total_leads_converted=sum(c.leads_converted_count or 0 for c in contractors),
    )
    return ContractorListOut(
        contractors=[ContractorOut.model_validate(c) for c in contractors],
        stats=stats,
    )


async def create_contractor(db: AsyncSession, payload: ContractorCreate, acting_user: ActingUser) -> Contractor:
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")
    if await get_contractor_by_email(db, payload.email) is not None:
        raise ValidationError("A contractor with this email already exists")

    contractor = Contractor(**payload.model_dump())
    async with store_errors(db, "create contractor"):
        db.add(contractor)
        await db.commit()
        await db.refresh(contractor)

    logger.info("Contractor created: %s (%s)", contractor.id, contractor.email)
    return contractor


async def update_contractor(
    db: AsyncSession,
    contractor_id: UUID,
    payload: ContractorUpdate,
    acting_user: ActingUser,
) -> Contractor:
    """Apply the fields the admin sent. Service area changes affect future routing only."""
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")

    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise ValidationError("No contractor updates provided")

    async with store_errors(db, "load contractor"):
        contractor = await db.get(Contractor, contractor_id)
    if contractor is None:
        raise NotFoundError("Contractor not found")

    new_email = updates.get("email")
    if new_email and new_email != contractor.email:
        if await get_contractor_by_email(db, new_email) is not None:
            raise ValidationError("A contractor with this email already exists")

    for field, value in updates.items():
        setattr(contractor, field, value)
    async with store_errors(db, "update contractor"):
        await db.commit()
        await db.refresh(contractor)

    logger.info("Contractor %s updated: %s", contractor.id, sorted(updates))
    return contractor
