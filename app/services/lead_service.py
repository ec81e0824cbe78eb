"""Lead capture, lookup, ranking and (re)scoring."""

import asyncio
import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.database import async_session, store_errors
from app.core.exceptions import AuthorizationError, NotFoundError, StoreError
from app.models.lead import Lead, LeadStatus
from app.models.profile import Profile
from app.schemas.auth import ActingUser
from app.schemas.lead import LeadCreate, LeadOut, RankedLeadsOut, RankedLeadStats
from app.schemas.scoring import LeadFacts, LeadScores, ProfileFacts, ScoreRecalculationResult
from app.services.contractor_service import RECENT_LEAD_DAYS, get_contractor_by_email
from app.services.scoring import (
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    LeadScorer,
    default_scorer,
    priority_label,
    round_half_up,
)
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


async def get_lead(db: AsyncSession, lead_id: UUID) -> Optional[Lead]:
    async with store_errors(db, "load lead"):
        result = await db.execute(select(Lead).where(Lead.id == lead_id))
        return result.scalar_one_or_none()


async def get_lead_or_404(db: AsyncSession, lead_id: UUID) -> Lead:
    lead = await get_lead(db, lead_id)
    if lead is None:
        raise NotFoundError("Lead not found")
    return lead


async def get_lead_for_user(db: AsyncSession, lead_id: UUID, acting_user: ActingUser) -> Lead:
    """Admins see every lead, contractors only leads assigned to them, homeowners their own."""
    lead = await get_lead(db, lead_id)
    if acting_user.is_admin:
        if lead is None:
            raise NotFoundError("Lead not found")
        return lead

    if lead is not None:
        if acting_user.is_contractor:
            contractor = await get_contractor_by_email(db, acting_user.email)
            if contractor is not None and lead.assigned_contractor_id == contractor.id:
                return lead
        elif lead.user_id == acting_user.user_id:
            return lead
    raise AuthorizationError("Not authorized to view this lead")


async def get_profile_for_lead(db: AsyncSession, lead: Lead) -> Optional[Profile]:
    """Profiles join to leads by user id, falling back to the lead's email."""
    async with store_errors(db, "load profile"):
        if lead.user_id is not None:
            result = await db.execute(select(Profile).where(Profile.id == lead.user_id))
            profile = result.scalar_one_or_none()
            if profile is not None:
                return profile
        if lead.email:
            result = await db.execute(select(Profile).where(Profile.email == lead.email))
            return result.scalar_one_or_none()
    return None


def apply_scores(lead: Lead, scores: LeadScores) -> None:
    lead.engagement_score = scores.engagement
    lead.intent_score = scores.intent
    lead.lead_quality_score = scores.quality
    lead.probability_to_close_score = scores.probability_to_close
    lead.overall_score = scores.overall


async def rescore_lead(db: AsyncSession, lead: Lead, scorer: LeadScorer = default_scorer) -> LeadScores:
    """Recompute the lead's scores in place. The caller commits."""
    profile = await get_profile_for_lead(db, lead)
    profile_facts = ProfileFacts.model_validate(profile) if profile is not None else ProfileFacts()
    scores = scorer.compute_scores(profile_facts, LeadFacts.model_validate(lead))
    apply_scores(lead, scores)
    return scores


async def create_lead(db: AsyncSession, payload: LeadCreate, scorer: LeadScorer = default_scorer) -> Lead:
    """Store a freshly captured lead with its initial scores."""
    lead = Lead(**payload.model_dump(exclude={"auto_assign"}))
    db.add(lead)

    async with store_errors(db, "save lead"):
        await db.flush()
        scores = await rescore_lead(db, lead, scorer)
        await db.commit()
        await db.refresh(lead)

    logger.info(
        "Created lead %s (%s in %s): overall=%d priority=%s",
        lead.id,
        lead.room_type.value,
        lead.zip or "no zip",
        scores.overall,
        scores.priority,
    )
    return lead


async def _rescore_in_own_session(
    session_factory: async_sessionmaker,
    lead_id: UUID,
    scorer: LeadScorer,
) -> bool:
    try:
        async with session_factory() as session:
            lead = await get_lead(session, lead_id)
            if lead is None:
                return False
            scores = await rescore_lead(session, lead, scorer)
            async with store_errors(session, "save lead scores"):
                await session.commit()
    except StoreError as e:
        logger.error("Failed to update scores for lead %s: %s", lead_id, e)
        return False

    logger.debug("Updated scores for lead %s: overall=%d", lead_id, scores.overall)
    return True


async def recalculate_all_scores(
    db: AsyncSession,
    acting_user: ActingUser,
    session_factory: async_sessionmaker = async_session,
    scorer: LeadScorer = default_scorer,
    batch_size: Optional[int] = None,
) -> ScoreRecalculationResult:
    """Rescore every lead, a batch of leads at a time. Failures are counted, not raised."""
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")

    batch_size = batch_size or settings.SCORE_RECALC_BATCH_SIZE
    async with store_errors(db, "list leads"):
        result = await db.execute(select(Lead.id).order_by(Lead.created_at))
        lead_ids = list(result.scalars().all())

    logger.info("Recalculating scores for %d leads", len(lead_ids))

    updated = 0
    for start in range(0, len(lead_ids), batch_size):
        batch = lead_ids[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(_rescore_in_own_session(session_factory, lead_id, scorer) for lead_id in batch)
        )
        updated += sum(1 for ok in outcomes if ok)
        logger.info(
            "Processed batch %d, updated %d leads so far",
            start // batch_size + 1,
            updated,
        )

    return ScoreRecalculationResult(updated_count=updated, total_leads=len(lead_ids))


def _average(leads, attribute: str) -> int:
    if not leads:
        return 0
    return round_half_up(sum(getattr(lead, attribute) or 0 for lead in leads) / len(leads))


async def list_leads_by_score(
    db: AsyncSession,
    acting_user: ActingUser,
    status: Optional[LeadStatus] = None,
) -> RankedLeadsOut:
    """Every lead ranked by probability to close, highest first, with pipeline stats."""
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")

    query = select(Lead).order_by(Lead.probability_to_close_score.desc(), Lead.created_at.desc())
    if status is not None:
        query = query.where(Lead.status == status)
    async with store_errors(db, "load leads"):
        result = await db.execute(query)
        leads = result.scalars().all()

    labels = [priority_label(lead.probability_to_close_score or 0) for lead in leads]
    week_ago = utcnow() - timedelta(days=RECENT_LEAD_DAYS)
    total = len(leads)
    converted = sum(1 for lead in leads if lead.status == LeadStatus.CONVERTED)
    stats = RankedLeadStats(
        total_leads=total,
        high_value_leads=labels.count(PRIORITY_HIGH),
        medium_value_leads=labels.count(PRIORITY_MEDIUM),
        low_value_leads=labels.count(PRIORITY_LOW),
        avg_probability_score=_average(leads, "probability_to_close_score"),
        avg_intent_score=_average(leads, "intent_score"),
        avg_engagement_score=_average(leads, "engagement_score"),
        avg_lead_quality_score=_average(leads, "lead_quality_score"),
        recent_leads=sum(1 for lead in leads if lead.created_at >= week_ago),
        conversion_rate=converted / total * 100 if total else 0.0,
    )

    logger.info("Admin %s listed %d leads by score", acting_user.user_id, total)
    return RankedLeadsOut(leads=[LeadOut.model_validate(lead) for lead in leads], stats=stats)
