"""Homeowner feedback service."""

import logging
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import store_errors
from app.models.feedback import Feedback
from app.schemas.feedback import FeedbackCreate
from app.services.lead_service import get_lead

logger = logging.getLogger(__name__)


async def submit_feedback(db: AsyncSession, payload: FeedbackCreate) -> Feedback:
    """Store a 1-5 rating, optionally tied to a lead.

    Feedback naming an unknown lead is still stored.
    """
    if payload.lead_id is not None and await get_lead(db, payload.lead_id) is None:
        logger.warning("Feedback references unknown lead %s; storing anyway", payload.lead_id)

    feedback = Feedback(
        lead_id=payload.lead_id,
        rating=payload.rating,
        comment=payload.comment or None,
        source=payload.source or "web",
        page_location=payload.page_location,
    )
    db.add(feedback)
    async with store_errors(db, "save feedback"):
        await db.commit()
        await db.refresh(feedback)

    logger.info("Feedback %s submitted (rating=%d, source=%s)", feedback.id, feedback.rating, feedback.source)
    return feedback
