"""Lead assignment: route a lead to contractors and notify each of them.

Every contractor gets an independent task with its own database session:
insert the assignment row, send the notification, mark the email as sent. A
failure in one task is reported in that contractor's result and never touches
the others. The lead row is written once, after all tasks have finished, by
the caller's session.
"""

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import async_session, store_errors
from app.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from app.models.contractor import Contractor
from app.models.lead import Lead, LeadStatus
from app.models.lead_assignment import AssignmentMethod, LeadAssignment
from app.schemas.assignment import (
    AssignmentOut,
    AssignmentReport,
    AssignmentReportFilter,
    AssignmentResult,
    AssignmentStats,
    ContractorAssignmentResult,
)
from app.schemas.auth import ActingUser
from app.services.contractor_service import find_eligible_contractors, get_contractors_in_order
from app.services.lead_service import get_lead_or_404, rescore_lead
from app.services.notification_service import ContractorNotifier, EmailContractorNotifier
from app.services.scoring import LeadScorer, default_scorer
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

# Automatic routing needs a stronger intent signal when no quote was requested.
AUTO_ASSIGN_MIN_INTENT_WITH_QUOTE = 30
AUTO_ASSIGN_MIN_INTENT = 50


def auto_assign_threshold(lead: Lead) -> int:
    return AUTO_ASSIGN_MIN_INTENT_WITH_QUOTE if lead.wants_quote else AUTO_ASSIGN_MIN_INTENT


class LeadAssignmentService:
    """Fan-out assignment of one lead to many contractors."""

    def __init__(
        self,
        db: AsyncSession,
        session_factory: async_sessionmaker = async_session,
        notifier: Optional[ContractorNotifier] = None,
        scorer: LeadScorer = default_scorer,
    ):
        self.db = db
        self.session_factory = session_factory
        self.notifier = notifier or EmailContractorNotifier()
        self.scorer = scorer

    async def assign_lead_manually(
        self,
        lead_id: UUID,
        contractor_ids: Sequence[UUID],
        acting_user: ActingUser,
    ) -> AssignmentResult:
        """Admin routes a lead to the listed contractors."""
        if not acting_user.is_admin:
            raise AuthorizationError("Admin access required")
        if not lead_id or not contractor_ids:
            raise ValidationError("Lead ID and contractor IDs array are required")

        logger.info("Manual lead assignment request: lead=%s contractors=%s", lead_id, list(contractor_ids))

        lead = await get_lead_or_404(self.db, lead_id)
        contractors = await get_contractors_in_order(self.db, contractor_ids)
        if not contractors:
            raise NotFoundError("No valid contractors found")

        return await self._assign(lead, contractors, AssignmentMethod.MANUAL)

    async def assign_lead_automatically(self, lead_id: UUID) -> AssignmentResult:
        """Route a lead to every active contractor serving its zip, if it is strong enough."""
        lead = await get_lead_or_404(self.db, lead_id)

        threshold = auto_assign_threshold(lead)
        if lead.intent_score < threshold:
            logger.info(
                "Lead %s intent %d below auto-assignment threshold %d",
                lead.id,
                lead.intent_score,
                threshold,
            )
            return self._empty_result(lead, AssignmentMethod.AUTOMATIC)

        contractors = await find_eligible_contractors(self.db, lead.zip)
        if not contractors:
            logger.info("No eligible contractors for lead %s in zip %s", lead.id, lead.zip)
            return self._empty_result(lead, AssignmentMethod.AUTOMATIC)

        return await self._assign(lead, contractors, AssignmentMethod.AUTOMATIC)

    async def _assign(
        self,
        lead: Lead,
        contractors: List[Contractor],
        method: AssignmentMethod,
    ) -> AssignmentResult:
        outcomes = await asyncio.gather(
            *(self._assign_one(lead, contractor, method) for contractor in contractors),
            return_exceptions=True,
        )
        results = [
            self._unexpected_failure(contractor, outcome) if isinstance(outcome, BaseException) else outcome
            for contractor, outcome in zip(contractors, outcomes)
        ]
        successes = sum(1 for result in results if result.success)

        if successes:
            # The first requested contractor becomes primary even when only a
            # later contractor's notification went through.
            await self._mark_lead_assigned(lead, contractors[0])

        logger.info(
            "Lead %s assigned to %d of %d contractor(s) (%s)",
            lead.id,
            successes,
            len(contractors),
            method.value,
        )
        return AssignmentResult(
            lead_id=lead.id,
            method=method,
            results=results,
            successful_assignments=successes,
            total_attempted=len(contractors),
        )

    async def _assign_one(
        self,
        lead: Lead,
        contractor: Contractor,
        method: AssignmentMethod,
    ) -> ContractorAssignmentResult:
        try:
            assignment_id = await self._create_assignment(lead.id, contractor.id, method)
        except StoreError as e:
            logger.error("Failed to create assignment for contractor %s: %s", contractor.name, e)
            return ContractorAssignmentResult(
                contractor_id=contractor.id,
                contractor_name=contractor.name,
                success=False,
                error=str(e),
            )

        try:
            await self.notifier.notify(contractor, lead, assignment_id)
        except Exception as e:
            # Any notifier failure is this contractor's failure only.
            logger.error("Email failed for contractor %s: %s", contractor.name, e)
            return ContractorAssignmentResult(
                contractor_id=contractor.id,
                contractor_name=contractor.name,
                success=False,
                assignment_id=assignment_id,
                error="Assignment created but email failed",
            )

        try:
            await self._mark_email_sent(assignment_id)
        except StoreError as e:
            logger.error("Email sent to %s but assignment %s not updated: %s", contractor.name, assignment_id, e)
            return ContractorAssignmentResult(
                contractor_id=contractor.id,
                contractor_name=contractor.name,
                success=False,
                assignment_id=assignment_id,
                error="Email sent but assignment could not be updated",
            )

        logger.info("Assignment %s successful for %s", assignment_id, contractor.name)
        return ContractorAssignmentResult(
            contractor_id=contractor.id,
            contractor_name=contractor.name,
            success=True,
            assignment_id=assignment_id,
        )

    async def _create_assignment(self, lead_id: UUID, contractor_id: UUID, method: AssignmentMethod) -> UUID:
        async with self.session_factory() as session:
            async with store_errors(session, "create lead assignment"):
                assignment = LeadAssignment(
                    lead_id=lead_id,
                    contractor_id=contractor_id,
                    assignment_method=method,
                    email_sent=False,
                )
                session.add(assignment)
                await session.flush()
                assignment_id = assignment.id
                await session.commit()
        return assignment_id

    async def _mark_email_sent(self, assignment_id: UUID) -> None:
        async with self.session_factory() as session:
            async with store_errors(session, "mark assignment email as sent"):
                await session.execute(
                    update(LeadAssignment)
                    .where(LeadAssignment.id == assignment_id)
                    .values(email_sent=True)
                )
                await session.commit()

    async def _mark_lead_assigned(self, lead: Lead, primary: Contractor) -> None:
        lead.status = LeadStatus.ASSIGNED
        lead.assigned_contractor_id = primary.id
        lead.sent_at = utcnow()
        await rescore_lead(self.db, lead, self.scorer)
        async with store_errors(self.db, "update assigned lead"):
            await self.db.commit()
            await self.db.refresh(lead)

    @staticmethod
    def _unexpected_failure(contractor: Contractor, error: BaseException) -> ContractorAssignmentResult:
        logger.error(
            "Unexpected error assigning lead to contractor %s",
            contractor.name,
            exc_info=error,
        )
        return ContractorAssignmentResult(
            contractor_id=contractor.id,
            contractor_name=contractor.name,
            success=False,
            error="Unexpected error during assignment",
        )

    @staticmethod
    def _empty_result(lead: Lead, method: AssignmentMethod) -> AssignmentResult:
        return AssignmentResult(
            lead_id=lead.id,
            method=method,
            results=[],
            successful_assignments=0,
            total_attempted=0,
        )


DATE_RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}


async def get_assignment_report(
    db: AsyncSession,
    acting_user: ActingUser,
    filters: Optional[AssignmentReportFilter] = None,
) -> AssignmentReport:
    """All assignments, newest first, with delivery and response stats."""
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")
    filters = filters or AssignmentReportFilter()

    query = (
        select(LeadAssignment, Lead.status, Contractor.name)
        .join(Lead, LeadAssignment.lead_id == Lead.id)
        .join(Contractor, LeadAssignment.contractor_id == Contractor.id)
        .order_by(LeadAssignment.assigned_at.desc())
    )
    if filters.date_range in DATE_RANGE_DAYS:
        query = query.where(
            LeadAssignment.assigned_at >= utcnow() - timedelta(days=DATE_RANGE_DAYS[filters.date_range])
        )
    elif filters.date_range is None:
        if filters.start_date:
            query = query.where(LeadAssignment.assigned_at >= datetime.combine(filters.start_date, time.min))
        if filters.end_date:
            query = query.where(LeadAssignment.assigned_at <= datetime.combine(filters.end_date, time.max))

    async with store_errors(db, "load lead assignments"):
        result = await db.execute(query)
        rows = result.all()

    assignments = []
    for assignment, lead_status, contractor_name in rows:
        out = AssignmentOut.model_validate(assignment)
        out.lead_status = lead_status
        out.contractor_name = contractor_name
        assignments.append(out)

    total = len(assignments)
    timed = [a.response_time_hours for a in assignments if a.response_time_hours]
    stats = AssignmentStats(
        total_assignments=total,
        emails_sent=sum(1 for a in assignments if a.email_sent),
        emails_opened=sum(1 for a in assignments if a.email_opened),
        emails_clicked=sum(1 for a in assignments if a.email_clicked),
        contractor_responses=sum(1 for a in assignments if a.contractor_responded),
        avg_response_time_hours=sum(timed) / len(timed) if timed else 0.0,
        conversion_rate=(
            sum(1 for a in assignments if a.lead_status == LeadStatus.CONVERTED) / total * 100
            if total else 0.0
        ),
    )
    return AssignmentReport(assignments=assignments, stats=stats)
