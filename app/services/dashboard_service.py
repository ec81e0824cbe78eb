"""Admin dashboard summary counters."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import store_errors
from app.core.exceptions import AuthorizationError
from app.models.contractor import Contractor
from app.models.lead import Lead, LeadStatus
from app.models.profile import Profile, UserRole
from app.schemas.auth import ActingUser
from app.schemas.dashboard import ContractorSummary, DashboardSummary, LeadSummary, UserSummary
from app.services.scoring import round_half_up


async def get_dashboard_summary(db: AsyncSession, acting_user: ActingUser) -> DashboardSummary:
    if not acting_user.is_admin:
        raise AuthorizationError("Admin access required")

    async with store_errors(db, "load dashboard summary"):
        lead_rows = await db.execute(
            select(Lead.status, func.count(Lead.id), func.sum(Lead.probability_to_close_score))
            .group_by(Lead.status)
        )
        role_rows = await db.execute(select(Profile.role, func.count(Profile.id)).group_by(Profile.role))
        contractor_row = await db.execute(
            select(
                func.count(Contractor.id),
                func.count(Contractor.id).filter(Contractor.is_active_subscriber.is_(True)),
                func.avg(Contractor.conversion_rate),
            )
        )

    leads_by_status = {}
    probability_total = 0
    for status, count, probability_sum in lead_rows.all():
        leads_by_status[status] = count
        probability_total += probability_sum or 0
    total_leads = sum(leads_by_status.values())

    users_by_role = dict(role_rows.all())
    total_contractors, active_subscribers, avg_conversion = contractor_row.one()

    return DashboardSummary(
        leads=LeadSummary(
            total_leads=total_leads,
            new_leads=leads_by_status.get(LeadStatus.NEW, 0),
            assigned_leads=leads_by_status.get(LeadStatus.ASSIGNED, 0),
            quoted_leads=leads_by_status.get(LeadStatus.QUOTED, 0),
            converted_leads=leads_by_status.get(LeadStatus.CONVERTED, 0),
            avg_probability_score=round_half_up(probability_total / total_leads) if total_leads else 0,
        ),
        users=UserSummary(
            total_users=sum(users_by_role.values()),
            homeowners=users_by_role.get(UserRole.HOMEOWNER, 0),
            contractors=users_by_role.get(UserRole.CONTRACTOR, 0),
            admins=users_by_role.get(UserRole.ADMIN, 0),
        ),
        contractors=ContractorSummary(
            total_contractors=total_contractors or 0,
            active_subscribers=active_subscribers or 0,
            avg_conversion_rate=round(avg_conversion or 0.0, 2),
        ),
    )
