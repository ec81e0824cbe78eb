"""Tests for routing leads to contractors."""

import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import select

from app.core.exceptions import AuthorizationError, NotFoundError, StoreError, ValidationError
from app.models.lead import LeadStatus
from app.models.lead_assignment import AssignmentMethod, LeadAssignment
from app.models.profile import UserRole
from app.schemas.assignment import AssignmentReportFilter
from app.schemas.auth import ActingUser
from app.services.assignment_service import LeadAssignmentService, get_assignment_report
from app.utils.clock import utcnow

from factories import RecordingNotifier, make_contractor, make_lead, make_profile

ADMIN = ActingUser(user_id=uuid.uuid4(), role=UserRole.ADMIN, email="admin@example.com")
HOMEOWNER = ActingUser(user_id=uuid.uuid4(), role=UserRole.HOMEOWNER, email="dana@example.com")


@pytest.fixture
def service_for(db, session_factory):
    def build(notifier):
        return LeadAssignmentService(db, session_factory=session_factory, notifier=notifier)
    return build


async def assignments_for(db, lead_id):
    result = await db.execute(select(LeadAssignment).where(LeadAssignment.lead_id == lead_id))
    return result.scalars().all()


@pytest.mark.asyncio
async def test_manual_assignment_survives_one_failed_notification(db, service_for):
    """One contractor's email failing leaves the other two assignments intact."""
    lead = await make_lead(db)
    first = await make_contractor(db, "First Builders")
    second = await make_contractor(db, "Second Builders")
    third = await make_contractor(db, "Third Builders")
    notifier = RecordingNotifier()
    notifier.fail_for.add(second.id)

    result = await service_for(notifier).assign_lead_manually(
        lead.id, [first.id, second.id, third.id], ADMIN
    )

    assert result.successful_assignments == 2
    assert result.total_attempted == 3
    assert result.message == "Lead assigned to 2 contractor(s)"
    by_contractor = {r.contractor_id: r for r in result.results}
    assert by_contractor[first.id].success is True
    assert by_contractor[third.id].success is True
    assert by_contractor[second.id].success is False
    assert by_contractor[second.id].error == "Assignment created but email failed"
    assert by_contractor[second.id].assignment_id is not None

    await db.refresh(lead)
    assert lead.status == LeadStatus.ASSIGNED
    assert lead.assigned_contractor_id == first.id
    assert lead.sent_at is not None

    rows = {row.contractor_id: row for row in await assignments_for(db, lead.id)}
    assert len(rows) == 3
    assert rows[first.id].email_sent is True
    assert rows[second.id].email_sent is False
    assert rows[third.id].assignment_method == AssignmentMethod.MANUAL


@pytest.mark.asyncio
async def test_primary_contractor_is_first_requested_even_if_its_email_failed(db, service_for):
    lead = await make_lead(db)
    first = await make_contractor(db, "First Builders")
    second = await make_contractor(db, "Second Builders")
    notifier = RecordingNotifier()
    notifier.fail_for.add(first.id)

    result = await service_for(notifier).assign_lead_manually(lead.id, [first.id, second.id], ADMIN)

    assert result.successful_assignments == 1
    await db.refresh(lead)
    assert lead.assigned_contractor_id == first.id


@pytest.mark.asyncio
async def test_lead_untouched_when_every_notification_fails(db, service_for):
    lead = await make_lead(db)
    only = await make_contractor(db, "Only Builders")
    notifier = RecordingNotifier()
    notifier.fail_for.add(only.id)

    result = await service_for(notifier).assign_lead_manually(lead.id, [only.id], ADMIN)

    assert result.successful_assignments == 0
    await db.refresh(lead)
    assert lead.status == LeadStatus.NEW
    assert lead.assigned_contractor_id is None
    assert len(await assignments_for(db, lead.id)) == 1


@pytest.mark.asyncio
async def test_assignment_rescores_lead_as_assigned(db, service_for):
    lead = await make_lead(db, created_at=utcnow() - timedelta(days=10))
    contractor = await make_contractor(db, "Solo Builders")

    await service_for(RecordingNotifier()).assign_lead_manually(lead.id, [contractor.id], ADMIN)

    await db.refresh(lead)
    # Stale "new" decay no longer applies once the lead is assigned.
    assert lead.probability_to_close_score == 63
    assert lead.overall_score == 67


@pytest.mark.asyncio
async def test_unknown_contractor_ids_are_skipped(db, service_for):
    lead = await make_lead(db)
    known = await make_contractor(db, "Known Builders")
    notifier = RecordingNotifier()

    result = await service_for(notifier).assign_lead_manually(
        lead.id, [uuid.uuid4(), known.id], ADMIN
    )

    assert result.total_attempted == 1
    assert [sent[0] for sent in notifier.sent] == [known.id]


@pytest.mark.asyncio
async def test_manual_assignment_requires_admin(db, service_for):
    lead = await make_lead(db)
    contractor = await make_contractor(db, "Any Builders")

    with pytest.raises(AuthorizationError):
        await service_for(RecordingNotifier()).assign_lead_manually(lead.id, [contractor.id], HOMEOWNER)


@pytest.mark.asyncio
async def test_manual_assignment_requires_contractors(db, service_for):
    lead = await make_lead(db)
    with pytest.raises(ValidationError):
        await service_for(RecordingNotifier()).assign_lead_manually(lead.id, [], ADMIN)


@pytest.mark.asyncio
async def test_manual_assignment_unknown_lead(db, service_for):
    contractor = await make_contractor(db, "Any Builders")
    with pytest.raises(NotFoundError):
        await service_for(RecordingNotifier()).assign_lead_manually(uuid.uuid4(), [contractor.id], ADMIN)


@pytest.mark.asyncio
async def test_manual_assignment_no_valid_contractors(db, service_for):
    lead = await make_lead(db)
    with pytest.raises(NotFoundError, match="No valid contractors found"):
        await service_for(RecordingNotifier()).assign_lead_manually(lead.id, [uuid.uuid4()], ADMIN)


@pytest.mark.asyncio
async def test_automatic_assignment_routes_to_active_contractors_in_zip(db, service_for):
    lead = await make_lead(db, zip="01760", intent_score=85)
    local = await make_contractor(db, "Natick Kitchens", zips=["01760"])
    everywhere = await make_contractor(db, "Statewide Remodel", zips=[], serves_all=True)
    await make_contractor(db, "Lapsed Kitchens", zips=["01760"], active=False)
    await make_contractor(db, "Far Away Baths", zips=["02481"])
    notifier = RecordingNotifier()

    result = await service_for(notifier).assign_lead_automatically(lead.id)

    assert result.method == AssignmentMethod.AUTOMATIC
    assert {r.contractor_id for r in result.results} == {local.id, everywhere.id}
    assert result.successful_assignments == 2
    await db.refresh(lead)
    assert lead.status == LeadStatus.ASSIGNED


@pytest.mark.asyncio
async def test_automatic_assignment_skips_weak_leads(db, service_for):
    # No quote request, so the bar is 50
    lead = await make_lead(db, wants_quote=False, intent_score=45)
    await make_contractor(db, "Framingham Kitchens")
    notifier = RecordingNotifier()

    result = await service_for(notifier).assign_lead_automatically(lead.id)

    assert result.total_attempted == 0
    assert notifier.sent == []
    await db.refresh(lead)
    assert lead.status == LeadStatus.NEW


@pytest.mark.asyncio
async def test_automatic_assignment_lower_bar_for_quote_requests(db, service_for):
    lead = await make_lead(db, wants_quote=True, intent_score=30)
    await make_contractor(db, "Framingham Kitchens")

    result = await service_for(RecordingNotifier()).assign_lead_automatically(lead.id)

    assert result.successful_assignments == 1


@pytest.mark.asyncio
async def test_assignment_report_stats(db):
    homeowner = await make_profile(db, "dana@example.com")
    lead = await make_lead(db, user_id=homeowner.id)
    converted = await make_lead(db, status=LeadStatus.CONVERTED)
    contractor = await make_contractor(db, "Report Builders")
    db.add_all([
        LeadAssignment(lead_id=lead.id, contractor_id=contractor.id, email_sent=True,
                       contractor_responded=True, response_time_hours=4),
        LeadAssignment(lead_id=converted.id, contractor_id=contractor.id, email_sent=True,
                       email_opened=True, contractor_responded=True, response_time_hours=2),
        LeadAssignment(lead_id=lead.id, contractor_id=contractor.id, email_sent=False,
                       assigned_at=utcnow() - timedelta(days=45)),
    ])
    await db.commit()

    report = await get_assignment_report(db, ADMIN)

    assert report.stats.total_assignments == 3
    assert report.stats.emails_sent == 2
    assert report.stats.emails_opened == 1
    assert report.stats.contractor_responses == 2
    assert report.stats.avg_response_time_hours == 3.0
    assert report.stats.conversion_rate == pytest.approx(100 / 3)
    assert report.assignments[0].contractor_name == "Report Builders"
    assert report.assignments[-1].email_sent is False

    recent = await get_assignment_report(db, ADMIN, AssignmentReportFilter(date_range="30d"))
    assert recent.stats.total_assignments == 2

    windowed = await get_assignment_report(
        db, ADMIN, AssignmentReportFilter(end_date=date.today() - timedelta(days=40))
    )
    assert windowed.stats.total_assignments == 1


@pytest.mark.asyncio
async def test_assignment_report_requires_admin(db):
    with pytest.raises(AuthorizationError):
        await get_assignment_report(db, HOMEOWNER)


class FailingWritesService(LeadAssignmentService):
    """Assignment service whose per-contractor writes fail for chosen contractors."""

    def __init__(self, *args, insert_error=None, insert_fails_for=(), mark_sent_fails_for=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.insert_error = insert_error or StoreError("Could not create lead assignment")
        self.insert_fails_for = set(insert_fails_for)
        self.mark_sent_fails_for = set(mark_sent_fails_for)
        self.contractor_by_assignment = {}

    async def _create_assignment(self, lead_id, contractor_id, method):
        if contractor_id in self.insert_fails_for:
            raise self.insert_error
        assignment_id = await super()._create_assignment(lead_id, contractor_id, method)
        self.contractor_by_assignment[assignment_id] = contractor_id
        return assignment_id

    async def _mark_email_sent(self, assignment_id):
        if self.contractor_by_assignment[assignment_id] in self.mark_sent_fails_for:
            raise StoreError("Could not mark assignment email as sent")
        await super()._mark_email_sent(assignment_id)


@pytest.mark.asyncio
async def test_store_error_on_one_insert_leaves_other_contractors_assigned(db, session_factory):
    lead = await make_lead(db)
    first = await make_contractor(db, "First Builders")
    second = await make_contractor(db, "Second Builders")
    third = await make_contractor(db, "Third Builders")
    notifier = RecordingNotifier()
    service = FailingWritesService(db, session_factory=session_factory, notifier=notifier,
                                   insert_fails_for={second.id})

    result = await service.assign_lead_manually(lead.id, [first.id, second.id, third.id], ADMIN)

    assert result.successful_assignments == 2
    assert result.total_attempted == 3
    by_contractor = {r.contractor_id: r for r in result.results}
    assert by_contractor[second.id].success is False
    assert by_contractor[second.id].assignment_id is None
    assert by_contractor[second.id].error == "Could not create lead assignment"
    assert by_contractor[first.id].success is True
    assert by_contractor[third.id].success is True
    assert {sent[0] for sent in notifier.sent} == {first.id, third.id}

    await db.refresh(lead)
    assert lead.status == LeadStatus.ASSIGNED
    assert lead.assigned_contractor_id == first.id
    rows = {row.contractor_id for row in await assignments_for(db, lead.id)}
    assert rows == {first.id, third.id}


@pytest.mark.asyncio
async def test_email_sent_but_row_not_updated_is_a_failure(db, session_factory):
    lead = await make_lead(db)
    first = await make_contractor(db, "First Builders")
    second = await make_contractor(db, "Second Builders")
    service = FailingWritesService(db, session_factory=session_factory, notifier=RecordingNotifier(),
                                   mark_sent_fails_for={first.id})

    result = await service.assign_lead_manually(lead.id, [first.id, second.id], ADMIN)

    assert result.successful_assignments == 1
    failed = next(r for r in result.results if r.contractor_id == first.id)
    assert failed.success is False
    assert failed.assignment_id is not None
    assert failed.error == "Email sent but assignment could not be updated"

    rows = {row.contractor_id: row for row in await assignments_for(db, lead.id)}
    assert rows[first.id].email_sent is False
    assert rows[second.id].email_sent is True


@pytest.mark.asyncio
async def test_unexpected_task_error_does_not_abort_the_others(db, session_factory):
    lead = await make_lead(db)
    first = await make_contractor(db, "First Builders")
    second = await make_contractor(db, "Second Builders")
    service = FailingWritesService(db, session_factory=session_factory, notifier=RecordingNotifier(),
                                   insert_error=RuntimeError("connection reset"),
                                   insert_fails_for={first.id})

    result = await service.assign_lead_manually(lead.id, [first.id, second.id], ADMIN)

    assert [r.contractor_id for r in result.results] == [first.id, second.id]
    assert result.results[0].success is False
    assert result.results[0].error == "Unexpected error during assignment"
    assert result.results[1].success is True
    await db.refresh(lead)
    assert lead.status == LeadStatus.ASSIGNED
