"""Tests for the admin dashboard summary."""

import pytest

from app.models.lead import LeadStatus
from app.models.profile import UserRole

from factories import auth_headers, make_contractor, make_lead, make_profile


@pytest.mark.asyncio
async def test_admin_summary_counts(client, db, admin_headers):
    await make_profile(db, "dana@example.com")
    await make_profile(db, "acme@example.com", UserRole.CONTRACTOR)
    await make_contractor(db, "Acme Kitchens", email="acme@example.com")
    await make_contractor(db, "Lapsed Baths", active=False)
    await make_lead(db, probability_to_close_score=60)
    await make_lead(db, status=LeadStatus.ASSIGNED, probability_to_close_score=45)
    await make_lead(db, status=LeadStatus.CONVERTED, probability_to_close_score=100)

    resp = await client.get("/api/v1/admin/summary", headers=admin_headers)

    assert resp.status_code == 200
    data = resp.json()
    assert data["leads"] == {
        "total_leads": 3,
        "new_leads": 1,
        "assigned_leads": 1,
        "quoted_leads": 0,
        "converted_leads": 1,
        "avg_probability_score": 68,
    }
    assert data["users"] == {"total_users": 3, "homeowners": 1, "contractors": 1, "admins": 1}
    assert data["contractors"]["total_contractors"] == 2
    assert data["contractors"]["active_subscribers"] == 1


@pytest.mark.asyncio
async def test_summary_is_admin_only(client, db):
    homeowner = await make_profile(db, "dana@example.com")
    resp = await client.get("/api/v1/admin/summary", headers=auth_headers(homeowner))
    assert resp.status_code == 403
