"""Tests for homeowner feedback."""

import uuid

import pytest

from factories import make_lead


@pytest.mark.asyncio
async def test_submit_feedback_for_lead(client, db):
    lead = await make_lead(db)

    resp = await client.post("/api/v1/feedback/", json={
        "lead_id": str(lead.id),
        "rating": 5,
        "comment": "The kitchen render was spot on",
        "page_location": "/results",
    })

    assert resp.status_code == 201
    data = resp.json()
    assert data["rating"] == 5
    assert data["lead_id"] == str(lead.id)
    assert data["source"] == "web"
    assert data["created_at"]


@pytest.mark.asyncio
async def test_feedback_for_unknown_lead_is_kept(client, caplog):
    missing = uuid.uuid4()

    resp = await client.post("/api/v1/feedback/", json={"lead_id": str(missing), "rating": 2})

    assert resp.status_code == 201
    assert resp.json()["lead_id"] == str(missing)
    assert "unknown lead" in caplog.text


@pytest.mark.asyncio
async def test_feedback_without_lead(client):
    resp = await client.post("/api/v1/feedback/", json={"rating": 4, "source": "email"})
    assert resp.status_code == 201
    assert resp.json()["lead_id"] is None
    assert resp.json()["source"] == "email"


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6])
async def test_feedback_rating_out_of_range(client, rating):
    resp = await client.post("/api/v1/feedback/", json={"rating": rating})
    assert resp.status_code == 422
