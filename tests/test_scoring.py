"""Tests for the lead scoring calculators."""

import random
from datetime import datetime, timedelta

import pytest

from app.models.lead import LeadStatus
from app.schemas.scoring import LeadFacts, ProfileFacts
from app.services.scoring import LeadScorer, compute_scores, priority_label, round_half_up
from app.services.scoring_tables import build_tables, normalize_style

NOW = datetime(2026, 6, 1, 12, 0, 0)


@pytest.fixture
def scorer():
    return LeadScorer(clock=lambda: NOW)


def full_lead(**overrides):
    values = dict(
        name="Dana",
        email="dana@example.com",
        phone="508-555-0101",
        zip="01701",
        room_type="kitchen",
        style="Modern Minimalist",
        render_count=1,
        wants_quote=True,
    )
    values.update(overrides)
    return LeadFacts(**values)


def test_compute_scores_for_typical_quote_request():
    """A contactable kitchen lead in a medium-tier zip asking for a quote."""
    scores = compute_scores(None, full_lead())

    assert scores.engagement == 10
    assert scores.intent == 85
    assert scores.quality == 90
    assert scores.probability_to_close == 63
    assert scores.overall == 67
    assert scores.priority == "medium"


def test_intent_is_capped_at_100(scorer):
    lead = full_lead(render_count=4, social_engaged=True)
    assert scorer.intent_score(lead) == 100


def test_intent_without_contact_details(scorer):
    lead = LeadFacts(render_count=2)
    assert scorer.intent_score(lead) == 15


def test_engagement_caps_each_signal(scorer):
    profile = ProfileFacts(login_count=10, total_time_on_site_ms=45 * 60 * 1000, ai_renderings_count=7)
    lead = full_lead(is_repeat_visitor=True)
    assert scorer.engagement_score(profile, lead) == 100


def test_engagement_prefers_profile_render_count(scorer):
    profile = ProfileFacts(ai_renderings_count=3)
    lead = full_lead(render_count=1)
    assert scorer.engagement_score(profile, lead) == 30


def test_engagement_treats_missing_profile_numbers_as_zero(scorer):
    profile = ProfileFacts(login_count=None, total_time_on_site_ms=None, ai_renderings_count=None)
    assert scorer.engagement_score(profile, full_lead(render_count=2)) == 20


def test_scores_round_half_up(scorer):
    """2.5 minutes on site plus one render is 12.5 points, which scores 13."""
    profile = ProfileFacts(total_time_on_site_ms=150_000)
    assert scorer.engagement_score(profile, full_lead()) == 13
    assert round_half_up(62.5) == 63
    assert round_half_up(0.49) == 0


def test_quality_ignores_unknown_style_and_room(scorer):
    lead = LeadFacts(style="Art Deco", room_type=None)
    assert scorer.quality_score(10, lead) == 6


def test_quality_style_lookup_normalizes_case_and_spaces(scorer):
    assert normalize_style("Contemporary  Luxe") == "contemporary-luxe"
    assert scorer.style_bonus("Contemporary Luxe") == pytest.approx(5.0)


def test_zip_outside_region_is_standard_tier(scorer):
    assert scorer.zip_bonus("99999") == 5
    assert scorer.zip_bonus("02481") == 25
    assert scorer.zip_bonus(None) == 0


def test_other_tables_can_be_injected():
    tables = build_tables(
        high_zips=["90210"],
        medium_zips=[],
        standard_zips=[],
        project_multipliers={"kitchen": 1.0},
        style_multipliers={"industrial": 1.3},
    )
    scorer = LeadScorer(tables=tables, clock=lambda: NOW)
    lead = LeadFacts(zip="90210", room_type="kitchen", style="Industrial")

    # 10 intent * 0.6 + 25 zip + 10 project + 5 style
    assert scorer.quality_score(10, lead) == 46


@pytest.mark.parametrize("status,expected", [
    (LeadStatus.CONVERTED, 100),
    (LeadStatus.DEAD, 0),
    (LeadStatus.UNQUALIFIED, 0),
])
def test_terminal_statuses_fix_probability(scorer, status, expected):
    assert scorer.probability_to_close_score(90, 90, 90, status, NOW) == expected
    assert scorer.probability_to_close_score(5, 5, 5, status) == expected


@pytest.mark.parametrize("age_days,expected", [
    (35, 85),
    (95, 60),
])
def test_converted_lead_still_decays_with_age(scorer, age_days, expected):
    created = NOW - timedelta(days=age_days)
    assert scorer.probability_to_close_score(90, 90, 90, LeadStatus.CONVERTED, created) == expected


def test_dead_lead_stays_at_zero_when_old(scorer):
    old = NOW - timedelta(days=200)
    assert scorer.probability_to_close_score(90, 90, 90, LeadStatus.DEAD, old) == 0


def test_probability_status_bonus(scorer):
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.ASSIGNED) == 45
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.CONTACTED) == 50
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.QUOTED) == 55


def test_probability_unknown_status_gets_no_bonus(scorer):
    assert scorer.probability_to_close_score(50, 50, 50, "archived", NOW - timedelta(days=10)) == 45


def test_probability_decays_with_age(scorer):
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.NEW, NOW - timedelta(days=10)) == 35
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.ASSIGNED, NOW - timedelta(days=10)) == 45
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.CONTACTED, NOW - timedelta(days=31)) == 35
    assert scorer.probability_to_close_score(50, 50, 50, LeadStatus.QUOTED, NOW - timedelta(days=100)) == 15


def test_probability_never_goes_below_zero(scorer):
    assert scorer.probability_to_close_score(0, 0, 0, LeadStatus.NEW, NOW - timedelta(days=100)) == 0


def test_overall_is_weighted_sum(scorer):
    assert scorer.overall_score(100, 100, 100, 100) == 100
    assert scorer.overall_score(0, 0, 0, 0) == 0
    assert scorer.overall_score(10, 85, 90, 63) == 67


@pytest.mark.parametrize("overall,label", [
    (100, "high"),
    (70, "high"),
    (69, "medium"),
    (40, "medium"),
    (39, "low"),
    (0, "low"),
])
def test_priority_label(overall, label):
    assert priority_label(overall) == label


def test_compute_scores_uses_lead_age(scorer):
    fresh = scorer.compute_scores(None, full_lead(created_at=NOW))
    stale = scorer.compute_scores(None, full_lead(created_at=NOW - timedelta(days=10)))

    assert fresh.probability_to_close - stale.probability_to_close == 10
    assert fresh.overall > stale.overall


def test_every_score_stays_in_range(scorer):
    profile = ProfileFacts(login_count=100, total_time_on_site_ms=10**9, ai_renderings_count=100)
    lead = full_lead(render_count=50, social_engaged=True, is_repeat_visitor=True, zip="02481",
                     style="Contemporary Luxe", status=LeadStatus.QUOTED)
    scores = scorer.compute_scores(profile, lead)
    for value in (scores.engagement, scores.intent, scores.quality, scores.probability_to_close, scores.overall):
        assert 0 <= value <= 100


def test_intent_with_every_signal_clamps_to_exactly_100(scorer):
    lead = full_lead(render_count=3, social_engaged=True)
    assert scorer.intent_score(lead) == 100


def test_stale_new_lead_takes_every_decay_step(scorer):
    """Base 80, 95 days old and still new: 80 - 10 - 15 - 25."""
    created = NOW - timedelta(days=95)
    assert scorer.probability_to_close_score(50, 100, 100, LeadStatus.NEW, created) == 30


def test_randomized_leads_score_in_range(scorer):
    rng = random.Random(20260601)
    statuses = list(LeadStatus)
    for _ in range(300):
        profile = ProfileFacts(
            login_count=rng.choice([0, 1, 7, 1000]),
            total_time_on_site_ms=rng.choice([0, 59_999, 10**10]),
            ai_renderings_count=rng.choice([0, 2, 50]),
        )
        lead = LeadFacts(
            name=rng.choice([None, "Dana"]),
            email=rng.choice([None, "dana@example.com"]),
            phone=rng.choice([None, "508-555-0101"]),
            zip=rng.choice([None, "02481", "01701", "01720", "99999"]),
            room_type=rng.choice([None, "kitchen", "other", "garage"]),
            style=rng.choice([None, "Contemporary Luxe", "Eclectic Bohemian", "Brutalist"]),
            render_count=rng.choice([1, 3, 50]),
            wants_quote=rng.random() < 0.5,
            social_engaged=rng.random() < 0.5,
            is_repeat_visitor=rng.random() < 0.5,
            status=rng.choice(statuses),
            created_at=NOW - timedelta(days=rng.choice([0, 8, 31, 365])),
        )
        scores = scorer.compute_scores(profile, lead)
        for value in (scores.engagement, scores.intent, scores.quality, scores.probability_to_close, scores.overall):
            assert isinstance(value, int)
            assert 0 <= value <= 100
