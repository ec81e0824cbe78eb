"""Lead scoring: engagement, intent, quality, probability-to-close and overall.

Every calculator is pure arithmetic over ``ProfileFacts``/``LeadFacts``. They
never raise; missing numbers count as zero and the result is always an integer
in [0, 100]. Rounding is half-up, so 62.5 scores 63.
"""

import math
from datetime import datetime, timezone
from typing import Callable, Optional

from app.models.lead import LeadStatus
from app.schemas.scoring import LeadFacts, LeadScores, ProfileFacts
from app.services.scoring_tables import METROWEST_TABLES, ZIP_TIER_BONUS, ScoringTables
from app.utils.clock import utcnow

MIN_SCORE = 0
MAX_SCORE = 100

# Priority labels for dashboards, emails and sorting
HIGH_PRIORITY_THRESHOLD = 70
MEDIUM_PRIORITY_THRESHOLD = 40
PRIORITY_HIGH = "high"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"

# Contractor dashboard "high value" counter
HIGH_VALUE_LEAD_SCORE = 50

# Engagement
LOGIN_POINTS, LOGIN_CAP = 5, 25
TIME_ON_SITE_CAP_MINUTES = 30
RENDER_POINTS, RENDER_CAP = 10, 40
REPEAT_VISITOR_BONUS = 5

# Intent
RENDER_COMPLETED_POINTS = 10
EMAIL_POINTS = 15
PHONE_POINTS = 20
NAME_POINTS = 10
WANTS_QUOTE_POINTS = 30
EXTRA_RENDER_POINTS, EXTRA_RENDER_CAP = 5, 15
SOCIAL_POINTS = 10

# Quality
INTENT_WEIGHT_IN_QUALITY = 0.6
PROJECT_BASELINE, PROJECT_SCALE = 0.8, 50
STYLE_BASELINE, STYLE_SCALE = 0.9, 12.5

# Probability to close
ENGAGEMENT_WEIGHT, INTENT_WEIGHT, QUALITY_WEIGHT = 0.2, 0.4, 0.3
STATUS_BONUS = {
    LeadStatus.CONTACTED: 5,
    LeadStatus.QUOTED: 10,
}
STATUS_FIXED_PROBABILITY = {
    LeadStatus.CONVERTED: 100,
    LeadStatus.DEAD: 0,
    LeadStatus.UNQUALIFIED: 0,
}
STALE_NEW_LEAD_DAYS, STALE_NEW_LEAD_PENALTY = 7, 10
OLD_LEAD_DAYS, OLD_LEAD_PENALTY = 30, 15
ANCIENT_LEAD_DAYS, ANCIENT_LEAD_PENALTY = 90, 25

# Overall
OVERALL_WEIGHTS = (0.15, 0.25, 0.25, 0.35)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(MIN_SCORE, min(round_half_up(value), MAX_SCORE))


def priority_label(overall_score: int) -> str:
    if overall_score >= HIGH_PRIORITY_THRESHOLD:
        return PRIORITY_HIGH
    if overall_score >= MEDIUM_PRIORITY_THRESHOLD:
        return PRIORITY_MEDIUM
    return PRIORITY_LOW


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


class LeadScorer:
    """Scores leads against one region's lookup tables.

    ``clock`` returns naive UTC and is only read by the time-decay step.
    """

    def __init__(
        self,
        tables: ScoringTables = METROWEST_TABLES,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.tables = tables
        self.clock = clock

    def engagement_score(self, profile: Optional[ProfileFacts], lead: LeadFacts) -> int:
        profile = profile or ProfileFacts()
        score = 0.0

        score += min((profile.login_count or 0) * LOGIN_POINTS, LOGIN_CAP)

        minutes_on_site = (profile.total_time_on_site_ms or 0) / (60 * 1000)
        score += min(minutes_on_site, TIME_ON_SITE_CAP_MINUTES)

        renderings = profile.ai_renderings_count or lead.render_count or 1
        score += min(renderings * RENDER_POINTS, RENDER_CAP)

        if lead.is_repeat_visitor:
            score += REPEAT_VISITOR_BONUS

        return clamp_score(score)

    def intent_score(self, lead: LeadFacts) -> int:
        score = RENDER_COMPLETED_POINTS

        if lead.email:
            score += EMAIL_POINTS
        if lead.phone:
            score += PHONE_POINTS
        if lead.name:
            score += NAME_POINTS
        if lead.wants_quote:
            score += WANTS_QUOTE_POINTS

        render_count = lead.render_count or 1
        if render_count > 1:
            score += min((render_count - 1) * EXTRA_RENDER_POINTS, EXTRA_RENDER_CAP)

        if lead.social_engaged:
            score += SOCIAL_POINTS

        # Every signal together sums to 110; the cap at 100 is reached in practice.
        return clamp_score(score)

    def zip_bonus(self, zip_code: Optional[str]) -> int:
        if not zip_code:
            return 0
        return ZIP_TIER_BONUS[self.tables.zip_tier(zip_code)]

    def project_bonus(self, room_type: Optional[str]) -> float:
        multiplier = self.tables.project_multiplier(room_type)
        if multiplier is None:
            return 0.0
        return (multiplier - PROJECT_BASELINE) * PROJECT_SCALE

    def style_bonus(self, style: Optional[str]) -> float:
        multiplier = self.tables.style_multiplier(style)
        if multiplier is None:
            return 0.0
        return (multiplier - STYLE_BASELINE) * STYLE_SCALE

    def quality_score(self, intent_score: int, lead: LeadFacts) -> int:
        score = (intent_score or 0) * INTENT_WEIGHT_IN_QUALITY
        score += self.zip_bonus(lead.zip)
        score += self.project_bonus(lead.room_type)
        score += self.style_bonus(lead.style)
        return clamp_score(score)

    def probability_to_close_score(
        self,
        engagement_score: int,
        intent_score: int,
        quality_score: int,
        status: LeadStatus = LeadStatus.NEW,
        created_at: Optional[datetime] = None,
    ) -> int:
        try:
            status = LeadStatus(status or LeadStatus.NEW)
        except ValueError:
            status = None  # unknown statuses get no bonus and no "new" decay
        if status in STATUS_FIXED_PROBABILITY:
            # Terminal statuses replace the weighted base but still decay.
            score = STATUS_FIXED_PROBABILITY[status]
        else:
            score = (
                (engagement_score or 0) * ENGAGEMENT_WEIGHT
                + (intent_score or 0) * INTENT_WEIGHT
                + (quality_score or 0) * QUALITY_WEIGHT
            )
            score += STATUS_BONUS.get(status, 0)
        score -= self.decay_penalty(status, created_at)
        return clamp_score(score)

    def decay_penalty(self, status: Optional[LeadStatus], created_at: Optional[datetime]) -> int:
        """Cumulative staleness penalty; each threshold applies independently."""
        if created_at is None:
            return 0

        age_days = (self.clock() - _as_naive_utc(created_at)).total_seconds() / 86400
        penalty = 0
        if age_days > STALE_NEW_LEAD_DAYS and status == LeadStatus.NEW:
            penalty += STALE_NEW_LEAD_PENALTY
        if age_days > OLD_LEAD_DAYS:
            penalty += OLD_LEAD_PENALTY
        if age_days > ANCIENT_LEAD_DAYS:
            penalty += ANCIENT_LEAD_PENALTY
        return penalty

    def overall_score(
        self,
        engagement_score: int,
        intent_score: int,
        quality_score: int,
        probability_to_close_score: int,
    ) -> int:
        e_weight, i_weight, q_weight, p_weight = OVERALL_WEIGHTS
        return clamp_score(
            (engagement_score or 0) * e_weight
            + (intent_score or 0) * i_weight
            + (quality_score or 0) * q_weight
            + (probability_to_close_score or 0) * p_weight
        )

    def compute_scores(self, profile: Optional[ProfileFacts], lead: LeadFacts) -> LeadScores:
        engagement = self.engagement_score(profile, lead)
        intent = self.intent_score(lead)
        quality = self.quality_score(intent, lead)
        probability = self.probability_to_close_score(
            engagement, intent, quality, lead.status, lead.created_at
        )
        overall = self.overall_score(engagement, intent, quality, probability)
        return LeadScores(
            engagement=engagement,
            intent=intent,
            quality=quality,
            probability_to_close=probability,
            overall=overall,
            priority=priority_label(overall),
        )


default_scorer = LeadScorer()


def compute_scores(profile: Optional[ProfileFacts], lead: LeadFacts) -> LeadScores:
    """Score a lead with the MetroWest tables."""
    return default_scorer.compute_scores(profile, lead)
