"""Pydantic schemas for lead scoring inputs and outputs."""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.lead import LeadStatus


class ProfileFacts(BaseModel):
    """Engagement counters of the account behind a lead. Missing values count as zero."""
    model_config = ConfigDict(from_attributes=True)

    login_count: Optional[int] = 0
    total_time_on_site_ms: Optional[int] = 0
    ai_renderings_count: Optional[int] = 0


class LeadFacts(BaseModel):
    """Everything the calculators read from a lead."""
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    zip: Optional[str] = None
    room_type: Optional[str] = None
    style: Optional[str] = None
    render_count: Optional[int] = 1
    wants_quote: bool = False
    social_engaged: bool = False
    is_repeat_visitor: bool = False
    status: LeadStatus = LeadStatus.NEW
    created_at: Optional[datetime] = None

    @field_validator("room_type", mode="before")
    @classmethod
    def _unwrap_enum(cls, value):
        if isinstance(value, enum.Enum):
            return value.value
        return value

    @field_validator("wants_quote", "social_engaged", "is_repeat_visitor", mode="before")
    @classmethod
    def _none_is_false(cls, value):
        return bool(value) if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _none_is_new(cls, value):
        return LeadStatus.NEW if value is None else value


class LeadScores(BaseModel):
    """The four sub-scores plus the weighted overall score, each 0-100."""
    engagement: int = Field(ge=0, le=100)
    intent: int = Field(ge=0, le=100)
    quality: int = Field(ge=0, le=100)
    probability_to_close: int = Field(ge=0, le=100)
    overall: int = Field(ge=0, le=100)
    priority: str


class ScoreRecalculationResult(BaseModel):
    updated_count: int
    total_leads: int


class ScoreRequest(BaseModel):
    """Ad-hoc scoring of lead facts that are not stored."""
    profile: ProfileFacts = Field(default_factory=ProfileFacts)
    lead: LeadFacts
