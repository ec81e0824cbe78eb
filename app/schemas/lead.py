"""Pydantic schemas for Leads."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional

from app.models.lead import LeadStatus, RoomType
from app.schemas.assignment import AssignmentResult


class LeadCreate(BaseModel):
    """Schema for capturing a lead after an AI render."""
    user_id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    zip: Optional[str] = Field(None, pattern=r"^\d{5}$")
    room_type: RoomType = RoomType.OTHER
    style: Optional[str] = None
    image_url: Optional[str] = None
    ai_url: Optional[str] = None
    render_count: int = Field(1, ge=1)
    wants_quote: bool = False
    social_engaged: bool = False
    is_repeat_visitor: bool = False
    auto_assign: bool = Field(False, description="Route to eligible contractors right away")


class LeadOut(BaseModel):
    """Schema for returning lead details."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    zip: Optional[str] = None
    room_type: RoomType
    style: Optional[str] = None
    render_count: int
    wants_quote: bool
    social_engaged: bool
    is_repeat_visitor: bool
    status: LeadStatus
    engagement_score: int
    intent_score: int
    lead_quality_score: int
    probability_to_close_score: int
    overall_score: int
    assigned_contractor_id: Optional[UUID] = None
    sent_at: Optional[datetime] = None
    last_contacted_at: Optional[datetime] = None
    conversion_value: Optional[Decimal] = None
    contractor_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LeadStatusUpdate(BaseModel):
    """Schema for updating lead status.

    ``new_status`` stays a plain string so unknown values reach the status
    guard and are rejected there with the list of valid statuses.
    """
    new_status: str
    contractor_notes: Optional[str] = None
    conversion_value: Optional[Decimal] = Field(None, ge=0)


class StatusUpdateResult(BaseModel):
    """Updated lead plus the status it had before the change."""
    lead: LeadOut
    previous_status: LeadStatus


class ContractorLeadStats(BaseModel):
    total_leads: int
    high_value_leads: int
    recent_leads: int
    avg_lead_score: int


class ContractorLeadsOut(BaseModel):
    """Leads in a contractor's service area."""
    leads: List[LeadOut]
    assigned_zip_codes: List[str]
    stats: ContractorLeadStats
    message: Optional[str] = None


class LeadCaptureOut(BaseModel):
    """A captured lead, plus the routing outcome when auto-assignment was asked for."""
    lead: LeadOut
    assignment: Optional[AssignmentResult] = None


class RankedLeadStats(BaseModel):
    total_leads: int
    high_value_leads: int
    medium_value_leads: int
    low_value_leads: int
    avg_probability_score: int
    avg_intent_score: int
    avg_engagement_score: int
    avg_lead_quality_score: int
    recent_leads: int
    conversion_rate: float


class RankedLeadsOut(BaseModel):
    """Leads ordered by probability to close, most likely first."""
    leads: List[LeadOut]
    stats: RankedLeadStats
