"""Pydantic schemas for lead assignments."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.models.lead import LeadStatus
from app.models.lead_assignment import AssignmentMethod


class ManualAssignmentRequest(BaseModel):
    lead_id: UUID
    contractor_ids: List[UUID] = Field(..., min_length=1)


class ContractorAssignmentResult(BaseModel):
    """Outcome of routing the lead to one contractor."""
    contractor_id: UUID
    contractor_name: str
    success: bool
    assignment_id: Optional[UUID] = None
    error: Optional[str] = None


class AssignmentResult(BaseModel):
    lead_id: UUID
    method: AssignmentMethod
    results: List[ContractorAssignmentResult]
    successful_assignments: int
    total_attempted: int

    @computed_field
    def message(self) -> str:
        return f"Lead assigned to {self.successful_assignments} contractor(s)"


class AssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lead_id: UUID
    contractor_id: UUID
    assignment_method: AssignmentMethod
    email_sent: bool
    email_opened: bool
    email_clicked: bool
    assigned_at: datetime
    contractor_responded: bool
    response_time_hours: Optional[int] = None
    lead_status: Optional[LeadStatus] = None
    contractor_name: Optional[str] = None


class AssignmentStats(BaseModel):
    total_assignments: int
    emails_sent: int
    emails_opened: int
    emails_clicked: int
    contractor_responses: int
    avg_response_time_hours: float
    conversion_rate: float = Field(description="Percent of assigned leads now converted")


class AssignmentReport(BaseModel):
    assignments: List[AssignmentOut]
    stats: AssignmentStats


class AssignmentReportFilter(BaseModel):
    date_range: Optional[str] = Field(None, pattern="^(7d|30d|90d|all)$")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
