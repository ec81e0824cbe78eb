"""Pydantic schemas for the admin dashboard summary."""

from pydantic import BaseModel


class LeadSummary(BaseModel):
    total_leads: int
    new_leads: int
    assigned_leads: int
    quoted_leads: int
    converted_leads: int
    avg_probability_score: int


class UserSummary(BaseModel):
    total_users: int
    homeowners: int
    contractors: int
    admins: int


class ContractorSummary(BaseModel):
    total_contractors: int
    active_subscribers: int
    avg_conversion_rate: float


class DashboardSummary(BaseModel):
    leads: LeadSummary
    users: UserSummary
    contractors: ContractorSummary
