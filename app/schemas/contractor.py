"""Pydantic schemas for contractor management."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Annotated, List, Optional

ZipCode = Annotated[str, Field(pattern=r"^\d{5}$")]
SUBSCRIPTION_TIERS = r"^(basic|premium|enterprise)$"


class ContractorCreate(BaseModel):
    """Schema for an admin adding a contractor."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    assigned_zip_codes: List[ZipCode] = Field(default_factory=list)
    serves_all_zipcodes: bool = False
    subscription_tier: str = Field("basic", pattern=SUBSCRIPTION_TIERS)
    is_active_subscriber: bool = False


class ContractorUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    assigned_zip_codes: Optional[List[ZipCode]] = None
    serves_all_zipcodes: Optional[bool] = None
    subscription_tier: Optional[str] = Field(None, pattern=SUBSCRIPTION_TIERS)
    is_active_subscriber: Optional[bool] = None


class ContractorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    assigned_zip_codes: List[str]
    serves_all_zipcodes: bool
    subscription_tier: str
    is_active_subscriber: bool
    leads_received_count: int
    leads_converted_count: int
    conversion_rate: float
    created_at: datetime
    updated_at: datetime


class ContractorListStats(BaseModel):
    total_contractors: int
    active_subscribers: int
    total_zip_codes: int
    avg_conversion_rate: int
    total_leads_received: int
    total_leads_converted: int


class ContractorListOut(BaseModel):
    contractors: List[ContractorOut]
    stats: ContractorListStats
