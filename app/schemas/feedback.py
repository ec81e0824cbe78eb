"""Pydantic schemas for feedback."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class FeedbackCreate(BaseModel):
    lead_id: Optional[UUID] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    source: str = "web"
    page_location: Optional[str] = None


class FeedbackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lead_id: Optional[UUID] = None
    rating: int
    comment: Optional[str] = None
    source: str
    page_location: Optional[str] = None
    created_at: datetime
