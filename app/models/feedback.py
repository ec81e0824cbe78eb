from sqlalchemy import Column, String, Text, Integer, DateTime, CheckConstraint, func
from sqlalchemy.dialects.postgresql import UUID
import uuid

from app.core.database import Base


class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    # Not a foreign key: feedback for an unknown lead is still kept
    lead_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    source = Column(String, nullable=False, default="web")
    page_location = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
