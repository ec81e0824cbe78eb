from sqlalchemy import Column, DateTime, Boolean, Integer, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
import enum

from app.core.database import Base
from app.utils.clock import utcnow


class AssignmentMethod(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class LeadAssignment(Base):
    """One routing event of a lead to a contractor. Rows are never deleted."""
    __tablename__ = "lead_assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    contractor_id = Column(UUID(as_uuid=True), ForeignKey("contractors.id", ondelete="CASCADE"), nullable=False, index=True)
    assignment_method = Column(Enum(AssignmentMethod, name="assignment_method"), nullable=False, default=AssignmentMethod.MANUAL)
    email_sent = Column(Boolean, nullable=False, default=False)
    assigned_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    contractor_responded = Column(Boolean, nullable=False, default=False)
    response_time_hours = Column(Integer, nullable=True)

    # Set by the email provider's open/click tracking webhook
    email_opened = Column(Boolean, nullable=False, default=False)
    email_clicked = Column(Boolean, nullable=False, default=False)

    # Relationships
    lead = relationship("Lead", back_populates="assignments")
    contractor = relationship("Contractor", back_populates="assignments")
