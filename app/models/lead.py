"""Lead model: one homeowner's renovation render session."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Enum, ForeignKey, Integer, Boolean, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.utils.clock import utcnow


class RoomType(str, enum.Enum):
    """Room the render was generated for."""
    KITCHEN = "kitchen"
    BATHROOM = "bathroom"
    LIVING_ROOM = "living_room"
    BEDROOM = "bedroom"
    DINING_ROOM = "dining_room"
    HOME_OFFICE = "home_office"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    """Lead lifecycle status."""
    NEW = "new"
    ASSIGNED = "assigned"
    CONTACTED = "contacted"
    QUOTED = "quoted"
    CONVERTED = "converted"
    DEAD = "dead"
    UNQUALIFIED = "unqualified"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({LeadStatus.CONVERTED, LeadStatus.DEAD, LeadStatus.UNQUALIFIED})

# Statuses that mean the contractor has reached out to the homeowner.
CONTACT_STATUSES = frozenset({LeadStatus.CONTACTED, LeadStatus.QUOTED, LeadStatus.CONVERTED})


class Lead(Base):
    """Lead model."""
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    zip = Column(String(10), nullable=True, index=True)
    room_type = Column(Enum(RoomType, name="room_type"), nullable=False, default=RoomType.OTHER)
    style = Column(String(100), nullable=True)
    image_url = Column(Text, nullable=True)
    ai_url = Column(Text, nullable=True)

    render_count = Column(Integer, nullable=False, default=1)
    wants_quote = Column(Boolean, nullable=False, default=False)
    social_engaged = Column(Boolean, nullable=False, default=False)
    is_repeat_visitor = Column(Boolean, nullable=False, default=False)

    status = Column(Enum(LeadStatus, name="lead_status"), nullable=False, default=LeadStatus.NEW, index=True)

    engagement_score = Column(Integer, nullable=False, default=0)
    intent_score = Column(Integer, nullable=False, default=0)
    lead_quality_score = Column(Integer, nullable=False, default=0)
    probability_to_close_score = Column(Integer, nullable=False, default=0)
    overall_score = Column(Integer, nullable=False, default=0, index=True)

    assigned_contractor_id = Column(UUID(as_uuid=True), ForeignKey("contractors.id", ondelete="SET NULL"), nullable=True, index=True)
    sent_at = Column(DateTime, nullable=True)
    last_contacted_at = Column(DateTime, nullable=True)
    conversion_value = Column(Numeric(12, 2), nullable=True)
    contractor_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    assigned_contractor = relationship("Contractor", foreign_keys=[assigned_contractor_id])
    assignments = relationship("LeadAssignment", back_populates="lead")
