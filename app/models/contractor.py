"""Contractor model.

A contractor receives leads for the zip codes in ``assigned_zip_codes`` (or for
every zip when ``serves_all_zipcodes`` is set). The dashboard login is linked by
email to a ``Profile`` with the contractor role.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
import uuid
from app.core.database import Base
from app.utils.clock import utcnow


class Contractor(Base):
    __tablename__ = "contractors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)

    # JSON for SQLite compatibility in tests; text[] in Postgres is not required
    assigned_zip_codes = Column(JSON, nullable=False, default=list)  # ["01701", "01702"]
    serves_all_zipcodes = Column(Boolean, nullable=False, default=False)

    subscription_tier = Column(String, nullable=False, default="basic")  # basic, premium, enterprise
    is_active_subscriber = Column(Boolean, nullable=False, default=False)

    leads_received_count = Column(Integer, nullable=False, default=0)
    leads_converted_count = Column(Integer, nullable=False, default=0)
    conversion_rate = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    assignments = relationship("LeadAssignment", back_populates="contractor")

    def serves_zip(self, zip_code: str | None) -> bool:
        if self.serves_all_zipcodes:
            return True
        return bool(zip_code) and zip_code in (self.assigned_zip_codes or [])
