"""Profile model: the account behind a lead, contractor or admin login.

Ids are issued by the external identity provider; this table only mirrors the
role and the engagement counters the scorer needs.
"""

from sqlalchemy import Column, String, DateTime, Integer, BigInteger, Enum
from sqlalchemy.dialects.postgresql import UUID
import enum
import uuid
from app.core.database import Base
from app.utils.clock import utcnow


class UserRole(str, enum.Enum):
    HOMEOWNER = "homeowner"
    CONTRACTOR = "contractor"
    ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.HOMEOWNER)

    login_count = Column(Integer, nullable=False, default=0)
    total_time_on_site_ms = Column(BigInteger, nullable=False, default=0)
    ai_renderings_count = Column(Integer, nullable=False, default=0)
    last_login_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
