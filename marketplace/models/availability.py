# ===== marketplace/models/availability.py =====
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from marketplace.models.base import Base
import uuid


class AvailabilityWindow(Base):
    """Recurring weekly open hours of a professional, one row per day name"""
    __tablename__ = "availability_windows"
    __table_args__ = (
        UniqueConstraint("professional_id", "day", name="uq_availability_professional_day"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    professional_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    day = Column(String(9), nullable=False)  # "Monday" ... "Sunday"
    is_available = Column(Boolean, default=False, nullable=False)
    start_time = Column(String(5), nullable=True)  # HH:MM UTC
    end_time = Column(String(5), nullable=True)  # HH:MM UTC

    professional = relationship("User", back_populates="availability_windows")

    def __repr__(self):
        return f"<AvailabilityWindow(professional_id={self.professional_id}, day={self.day})>"
