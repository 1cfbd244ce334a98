# ===== marketplace/models/appointment.py =====
from sqlalchemy import (
    Column, String, Integer, Float, Text, Date, DateTime, JSON, ForeignKey, Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import enum
import uuid


class AppointmentStatus(str, enum.Enum):
    """Negotiation state of an appointment."""
    PENDING_PROFESSIONAL_APPROVAL = "pending_professional_approval"
    CONFIRMED = "confirmed"
    REJECTED_BY_PROFESSIONAL = "rejected_by_professional"
    COUNTERED_BY_PROFESSIONAL = "countered_by_professional"
    REJECTED_BY_CUSTOMER = "rejected_by_customer"
    CANCELLED_BY_CUSTOMER = "cancelled_by_customer"
    CANCELLED_BY_PROFESSIONAL = "cancelled_by_professional"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


class AppointmentAction(str, enum.Enum):
    """Actions either party can request on an existing appointment."""
    CONFIRM = "confirm"
    REJECT = "reject"
    COUNTER = "counter"
    ACCEPT_COUNTER = "accept_counter"
    REJECT_COUNTER = "reject_counter"
    CANCEL_BY_CUSTOMER = "cancel_by_customer"
    CANCEL_BY_PROFESSIONAL = "cancel_by_professional"
    COMPLETE = "complete"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.REJECTED_BY_PROFESSIONAL,
    AppointmentStatus.REJECTED_BY_CUSTOMER,
    AppointmentStatus.CANCELLED_BY_CUSTOMER,
    AppointmentStatus.CANCELLED_BY_PROFESSIONAL,
    AppointmentStatus.COMPLETED,
})

# Statuses that hold a professional's time
ACTIVE_STATUSES = frozenset({
    AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL,
    AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
    AppointmentStatus.CONFIRMED,
})


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Parties
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    professional_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # Scheduling, all in UTC
    appointment_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_date = Column(Date, nullable=False)
    end_time = Column(String(5), nullable=False)  # HH:MM
    professional_timezone = Column(String(64), nullable=False)  # display only

    # Content
    services = Column(JSON, nullable=False, default=list)  # [{name, price, duration}]
    total_duration = Column(Integer, nullable=False)  # minutes
    customer_notes = Column(Text, nullable=False, default="")

    # Commercial terms
    quoted_price = Column(Float, nullable=False)
    final_price = Column(Float, nullable=False)

    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL,
        nullable=False,
        index=True
    )
    # Bumped on every transition, used for compare-and-swap updates
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    history = relationship(
        "AppointmentHistory",
        back_populates="appointment",
        order_by="AppointmentHistory.id",
        cascade="all, delete-orphan",
        lazy="selectin"
    )
    customer = relationship("User", foreign_keys=[customer_id], lazy="joined")
    professional = relationship("User", foreign_keys=[professional_id], lazy="joined")

    def __repr__(self):
        return f"<Appointment(id={self.id}, status={self.status})>"


class AppointmentHistory(Base):
    """Append-only log of everything that happened to an appointment"""
    __tablename__ = "appointment_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    appointment_id = Column(
        Uuid(as_uuid=True), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    timestamp = Column(DateTime(timezone=True), nullable=False)
    action_by = Column(String(20), nullable=False)  # customer | professional
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    action_type = Column(String(50), nullable=False)
    details = Column(JSON, nullable=False, default=dict)

    appointment = relationship("Appointment", back_populates="history")
