# ============================================================================
# FILE: marketplace/models/user.py
# Marketplace users: customers who request work and professionals who do it
# ============================================================================
from sqlalchemy import Column, String, Boolean, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from marketplace.models.base import Base


class UserRole(str, enum.Enum):
    """Which side of the marketplace a user is on."""
    CUSTOMER = "customer"
    PROFESSIONAL = "professional"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    business_name = Column(String(255), nullable=True)

    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.CUSTOMER,
        nullable=False,
        index=True
    )

    # IANA zone the professional works in; availability itself is stored in UTC
    timezone = Column(String(64), nullable=True)

    # Status flags
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    availability_windows = relationship(
        "AvailabilityWindow",
        back_populates="professional",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.business_name or self.email

    def is_professional(self) -> bool:
        return self.role == UserRole.PROFESSIONAL

    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
