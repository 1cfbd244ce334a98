"""
Pydantic schemas for appointment requests, actions and responses
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from marketplace.models.appointment import AppointmentAction, AppointmentStatus


class CamelModel(BaseModel):
    """JSON uses camelCase, Python uses snake_case"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Request Schemas
# ============================================================================

class ServiceItem(CamelModel):
    """One line of the quote"""
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, strict=True)
    duration: int = Field(..., ge=0, strict=True, description="Duration in minutes")


class AppointmentCreate(CamelModel):
    """Booking request submitted by a customer.

    ``start_time`` is the wall-clock time in ``professional_timezone`` on
    ``appointment_date``; the server converts it to UTC.
    """
    customer_id: Optional[UUID] = None
    professional_id: UUID
    services: List[ServiceItem]
    total_duration: int = Field(..., strict=True)
    appointment_date: str
    start_time: str
    professional_timezone: str
    quoted_price: float = Field(..., strict=True)
    customer_notes: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "professionalId": "550e8400-e29b-41d4-a716-446655440000",
                "services": [{"name": "Monthly bookkeeping", "price": 100, "duration": 60}],
                "totalDuration": 60,
                "appointmentDate": "2024-05-10",
                "startTime": "14:30",
                "professionalTimezone": "America/New_York",
                "quotedPrice": 100,
                "customerNotes": "Two bank accounts to reconcile",
            }
        }
    )


class AppointmentActionRequest(CamelModel):
    action: AppointmentAction
    final_price: Optional[float] = Field(None, strict=True)
    reason: Optional[str] = None


# ============================================================================
# Response Schemas
# ============================================================================

class HistoryEntryOut(CamelModel):
    timestamp: datetime
    action_by: str
    user_id: UUID
    action_type: str
    details: Dict[str, Any] = Field(default_factory=dict)


class PartySummary(CamelModel):
    id: UUID
    name: str
    email: str


class AppointmentOut(CamelModel):
    id: UUID
    customer_id: UUID
    professional_id: UUID
    services: List[ServiceItem]
    total_duration: int
    appointment_date: date
    start_time: str
    end_date: date
    end_time: str
    professional_timezone: str
    quoted_price: float
    final_price: float
    customer_notes: str = ""
    status: AppointmentStatus
    version: int
    history: List[HistoryEntryOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentWithParties(AppointmentOut):
    customer_details: Optional[PartySummary] = None
    professional_details: Optional[PartySummary] = None

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentWithParties":
        data = AppointmentOut.model_validate(appointment).model_dump()
        for attr, key in (("customer", "customer_details"), ("professional", "professional_details")):
            party = getattr(appointment, attr, None)
            if party is not None:
                data[key] = PartySummary(id=party.id, name=party.display_name, email=party.email)
        return cls(**data)


class AppointmentResponse(CamelModel):
    message: str
    appointment: AppointmentOut


class AppointmentListResponse(CamelModel):
    appointments: List[AppointmentWithParties]


class AvailableSlotsResponse(CamelModel):
    available_slots: List[str]
    professional_timezone: str
