# marketplace/schemas/__init__.py
from .appointment import (
    CamelModel,
    ServiceItem,
    AppointmentCreate,
    AppointmentActionRequest,
    HistoryEntryOut,
    PartySummary,
    AppointmentOut,
    AppointmentWithParties,
    AppointmentResponse,
    AppointmentListResponse,
    AvailableSlotsResponse
)
