"""Data models for the booking layer."""

from .booking import (
    BookingPayload,
    BookingRequest,
    BookingResponse,
    Customer,
    CustomerPayload,
    Slot,
    SlotPayload,
)

__all__ = [
    "BookingPayload",
    "BookingRequest",
    "BookingResponse",
    "Customer",
    "CustomerPayload",
    "Slot",
    "SlotPayload",
]
