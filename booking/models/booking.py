"""Pydantic models for booking requests and responses."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SlotPayload(BaseModel):
    """Slot section of the inbound body, as sent by the browser.

    Every field is untyped so that a bad value reaches the validator
    instead of failing model parsing.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Any = None
    start_iso: Any = Field(default=None, alias="startIso")
    end_iso: Any = Field(default=None, alias="endIso")
    availability_event_id: Any = Field(default=None, alias="availabilityEventId")


class CustomerPayload(BaseModel):
    """Customer section of the inbound body, as sent by the browser."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    phone: Any = None
    email: Any = None
    notes: Any = None


class BookingPayload(BaseModel):
    """Raw ``POST /api/book`` body. Missing sections become empty objects."""

    model_config = ConfigDict(extra="ignore")

    slot: SlotPayload = Field(default_factory=SlotPayload)
    customer: CustomerPayload = Field(default_factory=CustomerPayload)


class Slot(BaseModel):
    """Normalized slot with both instants resolved."""

    title: str
    start: datetime
    end: datetime
    availability_event_id: Optional[str] = None


class Customer(BaseModel):
    name: str
    phone: str
    email: str
    notes: Optional[str] = None


class BookingRequest(BaseModel):
    """A validated booking, ready for the availability check."""

    slot: Slot
    customer: Customer


class BookingResponse(BaseModel):
    """Result returned after a successful booking."""

    ok: bool = True
    event_id: Optional[str] = Field(default=None, serialization_alias="eventId")
    html_link: Optional[str] = Field(default=None, serialization_alias="htmlLink")

