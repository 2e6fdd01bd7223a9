"""Booking request handler.

One call to :meth:`BookingService.book` runs the whole sequence for a
single request:

  1. Validate and normalize the body (no calendar calls on failure)
  2. Free/busy query for the target calendar over ``[start, end)``
  3. Insert the booked event with the customer invited
  4. Optionally delete the availability placeholder the customer picked

Steps 2 and 3 are not atomic. Two concurrent requests for the same slot
can both see it free and both insert an event; the calendar offers no
conditional insert, so that race is accepted rather than hidden.
"""

from __future__ import annotations

import logging
from typing import Any

from booking.calendar_providers.base import CalendarEvent, CalendarProvider
from booking.config import Settings
from booking.errors import BookingError, ServerError, SlotConflict
from booking.models import BookingRequest, BookingResponse, Customer
from booking.validation import resolve_timezone, validate_booking_request

log = logging.getLogger("booking.service")

DESCRIPTION_HEADER = "Booked via website"


def redact_pii(value: str) -> str:
    """Mask PII for logging — show first 3 and last 2 chars only."""
    if not value or len(value) <= 5:
        return "***"
    return value[:3] + "***" + value[-2:]


def build_summary(title: str, customer_name: str) -> str:
    return f"BOOKED: {title} — {customer_name}"


def build_description(customer: Customer) -> str:
    """Event body shown to the calendar owner."""
    lines = [
        DESCRIPTION_HEADER,
        "",
        f"Player: {customer.name}",
        f"Phone: {customer.phone}",
        f"Email: {customer.email}",
    ]
    if customer.notes:
        lines.extend(["", "Notes:", customer.notes.strip()])
    return "\n".join(lines)


async def check_availability(
    provider: CalendarProvider,
    calendar_id: str,
    request: BookingRequest,
    time_zone: str,
) -> None:
    """Raise SlotConflict unless the calendar reports the slot free."""
    busy = await provider.query_busy(
        calendar_id, request.slot.start, request.slot.end, time_zone
    )
    if busy:
        log.info(
            "Slot %s to %s busy on %s (%d interval(s))",
            request.slot.start.isoformat(),
            request.slot.end.isoformat(),
            calendar_id,
            len(busy),
        )
        raise SlotConflict()


async def create_booking_event(
    provider: CalendarProvider,
    calendar_id: str,
    request: BookingRequest,
    time_zone: str,
) -> BookingResponse:
    """Insert the booked event and invite the customer.

    Any collaborator failure becomes a generic ServerError; the cause is
    only logged.
    """
    event = CalendarEvent(
        summary=build_summary(request.slot.title, request.customer.name),
        start=request.slot.start,
        end=request.slot.end,
        description=build_description(request.customer),
        attendees=[request.customer.email],
        time_zone=time_zone,
    )

    try:
        result = await provider.create_event(calendar_id, event, send_updates="all")
    except Exception as exc:
        log.exception("Failed to create booking event on %s", calendar_id)
        raise ServerError() from exc

    result = result or {}
    return BookingResponse(
        event_id=result.get("event_id") or None,
        html_link=result.get("html_link") or None,
    )


async def remove_availability_placeholder(
    provider: CalendarProvider,
    calendar_id: str,
    event_id: str,
) -> bool:
    """Delete the placeholder the customer booked from, without notifications.

    The booking already exists when this runs, so failure is a no-op:
    nothing is raised, retried or reported. Returns whether the delete
    went through.
    """
    try:
        await provider.delete_event(calendar_id, event_id, send_updates="none")
    except Exception:
        # Booking already succeeded.
        log.debug("Placeholder %s not removed from %s", event_id, calendar_id)
        return False
    return True


class BookingService:
    """Drives one booking through validation and the calendar calls."""

    def __init__(self, provider: CalendarProvider, settings: Settings) -> None:
        self._provider = provider
        self._settings = settings
        self._default_tz = resolve_timezone(settings.timezone)

    @property
    def calendar_id(self) -> str:
        return self._settings.google_calendar_id

    async def book(self, body: Any) -> BookingResponse:
        """Book a slot from a raw request body.

        Raises:
            InvalidInput: the body failed validation (no calendar calls made).
            SlotConflict: the calendar reports the slot busy (no insert made).
            ServerError: any calendar failure or unexpected exception.
        """
        try:
            return await self._book(body)
        except BookingError:
            raise
        except Exception as exc:
            log.exception("Unexpected error while booking")
            raise ServerError() from exc

    async def _book(self, body: Any) -> BookingResponse:
        settings = self._settings
        request = validate_booking_request(
            body,
            duration_minutes=settings.booking_duration_minutes,
            default_tz=self._default_tz,
        )
        log.info(
            "Booking %r %s to %s for %s",
            request.slot.title,
            request.slot.start.isoformat(),
            request.slot.end.isoformat(),
            redact_pii(request.customer.email),
        )

        await check_availability(
            self._provider, self.calendar_id, request, settings.timezone
        )

        response = await create_booking_event(
            self._provider, self.calendar_id, request, settings.timezone
        )
        log.info("Booked event %s on %s", response.event_id, self.calendar_id)

        placeholder_id = request.slot.availability_event_id
        if settings.delete_availability and placeholder_id:
            await remove_availability_placeholder(
                self._provider, self.calendar_id, placeholder_id
            )

        return response
