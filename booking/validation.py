"""Request validation for ``POST /api/book``.

Turns whatever the browser sent into a :class:`BookingRequest` or raises
:class:`InvalidInput`. Pure: no I/O, no calendar calls.

Start and end are treated differently on purpose. A start that cannot be
parsed rejects the request, while an end that cannot be parsed is replaced
by ``start + duration``. Availability events published without an explicit
end rely on that fallback.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking.config import DEFAULT_DURATION_MINUTES
from booking.errors import INVALID_CUSTOMER_MESSAGE, INVALID_START_MESSAGE, InvalidInput
from booking.models import BookingPayload, BookingRequest, Customer, Slot

DEFAULT_TITLE = "Training Session"

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_email(value: Any) -> bool:
    """Basic ``local@domain.tld`` shape check, not RFC validation."""
    return isinstance(value, str) and bool(_EMAIL_PATTERN.fullmatch(value))


def must_string(value: Any) -> bool:
    """True for a string with something left after trimming."""
    return isinstance(value, str) and len(value.strip()) > 0


def resolve_timezone(label: str) -> tzinfo:
    """Return the zone for ``label``, or UTC when it is unknown."""
    try:
        return ZoneInfo(label)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def parse_instant(value: Any, default_tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Best-effort parse of an instant, normalized to UTC.

    Accepts ISO-8601 strings (a trailing ``Z`` included) and numbers as epoch
    milliseconds. Naive timestamps are read in ``default_tz``. Returns None
    for anything that does not describe a real instant.
    """
    if isinstance(value, bool) or value is None:
        return None

    try:
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                return None
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)

        if not isinstance(value, str) or not value.strip():
            return None

        parsed = datetime.fromisoformat(value.strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=default_tz)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def _section(body: Any, key: str) -> dict:
    section = body.get(key) if isinstance(body, dict) else None
    return section if isinstance(section, dict) else {}


def coerce_payload(body: Any) -> BookingPayload:
    """Read a raw JSON body into the lenient payload model.

    A non-object body, or a non-object ``slot``/``customer``, becomes empty.
    """
    return BookingPayload.model_validate(
        {"slot": _section(body, "slot"), "customer": _section(body, "customer")}
    )


def validate_booking_request(
    body: Any,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
    default_tz: tzinfo = timezone.utc,
) -> BookingRequest:
    """Validate and normalize an inbound booking body.

    Raises:
        InvalidInput: bad start time, or missing/invalid customer fields.
    """
    payload = body if isinstance(body, BookingPayload) else coerce_payload(body)
    slot = payload.slot
    customer = payload.customer

    title = slot.title.strip() if must_string(slot.title) else DEFAULT_TITLE

    start = parse_instant(slot.start_iso, default_tz)
    if start is None:
        raise InvalidInput(INVALID_START_MESSAGE)

    end = parse_instant(slot.end_iso, default_tz)
    if end is None:
        minutes = duration_minutes if duration_minutes and duration_minutes > 0 else DEFAULT_DURATION_MINUTES
        try:
            end = start + timedelta(minutes=minutes)
        except OverflowError:
            raise InvalidInput(INVALID_START_MESSAGE) from None

    if not must_string(customer.name) or not must_string(customer.phone) or not is_email(customer.email):
        raise InvalidInput(INVALID_CUSTOMER_MESSAGE)

    availability_event_id = (
        slot.availability_event_id if must_string(slot.availability_event_id) else None
    )
    notes = customer.notes.strip() if must_string(customer.notes) else None

    return BookingRequest(
        slot=Slot(
            title=title,
            start=start,
            end=end,
            availability_event_id=availability_event_id,
        ),
        customer=Customer(
            name=customer.name,
            phone=customer.phone,
            email=customer.email,
            notes=notes,
        ),
    )
