"""Abstract base class for calendar providers.

Defines the three operations a booking needs: a free/busy query, an event
insert and an event delete. Any calendar backend implements this ABC, and
tests swap in an in-memory fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class TimeSlot:
    """A busy interval reported by a calendar."""

    start: datetime
    end: datetime


@dataclass
class CalendarEvent:
    """Represents a calendar event to be created."""

    summary: str
    start: datetime
    end: datetime
    description: str = ""
    attendees: list[str] = field(default_factory=list)  # email addresses
    time_zone: str = ""


class CalendarProvider(ABC):
    """Abstract calendar backend.

    Errors from the backend propagate to the caller; deciding which of
    them are fatal is the booking handler's job.
    """

    @abstractmethod
    async def query_busy(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
        time_zone: str = "",
    ) -> list[TimeSlot]:
        """Return the busy intervals overlapping ``[start, end)``.

        Args:
            calendar_id: The single calendar to query.
            start: Beginning of the window.
            end: End of the window.
            time_zone: IANA zone label passed through to the backend.

        Returns:
            List of busy TimeSlot objects; empty when the window is free.
        """

    @abstractmethod
    async def create_event(
        self, calendar_id: str, event: CalendarEvent, send_updates: str = "all"
    ) -> dict:
        """Create a calendar event.

        Args:
            calendar_id: The calendar to create the event on.
            event: Event details.
            send_updates: Attendee notification mode (``"all"``, ``"none"``).

        Returns:
            Dict with ``"event_id"`` and ``"html_link"``, either of which
            may be None.
        """

    @abstractmethod
    async def delete_event(
        self, calendar_id: str, event_id: str, send_updates: str = "none"
    ) -> None:
        """Delete a calendar event. Raises if the backend refuses."""
