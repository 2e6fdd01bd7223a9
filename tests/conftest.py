"""Shared fixtures: an in-memory calendar and settings that ignore the env."""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from booking.calendar_providers.base import CalendarEvent, CalendarProvider, TimeSlot
from booking.config import Settings


class FakeCalendarProvider(CalendarProvider):
    """Records every call; busy intervals and failures are set per test."""

    def __init__(self, busy=None, created=None):
        self.busy: list[TimeSlot] = list(busy or [])
        self.created = {"event_id": "evt_123", "html_link": "https://calendar.google.com/event?eid=evt_123"} if created is None else created
        self.query_error: Exception | None = None
        self.create_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.calls: list[tuple] = []

    async def query_busy(self, calendar_id, start, end, time_zone=""):
        self.calls.append(("query_busy", calendar_id, start, end, time_zone))
        if self.query_error:
            raise self.query_error
        return list(self.busy)

    async def create_event(self, calendar_id, event: CalendarEvent, send_updates="all"):
        self.calls.append(("create_event", calendar_id, event, send_updates))
        if self.create_error:
            raise self.create_error
        return self.created

    async def delete_event(self, calendar_id, event_id, send_updates="none"):
        self.calls.append(("delete_event", calendar_id, event_id, send_updates))
        if self.delete_error:
            raise self.delete_error

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def inserted_event(self) -> CalendarEvent:
        return next(c[2] for c in self.calls if c[0] == "create_event")


def make_settings(**overrides) -> Settings:
    values = {
        "google_client_id": "client-id",
        "google_client_secret": "client-secret",
        "google_redirect_uri": "http://localhost:8787/oauth2callback",
        "google_refresh_token": "refresh-token",
        "google_calendar_id": "primary",
        "timezone": "America/New_York",
        "booking_duration_minutes": 60,
        "delete_availability": False,
        "cors_origins": "*",
        "max_body_bytes": 200 * 1024,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def busy_slot(start: str, end: str) -> TimeSlot:
    return TimeSlot(start=datetime.fromisoformat(start), end=datetime.fromisoformat(end))


@pytest.fixture
def fake_provider():
    return FakeCalendarProvider()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def valid_body():
    return {
        "slot": {"startIso": "2025-03-01T10:00:00Z"},
        "customer": {"name": "Jane", "phone": "555-1234", "email": "jane@example.com"},
    }
