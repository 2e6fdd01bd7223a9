"""Tests for BookingService — call ordering, conflicts and cleanup."""

from datetime import datetime, timedelta, timezone

import pytest

from booking.errors import (
    SERVER_ERROR_MESSAGE,
    InvalidInput,
    ServerError,
    SlotConflict,
)
from booking.models import Customer
from booking.service import (
    BookingService,
    build_description,
    build_summary,
    redact_pii,
    remove_availability_placeholder,
)

from conftest import FakeCalendarProvider, busy_slot, make_settings

START = datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)


class TestDescription:
    def test_summary(self):
        assert build_summary("Training Session", "Jane") == "BOOKED: Training Session — Jane"

    def test_without_notes(self):
        customer = Customer(name="Jane", phone="555-1234", email="jane@example.com")
        assert build_description(customer) == (
            "Booked via website\n"
            "\n"
            "Player: Jane\n"
            "Phone: 555-1234\n"
            "Email: jane@example.com"
        )

    def test_with_notes(self):
        customer = Customer(
            name="Jane", phone="555-1234", email="jane@example.com", notes="  Bring a glove.\nThanks "
        )
        assert build_description(customer).endswith(
            "Email: jane@example.com\n\nNotes:\nBring a glove.\nThanks"
        )


class TestBookingFlow:
    async def test_happy_path(self, fake_provider, settings, valid_body):
        service = BookingService(fake_provider, settings)

        result = await service.book(valid_body)

        assert result.ok is True
        assert result.event_id == "evt_123"
        assert result.html_link == "https://calendar.google.com/event?eid=evt_123"
        assert fake_provider.call_names() == ["query_busy", "create_event"]

        _, calendar_id, start, end, tz = fake_provider.calls[0]
        assert calendar_id == "primary"
        assert (start, end) == (START, START + timedelta(minutes=60))
        assert tz == "America/New_York"

        event = fake_provider.inserted_event()
        assert event.summary == "BOOKED: Training Session — Jane"
        assert event.start == START
        assert event.end == START + timedelta(minutes=60)
        assert event.attendees == ["jane@example.com"]
        assert event.time_zone == "America/New_York"
        assert fake_provider.calls[1][3] == "all"

    async def test_description_reaches_insert(self, fake_provider, settings, valid_body):
        valid_body["slot"]["title"] = "Pitching Lesson"
        valid_body["customer"]["notes"] = "  Working on curveball.  "

        await BookingService(fake_provider, settings).book(valid_body)

        event = fake_provider.inserted_event()
        assert event.summary == "BOOKED: Pitching Lesson — Jane"
        assert event.description == (
            "Booked via website\n"
            "\n"
            "Player: Jane\n"
            "Phone: 555-1234\n"
            "Email: jane@example.com\n"
            "\n"
            "Notes:\n"
            "Working on curveball."
        )

    async def test_configured_duration_and_calendar(self, fake_provider, valid_body):
        settings = make_settings(booking_duration_minutes=90, google_calendar_id="coach@example.com")
        await BookingService(fake_provider, settings).book(valid_body)

        _, calendar_id, start, end, _ = fake_provider.calls[0]
        assert calendar_id == "coach@example.com"
        assert end - start == timedelta(minutes=90)

    async def test_busy_slot_conflicts_without_insert(self, settings, valid_body):
        provider = FakeCalendarProvider(
            busy=[busy_slot("2025-03-01T10:00:00+00:00", "2025-03-01T11:00:00+00:00")]
        )

        with pytest.raises(SlotConflict) as exc_info:
            await BookingService(provider, settings).book(valid_body)

        assert exc_info.value.status_code == 409
        assert provider.call_names() == ["query_busy"]

    async def test_invalid_email_makes_no_calls(self, fake_provider, settings, valid_body):
        valid_body["customer"]["email"] = "not-an-email"

        with pytest.raises(InvalidInput):
            await BookingService(fake_provider, settings).book(valid_body)

        assert fake_provider.calls == []

    @pytest.mark.parametrize("body", [{}, {"slot": {"startIso": "2025-03-01T10:00:00Z"}}])
    async def test_missing_sections_make_no_calls(self, fake_provider, settings, body):
        with pytest.raises(InvalidInput):
            await BookingService(fake_provider, settings).book(body)
        assert fake_provider.calls == []

    async def test_missing_id_and_link_become_none(self, settings, valid_body):
        provider = FakeCalendarProvider(created={})
        result = await BookingService(provider, settings).book(valid_body)
        assert result.event_id is None
        assert result.html_link is None

    async def test_insert_failure_is_generic_server_error(self, fake_provider, settings, valid_body):
        fake_provider.create_error = RuntimeError("quotaExceeded: secret detail")

        with pytest.raises(ServerError) as exc_info:
            await BookingService(fake_provider, settings).book(valid_body)

        assert exc_info.value.message == SERVER_ERROR_MESSAGE
        assert "secret" not in str(exc_info.value)

    async def test_query_failure_is_server_error(self, fake_provider, settings, valid_body):
        fake_provider.query_error = ConnectionError("boom")

        with pytest.raises(ServerError):
            await BookingService(fake_provider, settings).book(valid_body)

        assert fake_provider.call_names() == ["query_busy"]


class TestPlaceholderCleanup:
    @pytest.fixture
    def body(self, valid_body):
        valid_body["slot"]["availabilityEventId"] = "avail_1"
        return valid_body

    async def test_skipped_when_flag_disabled(self, fake_provider, settings, body):
        await BookingService(fake_provider, settings).book(body)
        assert "delete_event" not in fake_provider.call_names()

    async def test_skipped_without_placeholder_id(self, fake_provider, valid_body):
        settings = make_settings(delete_availability=True)
        await BookingService(fake_provider, settings).book(valid_body)
        assert "delete_event" not in fake_provider.call_names()

    async def test_deletes_after_insert(self, fake_provider, body):
        settings = make_settings(delete_availability=True)
        await BookingService(fake_provider, settings).book(body)

        assert fake_provider.call_names() == ["query_busy", "create_event", "delete_event"]
        assert fake_provider.calls[2] == ("delete_event", "primary", "avail_1", "none")

    async def test_delete_failure_keeps_success(self, body):
        settings = make_settings(delete_availability=True)
        ok_provider = FakeCalendarProvider()
        failing_provider = FakeCalendarProvider()
        failing_provider.delete_error = PermissionError("forbidden")

        expected = await BookingService(ok_provider, settings).book(body)
        result = await BookingService(failing_provider, settings).book(body)

        assert result == expected
        assert failing_provider.call_names()[-1] == "delete_event"

    async def test_not_attempted_when_insert_fails(self, fake_provider, body):
        settings = make_settings(delete_availability=True)
        fake_provider.create_error = RuntimeError("nope")

        with pytest.raises(ServerError):
            await BookingService(fake_provider, settings).book(body)

        assert "delete_event" not in fake_provider.call_names()

    async def test_remove_placeholder_reports_outcome(self, fake_provider):
        assert await remove_availability_placeholder(fake_provider, "primary", "a") is True
        fake_provider.delete_error = LookupError("gone")
        assert await remove_availability_placeholder(fake_provider, "primary", "a") is False


class TestPiiRedaction:
    def test_redacts_email(self):
        assert redact_pii("jane@example.com") == "jan***om"

    def test_redacts_short_value(self):
        assert redact_pii("abc") == "***"
