"""Google Calendar provider implementation.

Authenticates as the calendar owner with an OAuth2 refresh token that was
issued once, out of band. The client id, secret and refresh token come from
:class:`booking.config.Settings`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from .base import CalendarEvent, CalendarProvider, TimeSlot

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleCalendarProvider(CalendarProvider):
    """CalendarProvider backed by Google Calendar API v3."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        redirect_uri: str = "",
    ) -> None:
        if not (client_id and client_secret and refresh_token):
            raise ValueError(
                "Google OAuth client id, client secret and refresh token "
                "are all required."
            )
        self._credentials = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=SCOPES,
        )
        self._service = build(
            "calendar", "v3", credentials=self._credentials, cache_discovery=False
        )

    @classmethod
    def from_settings(cls, settings) -> "GoogleCalendarProvider":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            refresh_token=settings.google_refresh_token,
            redirect_uri=settings.google_redirect_uri,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_in_executor(self, func, *args, **kwargs) -> Any:
        """Run a synchronous Google API call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(func, *args, **kwargs)
        )

    def _new_http(self) -> google_auth_httplib2.AuthorizedHttp:
        """Fresh authorized transport; httplib2 connections are not thread-safe."""
        return google_auth_httplib2.AuthorizedHttp(
            self._credentials, http=httplib2.Http()
        )

    async def _execute(self, request) -> Any:
        """Execute an API request on its own transport in the thread pool."""
        return await self._run_in_executor(request.execute, http=self._new_http())

    @staticmethod
    def _to_rfc3339(dt: datetime) -> str:
        """Convert a datetime to an RFC 3339 string with timezone."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.isoformat()

    @staticmethod
    def _parse_rfc3339(value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    # ------------------------------------------------------------------
    # CalendarProvider interface
    # ------------------------------------------------------------------

    async def query_busy(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
        time_zone: str = "",
    ) -> list[TimeSlot]:
        """Query the Google freebusy API for one calendar."""
        body: dict[str, Any] = {
            "timeMin": self._to_rfc3339(start),
            "timeMax": self._to_rfc3339(end),
            "items": [{"id": calendar_id}],
        }
        if time_zone:
            body["timeZone"] = time_zone

        response = await self._execute(
            self._service.freebusy().query(body=body)
        )

        busy_intervals: list[dict] = (
            (response or {}).get("calendars", {})
            .get(calendar_id, {})
            .get("busy", [])
        ) or []

        return [
            TimeSlot(
                start=self._parse_rfc3339(interval["start"]),
                end=self._parse_rfc3339(interval["end"]),
            )
            for interval in busy_intervals
        ]

    async def create_event(
        self, calendar_id: str, event: CalendarEvent, send_updates: str = "all"
    ) -> dict:
        """Insert an event into the Google Calendar.

        With ``send_updates="all"`` Google emails the invitation to every
        attendee; nothing here sends mail itself.
        """
        start: dict[str, Any] = {"dateTime": self._to_rfc3339(event.start)}
        end: dict[str, Any] = {"dateTime": self._to_rfc3339(event.end)}
        if event.time_zone:
            start["timeZone"] = event.time_zone
            end["timeZone"] = event.time_zone

        body: dict[str, Any] = {
            "summary": event.summary,
            "start": start,
            "end": end,
        }
        if event.description:
            body["description"] = event.description
        if event.attendees:
            body["attendees"] = [
                {"email": addr} for addr in event.attendees
            ]

        result = await self._execute(
            self._service.events().insert(
                calendarId=calendar_id,
                body=body,
                sendUpdates=send_updates,
            )
        ) or {}

        logger.info("Created event %s on calendar %s", result.get("id"), calendar_id)

        return {
            "event_id": result.get("id") or None,
            "html_link": result.get("htmlLink") or None,
        }

    async def delete_event(
        self, calendar_id: str, event_id: str, send_updates: str = "none"
    ) -> None:
        """Delete an event from Google Calendar."""
        await self._execute(
            self._service.events().delete(
                calendarId=calendar_id, eventId=event_id, sendUpdates=send_updates
            )
        )
        logger.info("Deleted event %s on calendar %s", event_id, calendar_id)
