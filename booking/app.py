"""FastAPI application — HTTP endpoints for the booking backend.

Endpoints:

  GET  /health      Health check
  POST /api/book    Verify a slot is free and book it on the calendar

Status mapping for /api/book:
  200  {"ok": true, "eventId": ..., "htmlLink": ...}
  400  invalid start time or customer fields
  409  slot already busy on the calendar
  413  body over MAX_BODY_BYTES
  500  calendar failure or anything unexpected (no details leaked)

Run with ``python -m booking.app`` or
``uvicorn --factory booking.app:create_app``.
"""

from __future__ import annotations

import logging

# Configure root logger early so all app loggers have a handler and are
# visible when run via uvicorn.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from booking.calendar_providers.base import CalendarProvider
from booking.calendar_providers.google import GoogleCalendarProvider
from booking.config import Settings, load_settings
from booking.errors import SERVER_ERROR_MESSAGE, BookingError
from booking.service import BookingService

log = logging.getLogger("booking.app")

BODY_TOO_LARGE_MESSAGE = "Request body too large."


def create_app(
    settings: Settings | None = None,
    provider: CalendarProvider | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Without an injected provider, credentials are checked and a
    GoogleCalendarProvider is built; missing credentials abort startup.
    """
    settings = settings or load_settings()

    if provider is None:
        for warning in settings.validate_startup():
            log.warning(warning)
        provider = GoogleCalendarProvider.from_settings(settings)

    service = BookingService(provider, settings)

    app = FastAPI(
        title="Booking Backend",
        description="Books customer sessions into a Google Calendar",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.booking_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Body size limit ────────────────────────────────────────

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_body_bytes:
            return JSONResponse({"error": BODY_TOO_LARGE_MESSAGE}, status_code=413)
        return await call_next(request)

    # ── Error mapping ──────────────────────────────────────────

    @app.exception_handler(BookingError)
    async def booking_error(request: Request, exc: BookingError) -> JSONResponse:
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": SERVER_ERROR_MESSAGE}, status_code=500)

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"ok": True})

    # ── Booking ────────────────────────────────────────────────

    @app.post("/api/book")
    async def book(request: Request) -> JSONResponse:
        """Book the requested slot for the customer.

        A body that is missing, not JSON, or not an object is handled as
        ``{}`` and fails validation with 400.
        """
        raw = await request.body()
        if len(raw) > settings.max_body_bytes:
            return JSONResponse({"error": BODY_TOO_LARGE_MESSAGE}, status_code=413)

        try:
            body = await request.json() if raw else {}
        except (ValueError, RecursionError):
            body = {}

        result = await service.book(body)
        return JSONResponse(result.model_dump(by_alias=True))

    @app.options("/api/book")
    async def book_preflight() -> Response:
        return Response(status_code=204)

    @app.api_route("/api/book", methods=["GET", "PUT", "PATCH", "DELETE"])
    async def book_method_not_allowed() -> JSONResponse:
        return JSONResponse({"error": "Method not allowed"}, status_code=405)

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "booking.app:create_app",
        factory=True,
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_config=log_config,
    )
