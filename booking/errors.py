"""
Booking errors and the client-facing messages they carry.

Every error the handler surfaces maps to one HTTP status and one message.
Messages are safe to show to the customer; collaborator details never are.

Usage:
    from booking.errors import SlotConflict

    raise SlotConflict()
"""

INVALID_START_MESSAGE = "Invalid start time."
INVALID_CUSTOMER_MESSAGE = "Please provide name, phone, and a valid email."
SLOT_CONFLICT_MESSAGE = "That slot was just booked. Please pick another time."
SERVER_ERROR_MESSAGE = "Server error creating booking."


class BookingError(Exception):
    """Base exception for all booking errors."""

    status_code = 500
    default_message = SERVER_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class InvalidInput(BookingError):
    """Malformed or missing required fields. Never retried."""

    status_code = 400
    default_message = INVALID_CUSTOMER_MESSAGE


class SlotConflict(BookingError):
    """The calendar reported the requested interval as busy."""

    status_code = 409
    default_message = SLOT_CONFLICT_MESSAGE


class ServerError(BookingError):
    """Collaborator failure or anything unanticipated."""

    pass
