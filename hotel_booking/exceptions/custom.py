from __future__ import annotations


class BookingError(Exception):
    """Base class for errors surfaced by the booking core."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BookingError):
    """Missing or malformed input, bad date order, or an unusable room."""

    def __init__(self, message: str, room_number: str | None = None):
        self.room_number = room_number
        super().__init__(message)


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    status_code = 409


class TransientInfraError(BookingError):
    status_code = 503
