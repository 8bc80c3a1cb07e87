"""Reservation engine exceptions.

The excluded HTTP layer maps these onto status codes: NotFoundError to
404, InvalidStateError to 400, ConflictError to 409, PaymentRequiredError
to 402 and PaymentGatewayError to 502.
"""


class ReservationError(Exception):
    """Base exception for reservation engine failures."""


class NotFoundError(ReservationError):
    """Raised when a referenced entity does not exist."""


class ReservationNotFoundError(NotFoundError):
    """Raised when a reservation id does not exist."""


class RoomNotFoundError(NotFoundError):
    """Raised when a room id does not exist."""


class RoomTypeNotFoundError(NotFoundError):
    """Raised when a room references a missing room type."""


class GuestNotFoundError(NotFoundError):
    """Raised when a guest id or email does not exist."""


class InvalidStateError(ReservationError):
    """Raised when an operation is not legal for the reservation's status."""


class CheckInTooEarlyError(InvalidStateError):
    """Raised when check-in is attempted before the check-in date."""


class CheckInTooLateError(InvalidStateError):
    """Raised when check-in is attempted on or after the check-out date."""


class ConflictError(ReservationError):
    """Raised when the request collides with current room state."""


class RoomUnavailableError(ConflictError):
    """Raised when the room is already booked for overlapping dates."""


class RoomOccupiedError(ConflictError):
    """Raised when checking into a room another guest occupies."""


class RoomBusyError(ConflictError):
    """Raised when a room lease could not be obtained within the allowed wait."""


class PaymentRequiredError(ReservationError):
    """Raised when a guest upgrade arrives without a new payment reference."""


class PaymentGatewayError(ReservationError):
    """Raised when the payment provider rejects or fails a call."""
