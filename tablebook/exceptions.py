"""Error taxonomy for the reservation engine.

Every error here is an expected, recoverable outcome. The API layer maps
``status_code`` onto the HTTP response; nothing in the core treats these as
fatal.
"""
from __future__ import annotations


class ReservationError(Exception):
    """Base class for reservation engine errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(ReservationError):
    """Request is well-formed but violates a booking rule."""

    status_code = 400


class NotFound(ReservationError):
    """Referenced restaurant, table, reservation or token does not exist."""

    status_code = 404


class AccessDenied(ReservationError):
    """Caller does not own the reservation."""

    status_code = 403


class SlotUnavailable(ReservationError):
    """No table satisfies the request. The caller may pick another slot."""

    status_code = 409

    def __init__(self, message: str = "No tables available for the selected time slot"):
        super().__init__(message)


class InvalidTransition(ReservationError):
    """Status change not permitted by the reservation state machine."""

    status_code = 409

    def __init__(self, current: str, target: str, message: str | None = None):
        super().__init__(
            message or f"Cannot move reservation from {current} to {target}"
        )
        self.current = current
        self.target = target


class AlreadyCancelled(InvalidTransition):
    """Reservation was cancelled earlier."""

    def __init__(self) -> None:
        super().__init__(
            "CANCELLED", "CANCELLED", message="Reservation is already cancelled"
        )


class TokenExpired(ReservationError):
    """Guest management token is past its expiry."""

    status_code = 410

    def __init__(self, message: str = "Management token has expired"):
        super().__init__(message)


class ConflictError(ReservationError):
    """Raised by a store when a concurrent write already holds the table.

    Stays inside the persistence boundary: the lifecycle converts it into
    SlotUnavailable.
    """

    status_code = 409
