class SchedulingError(Exception):
    """
    Base class for every failure the scheduling core reports.
    Each subclass knows the HTTP status and a stable error code so the
    app-level error handler can render it without guessing.
    """
    status_code = 400
    code = "SCHEDULING_ERROR"
    message = "Scheduling error"

    def __init__(self, message: str = None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> dict:
        out = {"error": self.message, "code": self.code}
        if self.details:
            out["details"] = self.details
        return out


class ValidationError(SchedulingError):
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class InvalidRange(SchedulingError):
    code = "INVALID_RANGE"
    message = "end_time must be after start_time"


class OverlapConflict(SchedulingError):
    status_code = 409
    code = "OVERLAP_CONFLICT"

    def __init__(self, range_a, range_b):
        super().__init__(
            f"Slot {range_a} overlaps {range_b}",
            range_a=range_a.to_dict(),
            range_b=range_b.to_dict(),
        )
        self.range_a = range_a
        self.range_b = range_b


class SlotUnavailable(SchedulingError):
    status_code = 409
    code = "SLOT_UNAVAILABLE"
    message = "Slot is already booked"


class SlotBooked(SchedulingError):
    status_code = 409
    code = "SLOT_BOOKED"
    message = "Slot has a booking; cancel the booking first"


class SlotNotFound(SchedulingError):
    status_code = 404
    code = "SLOT_NOT_FOUND"
    message = "Slot not found"


class CourtNotFound(SchedulingError):
    status_code = 404
    code = "COURT_NOT_FOUND"
    message = "Court not found"


class BookingNotFound(SchedulingError):
    status_code = 404
    code = "BOOKING_NOT_FOUND"
    message = "Booking not found"


class CodeMismatch(SchedulingError):
    code = "CODE_MISMATCH"
    message = "Incorrect cancellation code"


class CodeExpired(SchedulingError):
    code = "CODE_EXPIRED"
    message = "Cancellation code expired, request a new one"


class AlreadyUsed(SchedulingError):
    code = "CODE_ALREADY_USED"
    message = "Cancellation code already used"


class NotAuthorized(SchedulingError):
    status_code = 403
    code = "NOT_AUTHORIZED"
    message = "Cancellation not verified"


class CourtExists(SchedulingError):
    status_code = 409
    code = "COURT_EXISTS"
    message = "Court name already exists in this category"
