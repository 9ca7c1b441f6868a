class BookingError(Exception):
    """Base class for rejections raised by the store and the booking engine."""

    code = "BookingError"
    message = "Request rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


# --- Validation (user-correctable) ---
class ValidationError(BookingError):
    code = "ValidationError"
    message = "Invalid input"


class InvalidDateFormat(ValidationError):
    code = "InvalidDateFormat"
    message = "Invalid date format. Use YYYY-MM-DD or DD/MM/YYYY."


class InvalidDateOrder(ValidationError):
    code = "InvalidDateOrder"
    message = "Check-out date must be after check-in."


class PastCheckIn(ValidationError):
    code = "PastCheckIn"
    message = "Check-in date must be today or in the future."


class IncompleteProfile(ValidationError):
    code = "IncompleteProfile"
    message = "Please complete your profile before booking."


class InvalidCredentials(ValidationError):
    code = "InvalidCredentials"
    message = "Invalid username or phone number."


class InvalidPassword(ValidationError):
    code = "InvalidPassword"
    message = "Invalid admin password."


# --- Conflicts ---
class ConflictError(BookingError):
    code = "ConflictError"
    message = "Conflicting request"


class RoomUnavailable(ConflictError):
    code = "RoomUnavailable"
    message = "Room is already booked for those dates."


class UsernameTaken(ConflictError):
    code = "UsernameTaken"
    message = "Username already taken. Please choose another."


class RecordFormatError(ValueError):
    """A table row (or a value headed for one) does not fit the table format."""
