"""
Errors raised by the check-in services.
Each carries the HTTP status and machine-readable code the API responds with.
"""


class CheckinError(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self):
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
        }


# --- InvalidInput -------------------------------------------------------

class InvalidInput(CheckinError):
    status_code = 400
    error_code = "INVALID_INPUT"
    message = "Invalid input"


class InvalidCount(InvalidInput):
    error_code = "INVALID_COUNT"
    message = "Count must be an integer between 1 and 100"


# --- Unauthorized -------------------------------------------------------

class Unauthorized(CheckinError):
    status_code = 401
    error_code = "UNAUTHORIZED"
    message = "Unauthorized"


# --- NotFound -----------------------------------------------------------

class CodeNotFound(CheckinError):
    status_code = 404
    error_code = "CODE_NOT_FOUND"
    message = "Invalid code"


class NotRedeemed(CodeNotFound):
    error_code = "NOT_REGISTERED"
    message = "Invalid code or user not registered"


# --- Conflict -----------------------------------------------------------

class AlreadyRedeemed(CheckinError):
    status_code = 400
    error_code = "CODE_ALREADY_USED"
    message = "Code already used"


class IdentityConflict(CheckinError):
    status_code = 409
    error_code = "EMAIL_ALREADY_REGISTERED"
    message = "Email already registered"


class InvalidTransition(CheckinError):
    status_code = 409
    error_code = "INVALID_TRANSITION"
    message = "Invalid state transition"


class EntryLimitReached(CheckinError):
    status_code = 409
    error_code = "ENTRY_LIMIT_REACHED"
    message = "Entry limit reached for this code"


# --- Internal -----------------------------------------------------------

class CodeSpaceExhausted(CheckinError):
    status_code = 503
    error_code = "CODE_SPACE_EXHAUSTED"
    message = "Could not generate unique codes, code space exhausted"
