"""Error taxonomy surfaced to API callers.

Every failure carries a machine-readable ``code`` and a human-readable
``message``; the API layer renders them as ``{"error": {"code", "message"}}``
with ``status_code`` as the HTTP status.
"""


class AppError(Exception):
    """Base class for classified application errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class InvalidAction(AppError):
    code = "INVALID_ACTION"
    status_code = 400
    message = "Cannot like yourself"


class UserNotFound(AppError):
    code = "USER_NOT_FOUND"
    status_code = 404
    message = "User not found"


class MatchNotFound(AppError):
    code = "MATCH_NOT_FOUND"
    status_code = 404
    message = "Match not found"


class AlreadyLiked(AppError):
    code = "ALREADY_LIKED"
    status_code = 409
    message = "You have already liked this user"


class Forbidden(AppError):
    code = "FORBIDDEN"
    status_code = 403
    message = "You are not part of this match"


class InvalidMessage(AppError):
    code = "INVALID_MESSAGE"
    status_code = 400
    message = "Message body is required"


class ValidationFailed(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400
    message = "Invalid request"


class InvalidEmailDomain(AppError):
    code = "INVALID_EMAIL_DOMAIN"
    status_code = 400
    message = "Invalid email domain"


class EmailAlreadyRegistered(AppError):
    code = "EMAIL_ALREADY_REGISTERED"
    status_code = 409
    message = "Email already registered"


class InvalidCredentials(AppError):
    code = "INVALID_CREDENTIALS"
    status_code = 401
    message = "Invalid credentials"


class Unauthorized(AppError):
    code = "UNAUTHORIZED"
    status_code = 401
    message = "Missing or invalid authorization header"


class InvalidVerificationCode(AppError):
    """Non-valid one-time-code outcome; ``code`` names the reason."""

    code = "INVALID_CODE"
    status_code = 400
    message = "Invalid verification code. Please try again."


class InternalError(AppError):
    pass
