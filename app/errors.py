from __future__ import annotations


class AppError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


# ---------- input ----------

class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"


class OtpNotFound(ValidationError):
    message = "OTP not found"


class OtpExpired(ValidationError):
    message = "OTP expired"


class OtpMismatch(ValidationError):
    message = "Invalid OTP"


class EmailNotVerified(ValidationError):
    message = "Email not verified"


# ---------- auth ----------

class AuthenticationError(AppError):
    status_code = 401
    message = "Not authenticated"


class Unauthenticated(AuthenticationError):
    pass


class InvalidToken(AuthenticationError):
    message = "Invalid or expired token"


class InvalidSession(AuthenticationError):
    status_code = 403
    message = "Invalid session"


class SessionExpired(AuthenticationError):
    status_code = 403
    message = "Session expired"


class InvalidCredentials(AuthenticationError):
    status_code = 400
    message = "Invalid credentials"


class AccountNotVerified(AuthenticationError):
    status_code = 403
    message = "Email not verified"


class ForbiddenError(AppError):
    status_code = 403
    message = "Forbidden"


# ---------- state ----------

class ConflictError(AppError):
    status_code = 400
    message = "Conflict"


class AlreadyExists(ConflictError):
    message = "User already exists"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class UserNotFound(NotFoundError):
    message = "User not found"


class PlanNotFound(NotFoundError):
    message = "Plan not found"


class JoinRequestNotFound(NotFoundError):
    message = "Join request not found"


# ---------- infrastructure ----------

class DeliveryError(AppError):
    status_code = 500
    message = "Failed to send email"


class ServerError(AppError):
    pass
