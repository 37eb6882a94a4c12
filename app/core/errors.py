"""
Domain errors raised by the stores and the auth gate.

Each error carries the HTTP status it maps to and a message that is safe to
show to the client. ``main.py`` turns them into ``{"error": message}``.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Something went wrong!"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidColor(ValidationError):
    default_message = "Color must be a valid hex color code"


class CategoryNotFound(ValidationError):
    default_message = "Category not found"


class AuthError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class MissingToken(AuthError):
    default_message = "Access token required"


class InvalidCredentials(AuthError):
    default_message = "Invalid credentials"


class InvalidToken(AuthError):
    status_code = 403
    default_message = "Invalid token"


class UnknownUser(AuthError):
    default_message = "Invalid token"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 400
    default_message = "Conflict"


class DuplicateEmail(ConflictError):
    default_message = "User already exists with this email"


class DuplicateCategory(ConflictError):
    default_message = "Category with this name already exists"


class CategoryInUse(ConflictError):
    default_message = "Cannot delete category that is being used by todos"


class InternalError(AppError):
    pass
