"""Custom exception classes for the Query Quest backend.

This module defines application-specific exceptions following Google Python
Style Guide. Every exception carries the HTTP status code the API layer
answers with, so routes can translate them into ``HTTPException`` uniformly.
"""


class QueryQuestError(Exception):
    """Base exception for all Query Quest errors."""

    status_code = 500


class ValidationError(QueryQuestError):
    """Raised when request data is missing or malformed."""

    status_code = 400


class NotFoundError(QueryQuestError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class AuthorizationError(QueryQuestError):
    """Raised when the caller's role does not allow the operation."""

    status_code = 403


class AuthenticationError(QueryQuestError):
    """Raised when credentials or the session are missing or wrong."""

    status_code = 401


class DependencyFailure(QueryQuestError):
    """Raised when the database or an external service call fails."""

    status_code = 500


# --- Validation errors ---


class MissingFieldsError(ValidationError):
    """Raised when required fields are absent or blank."""

    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message)


class UnrecognizedDomainError(ValidationError):
    """Raised when an email matches no registered institution."""

    pass


class DuplicateEmailError(ValidationError):
    """Raised when an account with the same email already exists."""

    def __init__(self, email: str):
        """Initialize the exception.

        Args:
            email: The email address that is already registered.
        """
        self.email = email
        super().__init__("Email already exists")


class InvalidVerificationTokenError(ValidationError):
    """Raised when a verification token is unknown or expired."""

    def __init__(self):
        super().__init__("Invalid or expired verification token")


class InvalidStatusError(ValidationError):
    """Raised when a contact request status is not allowed."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(
            "Invalid status. Must be 'pending', 'approved', or 'rejected'"
        )


# --- Authentication / authorization errors ---


class InvalidCredentialsError(AuthenticationError):
    """Raised when login credentials do not match an account."""

    def __init__(self):
        super().__init__("Invalid email or password")


class EmailNotVerifiedError(AuthorizationError):
    """Raised when an unverified account tries to log in."""

    def __init__(self):
        super().__init__(
            "Please verify your email address before logging in. "
            "Check your inbox for a verification link."
        )


# --- Not found errors ---


class _EntityNotFoundError(NotFoundError):
    entity = "Entity"

    def __init__(self, entity_id=None):
        """Initialize the exception.

        Args:
            entity_id: The ID of the entity that was not found.
        """
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found")


class UserNotFoundError(_EntityNotFoundError):
    entity = "User"


class InstitutionNotFoundError(_EntityNotFoundError):
    entity = "Institution"


class ChallengeNotFoundError(_EntityNotFoundError):
    entity = "Challenge"


class LessonNotFoundError(_EntityNotFoundError):
    entity = "Lesson"


class ContactRequestNotFoundError(_EntityNotFoundError):
    entity = "Contact request"


class LogNotFoundError(_EntityNotFoundError):
    entity = "Log"


# --- Dependency failures ---


class ConfigurationError(DependencyFailure):
    """Raised when there is a configuration error."""

    pass


class CompletionError(DependencyFailure):
    """Raised when the chat completion provider fails or answers empty."""

    pass
