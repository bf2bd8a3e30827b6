"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ExpiredError(ApplicationError):
    """Raised when a note exists but its expiration time has passed."""

    def __init__(self, message: str = "Note has expired") -> None:
        super().__init__(message, code="NOTE_EXPIRED")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict | None = None,
        code: str = "VAL_VALIDATION_ERROR",
    ) -> None:
        self.details = details or {}
        super().__init__(message, code=code)


class InvalidContentError(ValidationError):
    """Raised when note content is blank after sanitization or the duration is out of range."""

    def __init__(self, message: str = "Content cannot be empty", details: dict | None = None) -> None:
        super().__init__(message, details=details, code="NOTE_INVALID_CONTENT")


class AuthorizationError(ApplicationError):
    """Raised when an operation is not permitted."""

    def __init__(self, message: str = "Permission denied", code: str = "AUTHZ_FORBIDDEN") -> None:
        super().__init__(message, code=code)


class ReadOnlyNoteError(AuthorizationError):
    """Raised when an update targets a note created as read-only."""

    def __init__(self, message: str = "Note is read-only") -> None:
        super().__init__(message, code="NOTE_READ_ONLY")


class ConflictError(ApplicationError):
    """Raised when there is a state conflict."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class CryptoError(ApplicationError):
    """Raised when note content cannot be encrypted or decrypted."""

    def __init__(self, message: str = "Content encryption failed") -> None:
        super().__init__(message, code="SYS_CRYPTO_ERROR")


class CodeSpaceExhaustedError(ApplicationError):
    """Raised when no unused URL code could be found within the allowed attempts."""

    def __init__(self, message: str = "Could not allocate a unique URL code") -> None:
        super().__init__(message, code="NOTE_CODE_SPACE_EXHAUSTED")


class UrlCodeCollisionError(ConflictError):
    """Raised when an insert loses the race for a URL code to another writer."""

    def __init__(self, message: str = "URL code already taken") -> None:
        super().__init__(message)


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")
