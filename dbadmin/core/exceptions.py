"""
Custom Exceptions - Application-specific error classes.

Transport implementations raise these; the query channel converts them into
success/failure outcomes so callers never see a raw driver exception.
"""
from typing import Optional


class DbAdminException(Exception):
    """
    Base exception for all dbadmin errors.

    Subclass this for specific error types.
    """
    error_code: str = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to error response dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


class AuthenticationError(DbAdminException):
    """Raised when the server rejects credentials or a session token is no longer valid."""
    error_code = "authentication_failed"

    def __init__(self, message: str = "Authentication failed", details: Optional[str] = None):
        super().__init__(message, details)


class NotAuthenticatedError(AuthenticationError):
    """Raised when a query is attempted without an authenticated session."""
    error_code = "not_authenticated"

    def __init__(self, message: str = "No authenticated session"):
        super().__init__(message)


class TransportError(DbAdminException):
    """Raised for network or engine failures that are not about credentials."""
    error_code = "transport_error"

    def __init__(self, message: str = "Database operation failed", details: Optional[str] = None):
        super().__init__(message, details)


class UnsupportedDatabaseError(DbAdminException):
    """Raised when credentials name a database type other than MySQL."""
    error_code = "unsupported_database"

    def __init__(self, db_type: str):
        super().__init__(
            message=f"Unsupported database type: {db_type}",
            details=f"db_type={db_type}"
        )
        self.db_type = db_type
