"""Custom exception classes for the application."""


class QuotesException(Exception):
    """Base exception for all quote service errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(QuotesException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class AlreadyLikedError(QuotesException):
    """Raised when the caller has already liked the quote."""

    def __init__(self, quote_id: str):
        self.quote_id = quote_id
        super().__init__(f"You have already liked quote '{quote_id}'")


class UnavailableError(QuotesException):
    """Raised when the database is unreachable or a query fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        super().__init__(f"Database unavailable during {operation}: {reason}")
