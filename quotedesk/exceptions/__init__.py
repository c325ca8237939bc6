"""Custom exceptions for the offer management application."""
from quotedesk.utils.money import format_percent


class QuoteDeskError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(QuoteDeskError):
    """Malformed or out-of-range input. Always correctable by the caller."""
    def __init__(self, message, errors=None, status_code=400, payload=None):
        self.errors = list(errors) if errors else [message]
        payload = dict(payload or ())
        payload['errors'] = self.errors
        super().__init__(message, status_code, payload)

    @classmethod
    def from_errors(cls, errors):
        """Build one error carrying every collected violation."""
        return cls('; '.join(errors), errors=errors)


class DiscountLimitError(ValidationError):
    """Raised when a requested discount exceeds the configured ceiling."""
    def __init__(self, requested, max_discount):
        self.requested = requested
        self.max_discount = max_discount
        message = f"Maximum discount is {format_percent(max_discount)}%"
        super().__init__(message, payload={'max_discount': str(max_discount)})


class NotFoundError(QuoteDeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class UnauthorizedError(QuoteDeskError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)


class ConsistencyError(QuoteDeskError):
    """A multi-step write failed and its unit of work was rolled back."""
    def __init__(self, message="The operation could not be saved and was rolled back"):
        super().__init__(message, 500)
