# services/errors.py
from __future__ import annotations


class InvoiceServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(InvoiceServiceError):
    status_code = 400
    default_message = "Invalid invoice data"


class Unauthorized(InvoiceServiceError):
    status_code = 401
    default_message = "Not authorized"


class Forbidden(InvoiceServiceError):
    status_code = 403
    default_message = "Not authorized to access this invoice."


class NotFound(InvoiceServiceError):
    status_code = 404
    default_message = "Invoice not found."


class NotReady(InvoiceServiceError):
    # same status as NotFound on purpose
    status_code = 404
    default_message = "PDF not available or still processing."


class RateLimitExceeded(InvoiceServiceError):
    status_code = 429
    default_message = "Too many PDF generation requests. Please try again in a minute."


class RenderError(InvoiceServiceError):
    """Raised when the PDF could not be drawn."""


class StorageError(InvoiceServiceError):
    """Raised on any object-storage failure (transport, credentials, bucket, key)."""


class InvalidTransition(InvoiceServiceError):
    """Raised when code tries to move an invoice out of a terminal status."""
