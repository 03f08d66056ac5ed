"""Error types shared by the contact, push and verification features."""

from enum import Enum
from typing import NamedTuple, Optional

from fastapi import status


class ContactServiceError(Exception):
    """
    Base class for errors that end a request.

    `message` is the fixed user-facing text. `detail` holds internal context
    (exception text, offending value) and is only exposed outside production.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(ContactServiceError):
    """Malformed or missing input, disposable email, spam content."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthorizationDenied(ContactServiceError):
    """Source address or email is blacklisted."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class RateLimited(ContactServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class ConfigurationError(ContactServiceError):
    """A required setting is missing. Detail names the setting, never its value."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server configuration error"


class TransportError(ContactServiceError):
    """A mail or push send raised. Logged and reported as a failed delivery, never raised to the client."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to deliver notification"


class StorageError(ContactServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable. Please try again later."


class DeliveryStatus(str, Enum):
    SENT = "sent"
    GONE = "gone"  # endpoint permanently invalid (HTTP 404/410)
    FAILED = "failed"


class DeliveryResult(NamedTuple):
    """Outcome reported by the mail and push transports."""
    status: DeliveryStatus
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.SENT

    @classmethod
    def sent(cls) -> "DeliveryResult":
        return cls(DeliveryStatus.SENT)

    @classmethod
    def gone(cls, detail: Optional[str] = None) -> "DeliveryResult":
        return cls(DeliveryStatus.GONE, detail)

    @classmethod
    def failed(cls, detail: Optional[str] = None) -> "DeliveryResult":
        return cls(DeliveryStatus.FAILED, detail)
