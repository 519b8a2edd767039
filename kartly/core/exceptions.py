# kartly/core/exceptions.py
"""
Domain errors raised by the service layer.

Every error carries the HTTP status it maps to and a machine-readable
``reason`` the frontend can switch on. The API layer renders them as
``{"error": reason, "detail": message}``.
"""
from typing import Optional, Dict, Any


class KartlyError(Exception):
    """Base class for all domain errors"""
    status_code: int = 500
    reason: str = "InternalError"
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.reason, "detail": self.message}


# Validation

class ValidationError(KartlyError):
    status_code = 400
    reason = "ValidationError"
    default_message = "Invalid request"


class InvalidAmount(ValidationError):
    reason = "InvalidAmount"
    default_message = "Order amounts are inconsistent"


class InvalidItems(ValidationError):
    reason = "InvalidItems"
    default_message = "Order must contain at least one item"


class InvalidStatus(ValidationError):
    reason = "InvalidStatus"
    default_message = "Unknown order status"


# Lookup / tenant isolation

class NotFound(KartlyError):
    status_code = 404
    reason = "NotFound"
    default_message = "Resource not found"


class InvalidTransition(KartlyError):
    status_code = 409
    reason = "InvalidTransition"
    default_message = "Order status transition not allowed"


# Preconditions

class PreconditionFailed(KartlyError):
    status_code = 403
    reason = "PreconditionFailed"
    default_message = "Precondition failed"


class NoSubscription(PreconditionFailed):
    reason = "NoSubscription"
    default_message = "This vendor does not have an active subscription."


class Expired(PreconditionFailed):
    reason = "Expired"
    default_message = "This vendor's subscription has expired."


class VendorSuspended(PreconditionFailed):
    reason = "VendorSuspended"
    default_message = "This vendor account is suspended."


class CatalogIncomplete(PreconditionFailed):
    status_code = 400
    reason = "CatalogIncomplete"
    default_message = "Add at least one active category and one available menu item."


# Payments

class SignatureInvalid(KartlyError):
    status_code = 400
    reason = "InvalidSignature"
    default_message = "Invalid webhook signature"


class UpstreamFailure(KartlyError):
    status_code = 502
    reason = "UpstreamFailure"
    default_message = "Payment gateway unavailable, please retry"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = True
        return data
