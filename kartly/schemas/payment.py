# kartly/schemas/payment.py
"""
Payment gateway payloads.

Webhook envelopes are parsed into a small tagged union. Only the event kinds
the reconciler acts on get their own variant; everything else becomes an
``UnhandledEvent`` that is acknowledged and ignored.
"""
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel, ConfigDict


class PaymentIntent(BaseModel):
    gateway_order_id: str
    amount_minor_units: int


class PaymentEntity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_id: str
    amount: Optional[int] = None
    status: Optional[str] = None


class PaymentCaptured(BaseModel):
    event: str
    payment: PaymentEntity


class PaymentFailed(BaseModel):
    event: str
    payment: PaymentEntity


class UnhandledEvent(BaseModel):
    event: str


WebhookEvent = Union[PaymentCaptured, PaymentFailed, UnhandledEvent]

CAPTURED_EVENTS = ("payment.captured", "order.paid")
FAILED_EVENTS = ("payment.failed",)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_webhook_event(envelope: Dict[str, Any]) -> WebhookEvent:
    """
    Map a decoded Razorpay webhook envelope to a WebhookEvent.

    Shape: ``{"event": "...", "payload": {"payment": {"entity": {...}}}}``.
    Raises ``pydantic.ValidationError`` when a known event lacks its entity,
    including when any level of the envelope is not an object.
    """
    event = str(envelope.get("event") or "")
    if event in CAPTURED_EVENTS or event in FAILED_EVENTS:
        entity = _as_dict(_as_dict(envelope.get("payload")).get("payment")).get("entity")
        payment = PaymentEntity.model_validate(entity)
        if event in CAPTURED_EVENTS:
            return PaymentCaptured(event=event, payment=payment)
        return PaymentFailed(event=event, payment=payment)
    return UnhandledEvent(event=event)
