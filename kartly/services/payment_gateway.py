# kartly/services/payment_gateway.py
import httpx
from typing import Dict, Any, Optional, Protocol

from kartly.core.config import settings
from kartly.core.logging import logger


class GatewayError(Exception):
    """Raised when the payment gateway cannot create an intent"""


class PaymentGateway(Protocol):
    async def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        ...


class RazorpayGateway:
    """Service for Razorpay Orders API integration"""

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.key_id = key_id or settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret or settings.RAZORPAY_KEY_SECRET
        self.base_url = (base_url or settings.RAZORPAY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GATEWAY_TIMEOUT_SECONDS

    async def create_order(
        self,
        amount_minor_units: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a Razorpay order (payment intent)

        Args:
            amount_minor_units: Amount in paise/cents
            currency: ISO currency code (INR, ...)
            receipt: Our order id, echoed back by the gateway
            notes: Free-form key/value metadata

        Returns:
            The gateway order object; ``id`` is the gateway order id
        """
        if not self.key_id or not self.key_secret:
            raise GatewayError("Razorpay credentials are not configured")

        data = {
            "amount": amount_minor_units,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }

        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post(
                    "/v1/orders",
                    json=data,
                    auth=(self.key_id, self.key_secret),
                )
        except httpx.HTTPError as e:
            logger.error(f"Razorpay request failed: {str(e)}")
            raise GatewayError(str(e)) from e

        if response.status_code not in (200, 201):
            description = "Unknown error"
            try:
                description = response.json().get("error", {}).get("description", description)
            except ValueError:
                pass
            logger.error(f"Razorpay error {response.status_code}: {description}")
            raise GatewayError(f"Failed to create order: {description}")

        result = response.json()
        logger.info(f"Created Razorpay order: {result.get('id')}")
        return result
