"""
Escrow payment gateway hook.

Called after a reservation has been committed in pending state. The gateway
is a black box: we post the reservation and remember whatever payment id
comes back. Failures are logged and reported to the caller as ``None``;
they never reach the reservation transition.
"""

import logging
import uuid
from datetime import datetime

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Raised when the gateway answers with an error payload."""

    pass


class EscrowPaymentGateway:
    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: float | None = None):
        self.base_url = base_url if base_url is not None else getattr(settings, "PAYMENT_GATEWAY_URL", "")
        self.api_key = api_key if api_key is not None else getattr(settings, "PAYMENT_GATEWAY_API_KEY", "")
        self.timeout = timeout or getattr(settings, "PAYMENT_GATEWAY_TIMEOUT", 10)

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    def request_payment(self, reservation_id, kind: str, amount, currency: str, payer_id: int) -> dict | None:
        """
        Ask the gateway to hold ``amount`` for a reservation.

        Returns the gateway response (always carrying ``payment_id``) or
        ``None`` when the call failed.
        """
        logger.info(f"Requesting escrow payment for {kind} reservation {reservation_id}: {amount} {currency}")

        if not self.is_configured:
            payment_id = f"emulated_{uuid.uuid4().hex[:16]}"
            logger.warning(f"Payment gateway not configured, emulating payment {payment_id}")
            return {
                "payment_id": payment_id,
                "status": "pending",
                "amount": str(amount),
                "currency": currency,
                "reference": str(reservation_id),
                "created_at": datetime.now().isoformat(),
                "emulated": True,
            }

        payload = {
            "reference": str(reservation_id),
            "kind": kind,
            "amount": str(amount),
            "currency": currency,
            "payer_id": payer_id,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = requests.post(
                f"{self.base_url.rstrip('/')}/payments",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
            if not result.get("payment_id"):
                raise PaymentGatewayError(f"Gateway response without payment_id: {result}")
            logger.info(f"Escrow payment {result['payment_id']} requested for reservation {reservation_id}")
            return result
        except (requests.RequestException, ValueError, PaymentGatewayError) as e:
            logger.error(f"Escrow payment request for reservation {reservation_id} failed: {e}", exc_info=True)
            return None
