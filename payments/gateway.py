"""Midtrans Snap client.

Only the two calls the marketplace needs: creating a Snap transaction (token +
redirect URL) and verifying a notification signature. HTTP goes through
`requests` with a bounded timeout; every transport or gateway-side failure is
raised as `GatewayError`.
"""

import hashlib
import logging
import time

import requests
from django.conf import settings

from common.exceptions import GatewayError

logger = logging.getLogger(__name__)

SANDBOX_SNAP_URL = "https://app.sandbox.midtrans.com/snap/v1/transactions"
PRODUCTION_SNAP_URL = "https://app.midtrans.com/snap/v1/transactions"


def build_reference(order_id, prefix="ORDER") -> str:
    """Gateway reference for a new transaction: ORDER-<order_id>-<epoch millis>."""
    return f"{prefix}-{order_id}-{int(time.time() * 1000)}"


def parse_order_reference(reference, prefix="ORDER"):
    """Return the order id encoded in a gateway reference, or None.

    'ORDER-42-1700000000000' -> 42. A bare numeric reference is taken as the
    order id itself.
    """
    reference = str(reference or "").strip()
    if reference.startswith(f"{prefix}-"):
        parts = reference.split("-")
        candidate = parts[1] if len(parts) > 1 else ""
    else:
        candidate = reference
    return int(candidate) if candidate.isdigit() else None


def verify_signature(notification: dict, server_key: str) -> bool:
    """Check `signature_key` = sha512(order_id + status_code + gross_amount + server_key)."""
    raw = "{}{}{}{}".format(
        notification.get("order_id", ""),
        notification.get("status_code", ""),
        notification.get("gross_amount", ""),
        server_key,
    )
    expected = hashlib.sha512(raw.encode("utf-8")).hexdigest()
    return expected == str(notification.get("signature_key", ""))


class MidtransGateway:
    def __init__(self, server_key, client_key="", is_production=False, timeout=10.0):
        self.server_key = server_key
        self.client_key = client_key
        self.timeout = timeout
        self.url = PRODUCTION_SNAP_URL if is_production else SANDBOX_SNAP_URL

    @classmethod
    def from_settings(cls):
        conf = settings.PAYMENT_GATEWAY
        return cls(
            server_key=conf["SERVER_KEY"],
            client_key=conf["CLIENT_KEY"],
            is_production=conf["IS_PRODUCTION"],
            timeout=conf["TIMEOUT"],
        )

    def create_transaction(self, parameters: dict) -> dict:
        """POST a Snap transaction and return {"token", "redirect_url"}."""
        reference = parameters.get("transaction_details", {}).get("order_id")
        try:
            response = requests.post(
                self.url,
                json=parameters,
                auth=(self.server_key, ""),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Snap request for %s failed: %s", reference, e)
            raise GatewayError("Payment gateway is unreachable.")

        if not 200 <= response.status_code < 300:
            logger.error(
                "Snap rejected %s with HTTP %s: %s",
                reference, response.status_code, response.text[:500],
            )
            raise GatewayError(f"Payment gateway returned HTTP {response.status_code}.")

        try:
            body = response.json()
        except ValueError:
            raise GatewayError("Payment gateway returned an invalid response.")
        if not body.get("token"):
            logger.error("Snap response for %s has no token: %s", reference, body)
            raise GatewayError("Payment gateway did not return a token.")

        logger.info("Snap token created for %s", reference)
        return {"token": body["token"], "redirect_url": body.get("redirect_url", "")}
