import logging
from typing import Any, Dict, Optional

import httpx

from donation_api.core.errors import GatewayError
from .base import PaymentsProvider

logger = logging.getLogger(__name__)

API_URL = "https://api.razorpay.com/v1"


def mask_key_id(key_id: Optional[str]) -> str:
    if not key_id:
        return "Not set"
    return key_id[:12] + "..."


class RazorpayPayments(PaymentsProvider):
    """
    Razorpay REST client (orders, subscriptions, payments).

    Authenticates with HTTP basic auth using the key id and key secret, as
    the official SDKs do. Every failure surfaces as GatewayError.
    """

    name = "razorpay"

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        base_url: str = API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=(key_id or "", key_secret or ""),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def health_check(self) -> Dict[str, str]:
        """check gateway config status without calling out."""
        if not self.key_id:
            return {"status": "misconfigured", "provider": self.name, "reason": "missing_key_id"}
        if not self.key_secret:
            return {"status": "misconfigured", "provider": self.name, "reason": "missing_key_secret"}
        return {"status": "configured", "provider": self.name, "key_id": mask_key_id(self.key_id)}

    @staticmethod
    def _error_description(response: httpx.Response) -> str:
        try:
            error = response.json().get("error") or {}
            description = error.get("description")
            if description:
                return str(description)
        except (ValueError, AttributeError):
            pass
        return f"Razorpay responded with HTTP {response.status_code}"

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        if not self.configured:
            raise GatewayError("Razorpay credentials not configured")

        try:
            r = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Razorpay {method} {path} timed out: {e}")
            raise GatewayError("Razorpay request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Razorpay {method} {path} failed: {e}")
            raise GatewayError(f"Razorpay request failed: {e}") from e

        if r.status_code >= 400:
            description = self._error_description(r)
            logger.error(f"Razorpay {method} {path} returned {r.status_code}: {description}")
            raise GatewayError(description, gateway_status=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise GatewayError("Bad response from Razorpay") from e
        if not data:
            raise GatewayError("Razorpay returned an empty response")
        return data

    def create_order(self, amount: int, currency: str, receipt: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/orders",
            json={"amount": amount, "currency": currency, "receipt": receipt},
        )

    def create_subscription(self, plan_id: str, total_count: int, customer_notify: bool = True) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/subscriptions",
            json={
                "plan_id": plan_id,
                "total_count": total_count,
                "customer_notify": 1 if customer_notify else 0,
            },
        )

    def list_payments(self, count: int = 1) -> Dict[str, Any]:
        return self._request("GET", "/payments", params={"count": count})

    def close(self) -> None:
        self._client.close()
