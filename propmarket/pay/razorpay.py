# propmarket/pay/razorpay.py
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional

import httpx

from propmarket.config import Settings
from propmarket.errors import ConfigError, GatewayUnavailable, ValidationError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount: Decimal  # major units, as requested
    currency: str
    receipt: str


def to_minor_units(amount: Decimal | int | str) -> int:
    """Rupees -> paise. Rejects anything that is not a positive amount."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"invalid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise ValidationError(f"amount must be positive, got {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _tail(s: str | None, n: int = 4) -> str:
    s = s or ""
    return s[-n:] if len(s) >= n else s


class RazorpayGateway:
    """
    Stateless Razorpay adapter.
      - create_order: POST /orders (amount in paise), explicit timeout, no retries
      - verify_payment: local HMAC-SHA256 over "order_id|payment_id"
    Built once at startup and injected; see web/deps.py.
    """

    def __init__(
        self,
        key_id: Optional[str],
        key_secret: Optional[str],
        *,
        api_base: str = "https://api.razorpay.com/v1",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.key_id = key_id or ""
        self.key_secret = key_secret or ""
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, s: Settings, *, strict: bool | None = None) -> "RazorpayGateway":
        strict = s.PAYMENTS_REQUIRED if strict is None else strict
        if strict and not s.gateway_configured:
            raise ConfigError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be set")
        if not s.gateway_configured:
            log.warning("razorpay_not_configured: orders will fail until credentials are set")
        return cls(
            s.RAZORPAY_KEY_ID,
            s.RAZORPAY_KEY_SECRET,
            api_base=s.RAZORPAY_API_BASE,
            timeout=s.RAZORPAY_TIMEOUT_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    # ---------- orders ----------

    async def create_order(
        self,
        amount: Decimal | int | str,
        currency: str = "INR",
        receipt: Optional[str] = None,
    ) -> GatewayOrder:
        paise = to_minor_units(amount)
        if not self.configured:
            raise GatewayUnavailable("Razorpay credentials are missing")

        receipt = receipt or f"receipt_{int(time.time() * 1000)}"
        payload = {"amount": paise, "currency": currency, "receipt": receipt}

        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                r = await client.post("/orders", json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            log.warning(
                "razorpay_order_rejected status=%s receipt=%s key_tail=%s",
                e.response.status_code, receipt, _tail(self.key_id),
            )
            raise GatewayUnavailable(f"Razorpay order creation failed: HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            log.warning("razorpay_order_error receipt=%s error=%r", receipt, e)
            raise GatewayUnavailable(f"Razorpay order creation failed: {e}") from e

        order_id = data.get("id") if isinstance(data, dict) else None
        if not order_id:
            raise GatewayUnavailable("Razorpay order creation failed: no order id in response")

        log.info("razorpay_order_created", extra={"order_id": order_id, "receipt": receipt, "paise": paise})
        return GatewayOrder(order_id=str(order_id), amount=Decimal(str(amount)), currency=currency, receipt=receipt)

    # ---------- signatures ----------

    def sign(self, order_id: str, payment_id: str) -> str:
        if not self.key_secret:
            raise ConfigError("Razorpay key secret is missing")
        base = f"{order_id}|{payment_id}"
        return hmac.new(self.key_secret.encode(), base.encode(), hashlib.sha256).hexdigest()

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = self.sign(order_id, payment_id)
        ok = hmac.compare_digest(expected.encode(), (signature or "").encode())
        if not ok:
            log.warning("razorpay_bad_signature", extra={"order_id": order_id})
        return ok
