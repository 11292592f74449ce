from decimal import Decimal

import httpx
import pytest

from propmarket.config import Settings
from propmarket.errors import ConfigError, GatewayUnavailable, ValidationError
from propmarket.pay.razorpay import RazorpayGateway, to_minor_units
from propmarket.tests.conftest import KEY_SECRET, OrderApi, make_gateway


@pytest.mark.parametrize(
    "amount, paise",
    [(Decimal("500"), 50000), ("300", 30000), (4500, 450000), ("0.015", 2)],
)
def test_minor_units(amount, paise):
    assert to_minor_units(amount) == paise


@pytest.mark.parametrize("amount", ["0", "-1", "abc", "NaN"])
def test_minor_units_rejects_non_positive(amount):
    with pytest.raises(ValidationError):
        to_minor_units(amount)


async def test_create_order_posts_paise_with_basic_auth():
    seen = {}

    def api(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization", "")
        seen["path"] = request.url.path
        return OrderApi()(request)

    order = await make_gateway(api).create_order(Decimal("2500"), "INR", "subscription_1_1")

    assert order.order_id == "order_1"
    assert order.amount == Decimal("2500")
    assert order.receipt == "subscription_1_1"
    assert seen["path"] == "/v1/orders"
    assert seen["auth"].startswith("Basic ")


async def test_create_order_generates_receipt():
    api = OrderApi()
    order = await make_gateway(api).create_order(300)
    assert order.receipt.startswith("receipt_")
    assert api.calls[0] == {"amount": 30000, "currency": "INR", "receipt": order.receipt}


async def test_gateway_error_is_unavailable():
    with pytest.raises(GatewayUnavailable):
        await make_gateway(OrderApi(status=500)).create_order(500)


async def test_response_without_id_is_unavailable():
    gw = make_gateway(lambda request: httpx.Response(200, json={"status": "created"}))
    with pytest.raises(GatewayUnavailable):
        await gw.create_order(500)


async def test_missing_credentials_fail_before_network():
    api = OrderApi()
    gw = make_gateway(api, key_id="", key_secret="")
    with pytest.raises(GatewayUnavailable):
        await gw.create_order(500)
    assert api.calls == []


def test_signature_roundtrip_and_tamper():
    gw = make_gateway()
    sig = gw.sign("order_1", "pay_1")
    assert len(sig) == 64
    assert gw.verify_payment("order_1", "pay_1", sig)

    flipped = ("0" if sig[0] != "0" else "1") + sig[1:]
    assert not gw.verify_payment("order_1", "pay_1", flipped)
    assert not gw.verify_payment("order_1", "pay_2", sig)
    assert not gw.verify_payment("order_1", "pay_1", "")


def test_signature_matches_known_hmac():
    import hashlib
    import hmac

    expected = hmac.new(KEY_SECRET.encode(), b"order_A|pay_B", hashlib.sha256).hexdigest()
    assert make_gateway().sign("order_A", "pay_B") == expected


def test_sign_without_secret_is_config_error():
    with pytest.raises(ConfigError):
        RazorpayGateway("id", None).sign("order_1", "pay_1")


def test_from_settings_strict_requires_keys():
    s = Settings(RAZORPAY_KEY_ID="", RAZORPAY_KEY_SECRET="", PAYMENTS_REQUIRED=True)
    with pytest.raises(ConfigError):
        RazorpayGateway.from_settings(s)


def test_from_settings_lenient_builds_unconfigured_gateway():
    s = Settings(RAZORPAY_KEY_ID=None, RAZORPAY_KEY_SECRET=None, PAYMENTS_REQUIRED=False)
    gw = RazorpayGateway.from_settings(s)
    assert not gw.configured

    s = Settings(RAZORPAY_KEY_ID="rzp_x", RAZORPAY_KEY_SECRET="sec", RAZORPAY_API_BASE="https://x.test/v1/")
    gw = RazorpayGateway.from_settings(s)
    assert gw.configured
    assert gw.api_base == "https://x.test/v1"
