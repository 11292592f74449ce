# propmarket/errors.py
from __future__ import annotations


class MarketError(Exception):
    """Base for every error the services raise on purpose.

    ``code`` is the machine-readable tag sent to clients, ``status_code`` the
    HTTP status the web layer maps it to.
    """

    code = "error"
    status_code = 400

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.__doc__ or self.code
        super().__init__(self.detail)


class ValidationError(MarketError):
    """Malformed or missing input."""
    code = "validation_error"
    status_code = 400


class InvalidPlan(ValidationError):
    """Invalid plan"""
    code = "invalid_plan"


class PaymentVerificationFailed(MarketError):
    """Payment verification failed"""
    code = "payment_verification_failed"
    status_code = 400


class NotFound(MarketError):
    """Not found"""
    code = "not_found"
    status_code = 404


class Unauthorized(MarketError):
    """Unauthorized"""
    code = "unauthorized"
    status_code = 403


class SubscriptionRequired(MarketError):
    """Subscription required to post properties"""
    code = "subscription_required"
    status_code = 403


class EditWindowClosed(MarketError):
    """Property can only be edited within 3 days of creation"""
    code = "edit_window_closed"
    status_code = 403


class OfferClosed(MarketError):
    """Group offer is closed"""
    code = "offer_closed"
    status_code = 409


class GatewayUnavailable(MarketError):
    """Payment gateway unavailable"""
    code = "gateway_unavailable"
    status_code = 502


class ConfigError(MarketError):
    """Server misconfiguration"""
    code = "config_error"
    status_code = 500
