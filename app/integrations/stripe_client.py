import logging
from typing import Any

import stripe

from app.core.errors import SignatureVerificationFailed, UpstreamProviderError

logger = logging.getLogger(__name__)


def _plain(obj: Any) -> dict[str, Any]:
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """Thin wrapper around the Stripe SDK.

    The secret key is passed on every call instead of being assigned to the
    module-global ``stripe.api_key``, so test and live gateways can coexist.
    """

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _call(self, label: str, fn, *args, **kwargs) -> dict[str, Any]:
        if not self.is_configured():
            raise UpstreamProviderError("Stripe is not configured", details="missing secret key")
        try:
            return _plain(fn(*args, api_key=self._api_key, **kwargs))
        except stripe.StripeError as e:
            logger.error("Stripe %s failed: %s", label, e)
            raise UpstreamProviderError(f"Stripe {label} failed", details=str(e)) from e

    # ---------------------------
    # checkout
    # ---------------------------

    def create_checkout_session(self, **params: Any) -> dict[str, Any]:
        session = self._call("checkout session creation", stripe.checkout.Session.create, **params)
        logger.info("Created Stripe checkout session", extra={"session_id": session.get("id")})
        return session

    def retrieve_checkout_session(self, session_id: str, expand: list[str] | None = None) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"expand": expand} if expand else {}
        return self._call("checkout session lookup", stripe.checkout.Session.retrieve, session_id, **kwargs)

    def retrieve_price(self, price_id: str) -> dict[str, Any]:
        return self._call("price lookup", stripe.Price.retrieve, price_id)

    # ---------------------------
    # customers / portal
    # ---------------------------

    def retrieve_customer(self, customer_id: str) -> dict[str, Any]:
        return self._call("customer lookup", stripe.Customer.retrieve, customer_id)

    def find_customer_by_email(self, email: str) -> dict[str, Any] | None:
        result = self._call("customer search", stripe.Customer.list, email=email, limit=1)
        customers = result.get("data") or []
        return customers[0] if customers else None

    def create_portal_session(self, customer_id: str, return_url: str) -> dict[str, Any]:
        portal = self._call(
            "portal session creation",
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )
        logger.info("Created Stripe portal session %s for %s", portal.get("id"), customer_id)
        return portal

    # ---------------------------
    # webhooks
    # ---------------------------

    @staticmethod
    def construct_event(payload: bytes, signature: str, secret: str) -> dict[str, Any]:
        """Verify the signature over the raw payload and parse the event."""
        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except ValueError as e:
            raise SignatureVerificationFailed(f"Invalid payload: {e}") from e
        except stripe.SignatureVerificationError as e:
            raise SignatureVerificationFailed(f"Invalid signature: {e}") from e
        return _plain(event)
