"""Tests for the Stripe gateway - SDK calls are patched, webhook signatures are real."""

import hashlib
import hmac
import json
import time
from unittest.mock import patch

import pytest
import stripe

from app.core.errors import SignatureVerificationFailed, UpstreamProviderError
from app.integrations.stripe_client import StripeGateway

SECRET = "whsec_test_secret"


def sign(payload: str, secret: str = SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture()
def gw() -> StripeGateway:
    return StripeGateway("sk_test_123")


class TestCalls:
    def test_checkout_session_uses_per_call_key(self, gw):
        with patch("app.integrations.stripe_client.stripe.checkout.Session.create") as create:
            create.return_value = {"id": "cs_1", "url": "https://checkout.stripe.com/c/pay/cs_1"}

            session = gw.create_checkout_session(mode="payment", line_items=[])

        assert session["id"] == "cs_1"
        assert create.call_args.kwargs["api_key"] == "sk_test_123"
        assert create.call_args.kwargs["mode"] == "payment"

    def test_retrieve_session_with_expand(self, gw):
        with patch("app.integrations.stripe_client.stripe.checkout.Session.retrieve") as retrieve:
            retrieve.return_value = {"id": "cs_1"}

            gw.retrieve_checkout_session("cs_1", expand=["line_items"])

        retrieve.assert_called_once_with("cs_1", api_key="sk_test_123", expand=["line_items"])

    def test_stripe_error_wrapped(self, gw):
        with patch("app.integrations.stripe_client.stripe.Price.retrieve") as retrieve:
            retrieve.side_effect = stripe.StripeError("No such price")

            with pytest.raises(UpstreamProviderError) as exc:
                gw.retrieve_price("price_missing")

        assert exc.value.status_code == 502
        assert "No such price" in exc.value.to_payload()["details"]

    def test_unconfigured_gateway_never_calls_stripe(self):
        with patch("app.integrations.stripe_client.stripe.Price.retrieve") as retrieve:
            with pytest.raises(UpstreamProviderError):
                StripeGateway("").retrieve_price("price_1")
        retrieve.assert_not_called()

    def test_find_customer_by_email(self, gw):
        with patch("app.integrations.stripe_client.stripe.Customer.list") as list_customers:
            list_customers.return_value = {"data": [{"id": "cus_1", "email": "a@example.com"}]}
            assert gw.find_customer_by_email("a@example.com")["id"] == "cus_1"
            assert list_customers.call_args.kwargs["limit"] == 1

            list_customers.return_value = {"data": []}
            assert gw.find_customer_by_email("nobody@example.com") is None

    def test_portal_session(self, gw):
        with patch("app.integrations.stripe_client.stripe.billing_portal.Session.create") as create:
            create.return_value = {"id": "bps_1", "url": "https://billing.stripe.com/p/1"}

            portal = gw.create_portal_session("cus_1", return_url="https://front.example.com/#services")

        assert portal["url"] == "https://billing.stripe.com/p/1"
        create.assert_called_once_with(
            customer="cus_1",
            return_url="https://front.example.com/#services",
            api_key="sk_test_123",
        )


class TestConstructEvent:
    payload = json.dumps({"id": "evt_1", "object": "event", "type": "invoice.paid", "data": {"object": {"id": "in_1"}}})

    def test_valid_signature(self):
        event = StripeGateway.construct_event(self.payload.encode(), sign(self.payload), SECRET)

        assert event["id"] == "evt_1"
        assert event["type"] == "invoice.paid"

    def test_tampered_payload(self):
        header = sign(self.payload)
        tampered = self.payload.replace("invoice.paid", "invoice.payment_failed")

        with pytest.raises(SignatureVerificationFailed):
            StripeGateway.construct_event(tampered.encode(), header, SECRET)

    def test_wrong_secret(self):
        with pytest.raises(SignatureVerificationFailed):
            StripeGateway.construct_event(self.payload.encode(), sign(self.payload, secret="whsec_other"), SECRET)

    def test_malformed_header(self):
        with pytest.raises(SignatureVerificationFailed):
            StripeGateway.construct_event(self.payload.encode(), "garbage", SECRET)
