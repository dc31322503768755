from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_deduplicator, get_gateway, get_mailer
from app.core.catalog import build_catalog, get_catalog
from app.core.config import Settings, get_settings
from app.integrations.mailer import Mailer
from app.integrations.stripe_client import StripeGateway
from app.main import app
from app.services.webhooks import EventDeduplicator

BASE_SETTINGS = {
    "stripe_mode": "test",
    "stripe_secret_key_test": "sk_test_123",
    "stripe_publishable_key_test": "pk_test_123",
    "stripe_webhook_secret_test": "whsec_test_123",
    "price_id_essential_test": "price_essential",
    "price_id_pro_test": "price_pro",
    "price_id_premium_test": "",
    "price_id_hourly_admin_test": "price_hourly_admin",
    "price_id_hourly_automation_test": "price_hourly_automation",
    "price_id_hourly_social_test": "",
    "email_user": "bot@example.com",
    "email_password": "app-password",
    "admin_email": "ops@example.com",
    "frontend_url": "https://front.example.com",
    "backend_url": "https://api.example.com",
    "invoice_cleanup_delay_seconds": 0,
}


class RecordingMailer(Mailer):
    """Mailer that records messages instead of talking SMTP."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def send(self, to_email, subject, body_html):
        if not to_email:
            return False
        self.sent.append((to_email, subject, body_html))
        return not self.fail

    def recipients(self) -> list[str]:
        return [to for to, _, _ in self.sent]


@pytest.fixture()
def settings_factory(tmp_path):
    def _make(**overrides) -> Settings:
        values = dict(BASE_SETTINGS, invoice_dir=str(tmp_path / "invoices"))
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture()
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture()
def catalog(settings):
    return build_catalog(settings)


@pytest.fixture()
def gateway() -> MagicMock:
    gw = MagicMock(spec=StripeGateway)
    gw.create_checkout_session.return_value = {
        "id": "cs_test_123",
        "url": "https://checkout.stripe.com/c/pay/cs_test_123",
    }
    return gw


@pytest.fixture()
def mailer(settings) -> RecordingMailer:
    return RecordingMailer(settings)


@pytest.fixture()
def deduplicator() -> EventDeduplicator:
    return EventDeduplicator(ttl_seconds=60, max_events=100)


@pytest.fixture()
def client(settings, catalog, gateway, mailer, deduplicator):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_deduplicator] = lambda: deduplicator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
