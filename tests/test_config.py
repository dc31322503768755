"""Tests for settings resolution and the static catalog."""

import pytest

from app.core.catalog import Catalog, build_catalog
from app.core.config import is_price_configured


class TestSettingsModeSwitch:
    def test_test_mode_uses_test_keys(self, settings_factory):
        s = settings_factory(stripe_secret_key_live="sk_live_999")
        assert s.mode == "test"
        assert s.is_live is False
        assert s.stripe_secret_key == "sk_test_123"
        assert s.stripe_publishable_key == "pk_test_123"
        assert s.webhook_secret == "whsec_test_123"

    def test_live_mode_uses_live_keys(self, settings_factory):
        s = settings_factory(
            stripe_mode="LIVE",
            stripe_secret_key_live="sk_live_999",
            stripe_publishable_key_live="pk_live_999",
            stripe_webhook_secret_live="whsec_live_999",
        )
        assert s.mode == "live"
        assert s.stripe_secret_key == "sk_live_999"
        assert s.stripe_publishable_key == "pk_live_999"
        assert s.webhook_secret == "whsec_live_999"

    def test_bare_webhook_secret_overrides_mode_specific(self, settings_factory):
        s = settings_factory(stripe_webhook_secret="whsec_shared")
        assert s.webhook_secret == "whsec_shared"
        assert s.webhook_configured is True

    def test_webhook_not_configured(self, settings_factory):
        s = settings_factory(stripe_webhook_secret_test="")
        assert s.webhook_configured is False


class TestOperatorAddress:
    def test_admin_email_used_when_set(self, settings):
        assert settings.operator_email == "ops@example.com"

    def test_falls_back_to_sender_identity(self, settings_factory):
        s = settings_factory(admin_email="")
        assert s.operator_email == "bot@example.com"

    def test_email_configured_requires_user_and_password(self, settings_factory):
        assert settings_factory().email_configured is True
        assert settings_factory(email_password="").email_configured is False


@pytest.mark.parametrize(
    ("price_id", "expected"),
    [
        ("price_123", True),
        ("", False),
        (None, False),
        ("price_VOTRE_PRICE_ID_ICI", False),
    ],
)
def test_is_price_configured(price_id, expected):
    assert is_price_configured(price_id) is expected


class TestCatalog:
    def test_plans_resolved_for_active_mode(self, settings):
        catalog = build_catalog(settings)
        assert list(catalog.plans) == ["essential", "pro", "premium"]
        assert catalog.plans["essential"].price_id == "price_essential"
        assert catalog.plans["essential"].mode == "subscription"
        assert catalog.plans["essential"].configured is True
        assert catalog.plans["premium"].configured is False

    def test_hourly_services_bounds(self, settings):
        catalog = build_catalog(settings)
        admin = catalog.hourly_services["admin"]
        assert (admin.min_hours, admin.max_hours) == (1, 40)
        assert admin.accepts(1) and admin.accepts(40)
        assert not admin.accepts(0)
        assert not admin.accepts(41)
        assert not admin.accepts(None)
        assert not admin.accepts(2.5)
        assert not admin.accepts("3")
        assert not admin.accepts(True)
        assert catalog.hourly_services["social"].configured is False

    def test_live_catalog_reads_live_prices(self, settings_factory):
        s = settings_factory(stripe_mode="live", price_id_pro_live="price_pro_live")
        catalog = build_catalog(s)
        assert catalog.plans["pro"].price_id == "price_pro_live"
        assert catalog.plans["essential"].configured is False

    def test_catalog_tables_are_read_only(self, settings):
        catalog: Catalog = build_catalog(settings)
        with pytest.raises(TypeError):
            catalog.plans["extra"] = catalog.plans["pro"]
