from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

PRICE_PLACEHOLDER = "VOTRE_PRICE_ID"


class Settings(BaseSettings):
    # App Basics
    app_env: str = "dev"
    app_name: str = "Elisassist Billing API"
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    log_level: str = "info"

    # Stripe (test / live switch)
    stripe_mode: str = "test"
    stripe_secret_key_test: str = ""
    stripe_secret_key_live: str = ""
    stripe_publishable_key_test: str = ""
    stripe_publishable_key_live: str = ""
    stripe_webhook_secret: str = ""
    stripe_webhook_secret_test: str = ""
    stripe_webhook_secret_live: str = ""
    checkout_locale: str = "fr"
    currency: str = "eur"

    # Price references, one pair per plan / hourly service
    price_id_essential_test: str = ""
    price_id_essential_live: str = ""
    price_id_pro_test: str = ""
    price_id_pro_live: str = ""
    price_id_premium_test: str = ""
    price_id_premium_live: str = ""
    price_id_hourly_admin_test: str = ""
    price_id_hourly_admin_live: str = ""
    price_id_hourly_automation_test: str = ""
    price_id_hourly_automation_live: str = ""
    price_id_hourly_social_test: str = ""
    price_id_hourly_social_live: str = ""

    # Email (SMTP)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    email_user: str = ""
    email_password: str = ""
    email_from_name: str = "ElisAssist"
    admin_email: str = ""

    # Public URLs
    frontend_url: str = "http://localhost:4200"
    backend_url: str = "http://localhost:3000"

    # Invoices
    invoice_dir: str = "invoices"
    invoice_cleanup_delay_seconds: float = 5.0
    issuer_name: str = "Elisassist Assistante Digitale"
    issuer_address: str = "17 rue Jannes Barret"
    issuer_postal_code: str = "33240"
    issuer_city: str = "Saint-André-de-Cubzac"
    issuer_siret: str = "879 865 160 00029"
    issuer_phone: str = "06 64 66 93 63"
    issuer_email: str = ""
    issuer_vat_notice: str = "TVA non applicable, art. 293 B du CGI"
    issuer_logo_path: str = ""

    # Webhook re-delivery protection
    webhook_dedup_ttl_seconds: int = 3600
    webhook_dedup_max_events: int = 10_000

    # Optional bearer token for admin-only routes
    admin_api_token: str = ""

    # Tell pydantic to read from .env file
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        extra="ignore",
    )

    @property
    def is_live(self) -> bool:
        return self.stripe_mode.lower() == "live"

    @property
    def mode(self) -> str:
        return "live" if self.is_live else "test"

    def by_mode(self, name: str) -> str:
        """Return the ``<name>_live`` or ``<name>_test`` field for the active mode."""
        return getattr(self, f"{name}_{self.mode}")

    @property
    def stripe_secret_key(self) -> str:
        return self.by_mode("stripe_secret_key")

    @property
    def stripe_publishable_key(self) -> str:
        return self.by_mode("stripe_publishable_key")

    @property
    def webhook_secret(self) -> str:
        # a bare STRIPE_WEBHOOK_SECRET wins over the per-mode values
        return self.stripe_webhook_secret or self.by_mode("stripe_webhook_secret")

    @property
    def operator_email(self) -> str:
        return self.admin_email or self.email_user

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user and self.email_password)

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_secret)


def is_price_configured(price_id: str | None) -> bool:
    return bool(price_id) and PRICE_PLACEHOLDER not in price_id


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
