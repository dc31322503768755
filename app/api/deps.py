import secrets
from functools import lru_cache

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.catalog import Catalog, get_catalog
from app.core.config import Settings, get_settings
from app.integrations.mailer import Mailer
from app.integrations.stripe_client import StripeGateway
from app.services.checkout import CheckoutService
from app.services.invoices import InvoiceRenderer
from app.services.portal import PortalService
from app.services.webhooks import EventDeduplicator, WebhookDispatcher

bearer_scheme = HTTPBearer(auto_error=False)


def get_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings.stripe_secret_key)


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return Mailer(settings)


@lru_cache
def get_deduplicator() -> EventDeduplicator:
    # one window per process, shared by every webhook request
    settings = get_settings()
    return EventDeduplicator(settings.webhook_dedup_ttl_seconds, settings.webhook_dedup_max_events)


def get_checkout_service(
    settings: Settings = Depends(get_settings),
    catalog: Catalog = Depends(get_catalog),
    gateway: StripeGateway = Depends(get_gateway),
) -> CheckoutService:
    return CheckoutService(settings, catalog, gateway)


def get_portal_service(
    settings: Settings = Depends(get_settings),
    gateway: StripeGateway = Depends(get_gateway),
) -> PortalService:
    return PortalService(settings, gateway)


def get_invoice_renderer(settings: Settings = Depends(get_settings)) -> InvoiceRenderer:
    return InvoiceRenderer(settings)


def get_webhook_dispatcher(
    settings: Settings = Depends(get_settings),
    gateway: StripeGateway = Depends(get_gateway),
    mailer: Mailer = Depends(get_mailer),
    deduplicator: EventDeduplicator = Depends(get_deduplicator),
) -> WebhookDispatcher:
    return WebhookDispatcher(settings, gateway, mailer, deduplicator)


def require_admin(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> None:
    """Guard for admin-only routes. A no-op when ADMIN_API_TOKEN is not set."""
    expected = settings.admin_api_token
    if not expected:
        return
    if not creds or not secrets.compare_digest(creds.credentials, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing admin token")
