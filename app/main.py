import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, get_settings, settings
from app.core.errors import register_error_handlers
from app.core.logging import configure_logging

# Import routers
from app.api.billing import router as billing_router
from app.api.invoices import router as invoices_router
from app.api.notifications import router as notifications_router
from app.api.stripe_webhook import router as stripe_webhook_router

logger = logging.getLogger(__name__)


def _log_startup_state() -> None:
    logger.info("Stripe mode: %s", settings.mode)
    logger.info("Frontend URL: %s", settings.frontend_url)
    if not settings.stripe_secret_key:
        logger.warning("Stripe secret key not configured for %s mode", settings.mode)
    if not settings.webhook_configured:
        if settings.is_live:
            logger.error("Webhook secret not configured: live webhooks will be rejected")
        else:
            logger.warning("Webhook secret not configured: unsigned webhooks accepted (insecure, test mode only)")
    if not settings.email_configured:
        logger.warning("SMTP credentials not configured: notifications will not be sent")


def create_app() -> FastAPI:
    configure_logging(settings.log_level, app_name=settings.app_name)
    app = FastAPI(title=settings.app_name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/health")
    @app.get("/api/health")
    def health(current: Settings = Depends(get_settings)):
        return {
            "status": "ok",
            "mode": current.mode,
            "emailConfigured": current.email_configured,
            "webhookConfigured": current.webhook_configured,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Checkout, plans and customer portal
    app.include_router(billing_router)
    # PDF invoices
    app.include_router(invoices_router)
    # Diagnostic email
    app.include_router(notifications_router)
    # Stripe webhook (raw body)
    app.include_router(stripe_webhook_router)

    _log_startup_state()
    return app


app = create_app()
