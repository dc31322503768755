import json
import logging
from threading import Lock
from typing import Any, Callable

from cachetools import TTLCache

from app.core.config import Settings
from app.core.errors import SignatureVerificationFailed
from app.integrations.mailer import Mailer
from app.integrations.stripe_client import StripeGateway
from app.services import email_templates as templates

logger = logging.getLogger(__name__)


class EventDeduplicator:
    """Remembers recently handled Stripe event ids so re-deliveries don't re-send emails."""

    def __init__(self, ttl_seconds: int = 3600, max_events: int = 10_000) -> None:
        self._seen: TTLCache[str, bool] = TTLCache(maxsize=max_events, ttl=ttl_seconds)
        self._lock = Lock()

    def claim(self, event_id: str | None) -> bool:
        """True the first time an id is seen within the TTL window."""
        if not event_id:
            return True
        with self._lock:
            if event_id in self._seen:
                return False
            self._seen[event_id] = True
            return True


# ---------------------------
# parsing helpers
# ---------------------------

def _safe_int(x: Any) -> int | None:
    try:
        return int(x)
    except (TypeError, ValueError):
        return None


def _session_email(session: dict[str, Any]) -> str | None:
    details = session.get("customer_details") or {}
    return details.get("email") or session.get("customer_email")


def _first_line_description(invoice: dict[str, Any]) -> str:
    lines = (invoice.get("lines") or {}).get("data") or []
    if lines and lines[0].get("description"):
        return lines[0]["description"]
    return "Abonnement"


def _subscription_plan_name(subscription: dict[str, Any]) -> str:
    items = (subscription.get("items") or {}).get("data") or []
    if items:
        price = items[0].get("price") or {}
        if price.get("nickname"):
            return price["nickname"]
    return "Abonnement"


def hourly_amounts(amount_total: int | None, hours: int) -> tuple[str, str]:
    """Return (hourly rate, total) in currency units, formatted with two decimals."""
    total = (amount_total or 0) / 100
    return f"{total / hours:.2f}", f"{total:.2f}"


class WebhookDispatcher:
    """Verify -> parse -> classify -> notify. Stateless apart from the de-duplication window."""

    def __init__(
        self,
        settings: Settings,
        gateway: StripeGateway,
        mailer: Mailer,
        deduplicator: EventDeduplicator,
    ) -> None:
        self.settings = settings
        self.gateway = gateway
        self.mailer = mailer
        self.deduplicator = deduplicator
        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "checkout.session.completed": self._on_checkout_completed,
            "invoice.paid": self._on_invoice_paid,
            "invoice.payment_failed": self._on_payment_failed,
            "customer.subscription.deleted": self._on_subscription_deleted,
            "customer.subscription.updated": self._on_subscription_updated,
        }

    # ---------------------------
    # verification
    # ---------------------------

    def verify(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Authenticate the raw body. It must be the exact bytes Stripe sent."""
        secret = self.settings.webhook_secret
        if secret:
            if not signature:
                raise SignatureVerificationFailed("Missing stripe-signature header")
            return self.gateway.construct_event(payload, signature, secret)

        if self.settings.is_live:
            logger.error("Webhook secret not configured in live mode; rejecting unsigned event")
            raise SignatureVerificationFailed("Webhook secret not configured")

        logger.warning("INSECURE: webhook secret not configured, accepting unsigned payload (test mode only)")
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise SignatureVerificationFailed(f"Invalid payload: {e}") from e
        if not isinstance(event, dict) or not event.get("type"):
            raise SignatureVerificationFailed("Invalid payload: not a Stripe event")
        return event

    # ---------------------------
    # dispatch
    # ---------------------------

    def dispatch(self, event: dict[str, Any]) -> dict[str, Any]:
        event_type = event.get("type")
        event_id = event.get("id")
        log_extra = {"event_id": event_id, "event_type": event_type}

        if not self.deduplicator.claim(event_id):
            logger.info("Duplicate webhook delivery ignored", extra={**log_extra, "outcome": "duplicate"})
            return {"received": True, "duplicate": True}

        logger.info("Webhook received: %s", event_type, extra=log_extra)

        handler = self._handlers.get(event_type or "")
        if handler is None:
            logger.info("Unhandled event type: %s", event_type, extra={**log_extra, "outcome": "ignored"})
            return {"received": True}

        obj = (event.get("data") or {}).get("object") or {}
        try:
            handler(obj)
        except Exception:
            # acknowledged anyway: a failed notification is not Stripe's problem to retry
            logger.exception("Error while processing webhook %s", event_type, extra={**log_extra, "outcome": "failed"})
            return {"received": True}

        logger.info("Webhook handled: %s", event_type, extra={**log_extra, "outcome": "handled"})
        return {"received": True}

    # ---------------------------
    # handlers
    # ---------------------------

    def _on_checkout_completed(self, session: dict[str, Any]) -> None:
        customer_email = _session_email(session)
        amount = session.get("amount_total")
        metadata = session.get("metadata") or {}
        invoice_url = f"{self.settings.backend_url}/api/invoice/{session.get('id')}"

        if metadata.get("type") == "hourly":
            service_name = metadata.get("serviceName") or "Prestation horaire"
            hours = _safe_int(metadata.get("hours"))
            if not hours or hours < 1:
                logger.warning("Hourly session %s has invalid hours metadata: %r", session.get("id"), metadata.get("hours"))
                hours = 1
            hourly_rate, total = hourly_amounts(amount, hours)

            logger.info("Hourly payment succeeded: %s x %sh for %s", service_name, hours, customer_email,
                        extra={"session_id": session.get("id")})

            if customer_email:
                self.mailer.send(
                    customer_email,
                    f"Confirmation de votre commande - {hours}h de {service_name}",
                    templates.hourly_payment_client(customer_email, service_name, hours, hourly_rate, total, invoice_url),
                )
            self.mailer.notify_operator(
                f"Nouveau paiement horaire : {hours}h de {service_name}",
                templates.admin_hourly_payment(customer_email, service_name, hours, hourly_rate, total),
            )
            return

        plan_name = metadata.get("planName") or "Abonnement"
        logger.info("Subscription payment succeeded for %s (%s)", customer_email, plan_name,
                    extra={"session_id": session.get("id")})

        if customer_email:
            self.mailer.send(
                customer_email,
                "Bienvenue ! Votre abonnement est activé",
                templates.subscription_created(customer_email, plan_name, amount, invoice_url),
            )
        self.mailer.notify_operator(
            f"Nouvel abonnement : {plan_name}",
            templates.admin_new_subscription(customer_email, plan_name, amount),
        )

    def _on_invoice_paid(self, invoice: dict[str, Any]) -> None:
        logger.info("Invoice paid: %s", invoice.get("id"))

    def _on_payment_failed(self, invoice: dict[str, Any]) -> None:
        customer_email = invoice.get("customer_email")
        plan_name = _first_line_description(invoice)
        logger.warning("Payment failed for %s (%s)", customer_email, plan_name)

        if customer_email:
            self.mailer.send(
                customer_email,
                "Problème avec votre paiement",
                templates.payment_failed(customer_email, plan_name),
            )
        self.mailer.notify_operator(
            f"Échec paiement : {customer_email or 'client inconnu'}",
            templates.admin_payment_failed(customer_email, plan_name),
        )

    def _customer_email(self, customer_id: str | None) -> str | None:
        if not customer_id:
            return None
        return self.gateway.retrieve_customer(customer_id).get("email")

    def _on_subscription_deleted(self, subscription: dict[str, Any]) -> None:
        customer_email = self._customer_email(subscription.get("customer"))
        plan_name = _subscription_plan_name(subscription)
        logger.info("Subscription cancelled for %s (%s)", customer_email, plan_name)

        if customer_email:
            self.mailer.send(
                customer_email,
                "Confirmation d'annulation de votre abonnement",
                templates.subscription_cancelled(customer_email, plan_name),
            )
        self.mailer.notify_operator(
            f"Annulation : {customer_email or 'client inconnu'}",
            templates.admin_cancellation(customer_email, plan_name),
        )

    def _on_subscription_updated(self, subscription: dict[str, Any]) -> None:
        logger.info("Subscription updated: %s", subscription.get("id"))
        if not subscription.get("cancel_at_period_end"):
            return

        customer_email = self._customer_email(subscription.get("customer"))
        logger.info("Cancellation scheduled for %s", customer_email)
        self.mailer.notify_operator(
            f"Annulation programmée : {customer_email or 'client inconnu'}",
            templates.admin_cancellation_scheduled(customer_email),
        )
