import logging
from typing import Any

from app.core.catalog import Catalog
from app.core.config import Settings
from app.core.errors import InvalidSelection, OutOfRange, UpstreamProviderError, Unconfigured
from app.integrations.stripe_client import StripeGateway

logger = logging.getLogger(__name__)


class CheckoutService:
    """Validates a plan / hourly selection and opens a Stripe hosted checkout."""

    def __init__(self, settings: Settings, catalog: Catalog, gateway: StripeGateway) -> None:
        self.settings = settings
        self.catalog = catalog
        self.gateway = gateway

    def _base_session_params(self, customer_email: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "locale": self.settings.checkout_locale,
            "billing_address_collection": "required",
            "cancel_url": f"{self.settings.frontend_url}/#services",
        }
        if customer_email:
            params["customer_email"] = customer_email
        return params

    def _success_url(self, suffix: str = "") -> str:
        # {CHECKOUT_SESSION_ID} is substituted by Stripe on redirect
        return f"{self.settings.frontend_url}/success?session_id={{CHECKOUT_SESSION_ID}}{suffix}"

    # ---------------------------
    # catalog views
    # ---------------------------

    def list_plans(self) -> list[dict[str, Any]]:
        return [
            {"id": plan.id, "name": plan.name, "mode": plan.mode, "configured": plan.configured}
            for plan in self.catalog.plans.values()
        ]

    def list_hourly_services(self) -> list[dict[str, Any]]:
        out = []
        for service in self.catalog.hourly_services.values():
            hourly_rate = None
            configured = False
            if service.configured:
                try:
                    price = self.gateway.retrieve_price(service.price_id)
                    hourly_rate = (price.get("unit_amount") or 0) / 100
                    configured = True
                except UpstreamProviderError as e:
                    logger.error("Could not resolve hourly rate for %s: %s", service.id, e.message)

            out.append({
                "id": service.id,
                "name": service.name,
                "hourlyRate": hourly_rate,
                "minHours": service.min_hours,
                "maxHours": service.max_hours,
                "configured": configured,
            })
        return out

    # ---------------------------
    # session creation
    # ---------------------------

    def create_plan_session(self, plan_id: Any, customer_email: str | None = None) -> dict[str, str]:
        plan = self.catalog.plans.get(plan_id) if isinstance(plan_id, str) else None
        if not plan:
            raise InvalidSelection("Invalid plan", availablePlans=list(self.catalog.plans))
        if not plan.configured:
            raise Unconfigured(f"No price configured for plan '{plan.id}' in {self.settings.mode} mode")

        logger.info("Creating checkout session for plan %s (%s)", plan.name, plan.id)

        params = self._base_session_params(customer_email)
        params.update({
            "line_items": [{"price": plan.price_id, "quantity": 1}],
            "mode": plan.mode,
            "success_url": self._success_url(),
            "metadata": {"planId": plan.id, "planName": plan.name},
        })

        session = self.gateway.create_checkout_session(**params)
        return {"sessionId": session["id"], "url": session["url"]}

    def create_hourly_session(
        self,
        service_id: Any,
        hours: Any,
        customer_email: str | None = None,
    ) -> dict[str, str]:
        service = self.catalog.hourly_services.get(service_id) if isinstance(service_id, str) else None
        if not service:
            raise InvalidSelection("Invalid service", availableServices=list(self.catalog.hourly_services))
        if not service.accepts(hours):
            raise OutOfRange(
                f"Hours must be between {service.min_hours} and {service.max_hours}",
                minHours=service.min_hours,
                maxHours=service.max_hours,
            )
        if not service.configured:
            raise Unconfigured(f"No price configured for service '{service.name}' in {self.settings.mode} mode")

        logger.info("Creating hourly checkout session: %s x %sh", service.name, hours)

        params = self._base_session_params(customer_email)
        params.update({
            "line_items": [{"price": service.price_id, "quantity": hours}],
            "mode": "payment",
            "success_url": self._success_url("&type=hourly"),
            # metadata is the only record of what was bought; webhook + invoice read it back
            "metadata": {
                "type": "hourly",
                "serviceId": service.id,
                "serviceName": service.name,
                "hours": str(hours),
            },
        })

        session = self.gateway.create_checkout_session(**params)
        return {"sessionId": session["id"], "url": session["url"]}

    def get_session_summary(self, session_id: str) -> dict[str, Any]:
        session = self.gateway.retrieve_checkout_session(session_id)
        metadata = session.get("metadata") or {}
        customer_details = session.get("customer_details") or {}
        return {
            "status": session.get("payment_status"),
            "customerEmail": customer_details.get("email") or session.get("customer_email"),
            "amount": session.get("amount_total"),
            "currency": session.get("currency"),
            "planName": metadata.get("planName") or metadata.get("serviceName"),
        }
