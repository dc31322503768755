import logging

from app.core.config import Settings
from app.core.errors import MissingPayerIdentifier, PayerNotFound
from app.integrations.stripe_client import StripeGateway

logger = logging.getLogger(__name__)


class PortalService:
    def __init__(self, settings: Settings, gateway: StripeGateway) -> None:
        self.settings = settings
        self.gateway = gateway

    def resolve_customer_id(self, customer_id: str | None, customer_email: str | None) -> str:
        if customer_id:
            return customer_id
        if not customer_email:
            raise MissingPayerIdentifier(
                "Customer email or id required",
                message="Provide the email or customer id used for the subscription",
            )

        customer = self.gateway.find_customer_by_email(customer_email)
        if not customer:
            raise PayerNotFound(
                "No customer found for this email",
                message="Use the email associated with your subscription",
            )
        return customer["id"]

    def create_portal_url(self, customer_id: str | None = None, customer_email: str | None = None) -> str:
        resolved = self.resolve_customer_id(customer_id, customer_email)
        logger.info("Opening customer portal for %s", resolved)
        portal = self.gateway.create_portal_session(resolved, return_url=f"{self.settings.frontend_url}/#services")
        return portal["url"]
