from fastapi import APIRouter, Depends

from app.api.deps import get_checkout_service, get_portal_service
from app.core.config import Settings, get_settings
from app.schemas.billing import (
    CheckoutSessionOut,
    CheckoutSessionSummaryOut,
    CreateCheckoutSessionIn,
    CreateHourlyCheckoutSessionIn,
    CustomerPortalIn,
    CustomerPortalOut,
    HourlyServicesOut,
    PlansOut,
    StripeConfigOut,
)
from app.services.checkout import CheckoutService
from app.services.portal import PortalService

router = APIRouter(prefix="/api", tags=["billing"])


# Publishable key for the front end's Stripe.js
@router.get("/stripe-config", response_model=StripeConfigOut)
def stripe_config(settings: Settings = Depends(get_settings)):
    return StripeConfigOut(publishableKey=settings.stripe_publishable_key, mode=settings.mode)


# Display available subscription plans
@router.get("/plans", response_model=PlansOut)
def list_plans(service: CheckoutService = Depends(get_checkout_service)):
    return {"plans": service.list_plans()}


# Hourly services, with the rate read from Stripe
@router.get("/hourly-services", response_model=HourlyServicesOut)
def list_hourly_services(service: CheckoutService = Depends(get_checkout_service)):
    return {"services": service.list_hourly_services()}


@router.post("/create-checkout-session", response_model=CheckoutSessionOut)
def create_checkout_session(
    payload: CreateCheckoutSessionIn,
    service: CheckoutService = Depends(get_checkout_service),
):
    return service.create_plan_session(payload.planId, payload.customerEmail)


@router.post("/create-hourly-checkout-session", response_model=CheckoutSessionOut)
def create_hourly_checkout_session(
    payload: CreateHourlyCheckoutSessionIn,
    service: CheckoutService = Depends(get_checkout_service),
):
    return service.create_hourly_session(payload.serviceId, payload.hours, payload.customerEmail)


@router.get("/checkout-session/{session_id}", response_model=CheckoutSessionSummaryOut)
def get_checkout_session(session_id: str, service: CheckoutService = Depends(get_checkout_service)):
    return service.get_session_summary(session_id)


# Stripe-hosted page where a customer manages or cancels a subscription
@router.post("/create-customer-portal-session", response_model=CustomerPortalOut)
def create_customer_portal_session(
    payload: CustomerPortalIn,
    service: PortalService = Depends(get_portal_service),
):
    url = service.create_portal_url(payload.customerId, payload.customerEmail)
    return CustomerPortalOut(url=url)
