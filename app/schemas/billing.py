from typing import Any

from pydantic import BaseModel


class PlanOut(BaseModel):
    id: str
    name: str
    mode: str
    configured: bool


class PlansOut(BaseModel):
    plans: list[PlanOut]


class HourlyServiceOut(BaseModel):
    id: str
    name: str
    hourlyRate: float | None
    minHours: int
    maxHours: int
    configured: bool


class HourlyServicesOut(BaseModel):
    services: list[HourlyServiceOut]


class CreateCheckoutSessionIn(BaseModel):
    # ids and hours are checked against the catalog so the error can list what is accepted
    planId: Any = None
    customerEmail: str | None = None


class CreateHourlyCheckoutSessionIn(BaseModel):
    serviceId: Any = None
    hours: Any = None
    customerEmail: str | None = None


class CheckoutSessionOut(BaseModel):
    sessionId: str
    url: str


class CheckoutSessionSummaryOut(BaseModel):
    status: str | None
    customerEmail: str | None
    amount: int | None
    currency: str | None
    planName: str | None


class CustomerPortalIn(BaseModel):
    customerId: str | None = None
    customerEmail: str | None = None


class CustomerPortalOut(BaseModel):
    url: str


class StripeConfigOut(BaseModel):
    publishableKey: str
    mode: str
