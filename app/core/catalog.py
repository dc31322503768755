from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Mapping

from app.core.config import Settings, get_settings, is_price_configured


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    # One of: "subscription", "payment"
    mode: str
    price_id: str

    @property
    def configured(self) -> bool:
        return is_price_configured(self.price_id)


@dataclass(frozen=True)
class HourlyService:
    id: str
    name: str
    min_hours: int
    max_hours: int
    price_id: str

    @property
    def configured(self) -> bool:
        return is_price_configured(self.price_id)

    def accepts(self, hours: Any) -> bool:
        # JSON booleans and fractional or quoted hours are not hour counts
        if isinstance(hours, bool) or not isinstance(hours, int):
            return False
        return self.min_hours <= hours <= self.max_hours


@dataclass(frozen=True)
class Catalog:
    plans: Mapping[str, Plan]
    hourly_services: Mapping[str, HourlyService]


# (id, display name, mode)
PLAN_DEFINITIONS = [
    ("essential", "Pack Starter", "subscription"),
    ("pro", "Pack Pro", "subscription"),
    ("premium", "Pack Premium", "subscription"),
]

# (id, display name, min hours, max hours)
HOURLY_SERVICE_DEFINITIONS = [
    ("admin", "Gestion Administrative", 1, 40),
    ("automation", "Automatisation & Design", 1, 40),
    ("social", "Gestion Réseaux Sociaux", 1, 40),
]


def build_catalog(settings: Settings) -> Catalog:
    """Resolve the static plan / hourly-service tables for the active Stripe mode."""
    plans = {
        plan_id: Plan(
            id=plan_id,
            name=name,
            mode=mode,
            price_id=settings.by_mode(f"price_id_{plan_id}"),
        )
        for plan_id, name, mode in PLAN_DEFINITIONS
    }
    services = {
        service_id: HourlyService(
            id=service_id,
            name=name,
            min_hours=min_hours,
            max_hours=max_hours,
            price_id=settings.by_mode(f"price_id_hourly_{service_id}"),
        )
        for service_id, name, min_hours, max_hours in HOURLY_SERVICE_DEFINITIONS
    }
    return Catalog(plans=MappingProxyType(plans), hourly_services=MappingProxyType(services))


@lru_cache
def get_catalog() -> Catalog:
    return build_catalog(get_settings())
