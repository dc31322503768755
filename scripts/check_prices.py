"""Check that every configured price reference resolves in Stripe for the active mode.

Usage: python -m scripts.check_prices
"""
from app.core.catalog import build_catalog
from app.core.config import get_settings
from app.core.errors import UpstreamProviderError
from app.integrations.stripe_client import StripeGateway


def check(gateway: StripeGateway, label: str, price_id: str, configured: bool) -> bool:
    if not configured:
        print(f"  [--] {label}: no price configured")
        return False
    try:
        price = gateway.retrieve_price(price_id)
    except UpstreamProviderError as e:
        print(f"  [KO] {label}: {price_id} ({e.extra.get('details') or e.message})")
        return False
    amount = (price.get("unit_amount") or 0) / 100
    print(f"  [OK] {label}: {price_id} = {amount:.2f} {str(price.get('currency') or '').upper()}")
    return True


def main() -> int:
    settings = get_settings()
    catalog = build_catalog(settings)
    gateway = StripeGateway(settings.stripe_secret_key)

    print(f"Stripe mode: {settings.mode}")
    ok = True
    print("Plans:")
    for plan in catalog.plans.values():
        ok &= check(gateway, f"{plan.id} ({plan.name})", plan.price_id, plan.configured)
    print("Hourly services:")
    for service in catalog.hourly_services.values():
        ok &= check(gateway, f"{service.id} ({service.name})", service.price_id, service.configured)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
