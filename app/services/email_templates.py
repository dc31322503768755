"""HTML bodies for customer and operator notifications.

Values interpolated into the markup are escaped here; callers pass raw text.
Amounts are pre-formatted strings (``"30.00"``) so the webhook handler keeps
control of rounding.
"""
from html import escape

BRAND = "ElisAssist"

_HEADER = f"""
  <div style="background: linear-gradient(135deg, #ca8a04 0%, #eab308 100%); padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="color: white; margin: 0; font-size: 28px; font-weight: bold;">{BRAND}</h1>
    <p style="color: rgba(255,255,255,0.9); margin: 5px 0 0 0; font-size: 14px;">Assistante Digitale</p>
  </div>
"""

_FOOTER = f"""
  <div style="background: #f8f9fa; padding: 30px; text-align: center; border-radius: 0 0 10px 10px; border-top: 1px solid #e9ecef;">
    <p style="color: #6c757d; font-size: 14px; margin: 0 0 15px 0;">
      Des questions ? Je suis là pour vous aider !
    </p>
    <p style="color: #9ca3af; font-size: 12px; margin: 0;">{BRAND} - Assistante Digitale</p>
  </div>
"""

_TITLE = '<h2 style="color: {color}; margin: 0 0 20px 0; font-size: 24px;">{text}</h2>'
_PARAGRAPH = '<p style="color: #4b5563; font-size: 16px; line-height: 1.6;">{text}</p>'


def _wrap(content: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="margin: 0; padding: 20px; background-color: #f3f4f6; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;">
  <div style="max-width: 600px; margin: 0 auto; background: white; border-radius: 10px;">
    {_HEADER}
    <div style="padding: 40px 30px;">
      {content}
    </div>
    {_FOOTER}
  </div>
</body>
</html>
"""


def _title(text: str, color: str = "#1f2937") -> str:
    return _TITLE.format(color=color, text=escape(text))


def _p(text: str) -> str:
    return _PARAGRAPH.format(text=text)


def _invoice_link(invoice_url: str | None) -> str:
    if not invoice_url:
        return ""
    href = escape(invoice_url, quote=True)
    return f'<p><a href="{href}" style="color: #ca8a04; font-weight: bold;">Télécharger la facture</a></p>'


def format_cents(amount: int | None) -> str:
    return f"{(amount or 0) / 100:.2f}"


def subscription_created(customer_email: str, plan_name: str, amount: int | None, invoice_url: str | None = None) -> str:
    return _wrap(
        _title("Bienvenue !")
        + _p(f'Votre abonnement <strong style="color: #ca8a04;">{escape(plan_name)}</strong> est maintenant actif.')
        + _p(f"Montant : {format_cents(amount)} EUR/mois")
        + _invoice_link(invoice_url)
    )


def subscription_cancelled(customer_email: str, plan_name: str) -> str:
    return _wrap(
        _title("Confirmation d'annulation")
        + _p(f"Votre abonnement <strong>{escape(plan_name)}</strong> a été annulé.")
    )


def payment_failed(customer_email: str, plan_name: str) -> str:
    return _wrap(
        _title("Problème de paiement", color="#dc2626")
        + _p(f"Le paiement pour <strong>{escape(plan_name)}</strong> n'a pas pu être effectué.")
        + _p("Merci de mettre à jour votre moyen de paiement depuis votre espace client.")
    )


def hourly_payment_client(
    customer_email: str,
    service_name: str,
    hours: int,
    hourly_rate: str,
    total: str,
    invoice_url: str | None = None,
) -> str:
    return _wrap(
        _title("Merci pour votre commande !")
        + _p(f"Service : {escape(service_name)}")
        + _p(f"Heures : {hours}h")
        + _p(f"Tarif : {escape(hourly_rate)} EUR/h")
        + _p(f"Total : {escape(total)} EUR")
        + _invoice_link(invoice_url)
    )


def admin_new_subscription(customer_email: str | None, plan_name: str, amount: int | None) -> str:
    return _wrap(
        _title("Nouveau client !", color="#059669")
        + _p(f"Client : {escape(customer_email or 'inconnu')}")
        + _p(f"Formule : {escape(plan_name)}")
        + _p(f"Montant : {format_cents(amount)} EUR/mois")
    )


def admin_hourly_payment(customer_email: str | None, service_name: str, hours: int, hourly_rate: str, total: str) -> str:
    return _wrap(
        _title("Nouveau paiement horaire !", color="#059669")
        + _p(f"Client : {escape(customer_email or 'inconnu')}")
        + _p(f"Service : {escape(service_name)}")
        + _p(f"Heures : {hours}h à {escape(hourly_rate)} EUR/h")
        + _p(f"Total : {escape(total)} EUR")
    )


def admin_payment_failed(customer_email: str | None, plan_name: str) -> str:
    return _wrap(
        _title("Échec de paiement", color="#dc2626")
        + _p(f"Échec de paiement pour {escape(customer_email or 'client inconnu')}")
        + _p(f"Plan : {escape(plan_name)}")
    )


def admin_cancellation(customer_email: str | None, plan_name: str) -> str:
    return _wrap(
        _title("Annulation", color="#dc2626")
        + _p(f"Client : {escape(customer_email or 'inconnu')}")
        + _p(f"Formule : {escape(plan_name)}")
    )


def admin_cancellation_scheduled(customer_email: str | None) -> str:
    return _wrap(
        _title("Annulation programmée", color="#d97706")
        + _p(f"Le client {escape(customer_email or 'inconnu')} a programmé l'annulation de son abonnement.")
        + _p("L'abonnement restera actif jusqu'à la fin de la période de facturation.")
    )


def configuration_check() -> str:
    return _wrap(
        _title("Configuration email réussie !", color="#059669")
        + _p("Si vous recevez cet email, la configuration SMTP fonctionne correctement.")
    )
