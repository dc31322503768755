from app.services import email_templates as templates


def test_format_cents():
    assert templates.format_cents(4900) == "49.00"
    assert templates.format_cents(None) == "0.00"


def test_subscription_created_shows_plan_amount_and_invoice_link():
    html = templates.subscription_created("a@example.com", "Pack Pro", 4900, "https://api.example.com/api/invoice/cs_1")

    assert "Pack Pro" in html
    assert "49.00 EUR/mois" in html
    assert 'href="https://api.example.com/api/invoice/cs_1"' in html


def test_invoice_link_omitted_without_url():
    assert "Télécharger la facture" not in templates.subscription_created("a@example.com", "Pack Pro", 4900)


def test_values_are_escaped():
    html = templates.admin_new_subscription("<script>@x.com", "Pack <b>Pro</b>", 100)

    assert "<script>" not in html
    assert "&lt;script&gt;@x.com" in html
    assert "Pack &lt;b&gt;Pro&lt;/b&gt;" in html


def test_hourly_client_summary():
    html = templates.hourly_payment_client("a@example.com", "Gestion Administrative", 3, "30.00", "90.00")

    assert "Heures : 3h" in html
    assert "30.00 EUR/h" in html
    assert "Total : 90.00 EUR" in html


def test_unknown_customer_placeholder():
    assert "client inconnu" in templates.admin_payment_failed(None, "Pack Pro")
    assert "inconnu" in templates.admin_cancellation_scheduled(None)
