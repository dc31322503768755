"""Tests for the SMTP notification sender - failure handling and routing."""

import smtplib
from unittest.mock import patch

import pytest

from app.integrations.mailer import Mailer


@pytest.fixture()
def smtp():
    with patch("app.integrations.mailer.smtplib.SMTP") as smtp_cls:
        yield smtp_cls


class TestSend:
    def test_send_success(self, settings, smtp):
        result = Mailer(settings).send("client@example.com", "Hello", "<p>Hi</p>")

        assert result is True
        smtp.assert_called_once_with("smtp.gmail.com", 587, timeout=30)
        server = smtp.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "app-password")
        from_addr, to_addrs, message = server.sendmail.call_args.args
        assert from_addr == "bot@example.com"
        assert to_addrs == ["client@example.com"]
        assert "Subject: Hello" in message
        server.quit.assert_called_once()

    def test_ssl_transport(self, settings_factory):
        settings = settings_factory(smtp_use_ssl=True, smtp_port=465)
        with (
            patch("app.integrations.mailer.smtplib.SMTP_SSL") as smtp_ssl,
            patch("app.integrations.mailer.smtplib.SMTP") as smtp_plain,
        ):
            assert Mailer(settings).send("client@example.com", "Hello", "<p>Hi</p>") is True

        smtp_ssl.assert_called_once_with("smtp.gmail.com", 465, timeout=30)
        smtp_ssl.return_value.starttls.assert_not_called()
        smtp_plain.assert_not_called()

    def test_send_failure_returns_false(self, settings, smtp):
        smtp.return_value.sendmail.side_effect = smtplib.SMTPException("Connection refused")

        assert Mailer(settings).send("client@example.com", "Hello", "<p>Hi</p>") is False
        smtp.return_value.quit.assert_called_once()

    def test_connection_failure_returns_false(self, settings, smtp):
        smtp.side_effect = OSError("Network unreachable")

        assert Mailer(settings).send("client@example.com", "Hello", "<p>Hi</p>") is False

    def test_auth_failure_returns_false(self, settings, smtp):
        smtp.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        assert Mailer(settings).send("client@example.com", "Hello", "<p>Hi</p>") is False

    def test_missing_recipient_skips_transport(self, settings, smtp):
        assert Mailer(settings).send(None, "Hello", "<p>Hi</p>") is False
        assert Mailer(settings).send("", "Hello", "<p>Hi</p>") is False
        smtp.assert_not_called()

    def test_unconfigured_credentials_skip_transport(self, settings_factory, smtp):
        settings = settings_factory(email_user="", email_password="")
        mailer = Mailer(settings)

        assert mailer.is_configured() is False
        assert mailer.send("client@example.com", "Hello", "<p>Hi</p>") is False
        smtp.assert_not_called()


class TestNotifyOperator:
    def test_routes_to_admin_email(self, settings, smtp):
        assert Mailer(settings).notify_operator("Alert", "<p>!</p>") is True
        assert smtp.return_value.sendmail.call_args.args[1] == ["ops@example.com"]

    def test_defaults_to_sender_inbox(self, settings_factory, smtp):
        settings = settings_factory(admin_email="")

        Mailer(settings).notify_operator("Alert", "<p>!</p>")

        assert smtp.return_value.sendmail.call_args.args[1] == ["bot@example.com"]
