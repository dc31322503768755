import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP sender. ``send`` reports failure through its return value and never raises."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def is_configured(self) -> bool:
        return self._settings.email_configured

    def _connect(self) -> smtplib.SMTP:
        s = self._settings
        if s.smtp_use_ssl:
            server = smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=30)
        else:
            server = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30)
            if s.smtp_use_tls:
                server.starttls()
        if s.email_user and s.email_password:
            server.login(s.email_user, s.email_password)
        return server

    def send(self, to_email: str | None, subject: str, body_html: str) -> bool:
        if not to_email:
            logger.warning("Email '%s' skipped: no recipient", subject)
            return False
        if not self.is_configured():
            logger.warning("Email '%s' to %s skipped: SMTP credentials not configured", subject, to_email)
            return False

        sender = self._settings.email_user
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f'"{self._settings.email_from_name}" <{sender}>'
        msg["To"] = to_email
        msg.attach(MIMEText(body_html, "html", "utf-8"))

        try:
            server = self._connect()
            try:
                server.sendmail(sender, [to_email], msg.as_string())
            finally:
                server.quit()
        except Exception as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            return False

        logger.info("Email sent to %s", to_email)
        return True

    def notify_operator(self, subject: str, body_html: str) -> bool:
        return self.send(self._settings.operator_email, subject, body_html)
