import json
import logging
import logging.config
from datetime import datetime, timezone

# passed through ``extra=`` by the webhook, checkout and invoice code
CONTEXT_KEYS = (
    "event_id",
    "event_type",
    "outcome",
    "session_id",
    "invoice_number",
    "path",
    "method",
)


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, tagged with the service name."""

    def __init__(self, app_name: str = "elisassist-billing") -> None:
        super().__init__()
        self.app_name = app_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "app": self.app_name,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, getattr(record, key)) for key in CONTEXT_KEYS if getattr(record, key, None) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = "info", app_name: str = "elisassist-billing") -> None:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"json": {"()": JsonLogFormatter, "app_name": app_name}},
        "handlers": {"default": {"class": "logging.StreamHandler", "formatter": "json"}},
        "root": {"handlers": ["default"], "level": level.upper()},
        # the Stripe SDK logs every request at INFO
        "loggers": {"stripe": {"level": "WARNING"}},
    })
