"""Domain errors and their HTTP mapping.

Every JSON error body carries an ``error`` message plus whatever extra fields
help the caller fix the request (accepted plan ids, hour range, ...). Webhook
signature failures are answered in plain text so Stripe's dashboard shows the
reason verbatim.
"""
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, /, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class InvalidSelection(AppError):
    """Unknown plan or hourly-service identifier."""

    status_code = 400


class Unconfigured(AppError):
    """Known identifier without a price reference for the active mode."""

    status_code = 500


class OutOfRange(AppError):
    status_code = 400


class MissingPayerIdentifier(AppError):
    status_code = 400


class PayerNotFound(AppError):
    status_code = 404


class PaymentIncomplete(AppError):
    status_code = 400


class InvalidInvoiceRequest(AppError):
    status_code = 400


class SignatureVerificationFailed(AppError):
    status_code = 400


class RenderIOError(AppError):
    status_code = 500


class UpstreamProviderError(AppError):
    """Stripe (or the mail transport) refused or failed the call."""

    status_code = 502


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Invalid request body on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SignatureVerificationFailed)
    async def signature_error_handler(request: Request, exc: SignatureVerificationFailed):
        logger.warning("Webhook rejected on %s: %s", request.url.path, exc.message)
        return PlainTextResponse(f"Webhook Error: {exc.message}", status_code=exc.status_code)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        else:
            logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
