import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from app.api.deps import get_gateway, get_invoice_renderer, require_admin
from app.core.config import Settings, get_settings
from app.core.errors import PaymentIncomplete
from app.integrations.stripe_client import StripeGateway
from app.schemas.invoice import GenerateInvoiceIn
from app.services.invoices import (
    InvoiceRenderer,
    RenderedInvoice,
    discard_invoice,
    invoice_from_request,
    invoice_from_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["invoices"])


def _pdf_response(rendered: RenderedInvoice, settings: Settings) -> FileResponse:
    # the file is removed only after the response has been streamed
    return FileResponse(
        rendered.file_path,
        media_type="application/pdf",
        filename=rendered.file_name,
        background=BackgroundTask(discard_invoice, rendered.file_path, settings.invoice_cleanup_delay_seconds),
    )


@router.get("/invoice/{session_id}")
def download_invoice(
    session_id: str,
    gateway: StripeGateway = Depends(get_gateway),
    renderer: InvoiceRenderer = Depends(get_invoice_renderer),
    settings: Settings = Depends(get_settings),
):
    session = gateway.retrieve_checkout_session(session_id, expand=["line_items", "customer_details"])
    if session.get("payment_status") != "paid":
        raise PaymentIncomplete(
            "Payment not completed",
            message="An invoice can only be generated for a completed payment",
        )

    rendered = renderer.render(invoice_from_session(session))
    logger.info("Serving invoice %s", rendered.invoice_number, extra={"session_id": session_id})
    return _pdf_response(rendered, settings)


@router.post("/generate-invoice", dependencies=[Depends(require_admin)])
def generate_invoice(
    payload: GenerateInvoiceIn,
    renderer: InvoiceRenderer = Depends(get_invoice_renderer),
    settings: Settings = Depends(get_settings),
):
    data = invoice_from_request(
        payload.customerEmail,
        [item.model_dump() for item in payload.items],
        customer_name=payload.customerName,
        customer_address=payload.customerAddress,
        date=payload.date,
    )
    rendered = renderer.render(data)
    logger.info("Serving manual invoice %s", rendered.invoice_number)
    return _pdf_response(rendered, settings)
