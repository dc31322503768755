import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_webhook_dispatcher
from app.services.webhooks import WebhookDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stripe"])


@router.post("/webhook")
async def stripe_webhook(request: Request, dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher)):
    # raw bytes: the signature covers the exact payload, never a re-serialized JSON
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    event = dispatcher.verify(payload, signature)
    # handlers block on Stripe and SMTP calls
    return await run_in_threadpool(dispatcher.dispatch, event)
