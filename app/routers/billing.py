"""
Billing endpoints: customer portal and Stripe webhook.
"""
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from billing.service import (
    BillingDisabledError,
    NoBillingAccountError,
    PortalError,
    create_portal_session,
)
from billing.webhooks import WebhookError, process_webhook_event, verify_webhook_signature

_logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["billing"])


class PortalRequest(BaseModel):
    userId: str = Field(min_length=1)


@router.post("/create-portal-session")
def create_portal(request: PortalRequest):
    """Open the Stripe billing portal for a user's subscription."""
    try:
        url = create_portal_session(request.userId)
    except NoBillingAccountError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except BillingDisabledError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except PortalError as e:
        _logger.error(f"Portal Error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"url": url}


@router.post("/webhook")
async def stripe_webhook(request: Request):
    """
    Receive Stripe events.

    400 on a bad signature (nothing applied), 500 when processing failed
    so Stripe redelivers, 200 otherwise, including ignored event types.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = verify_webhook_signature(payload, signature)
    except WebhookError as e:
        return PlainTextResponse(f"Webhook Error: {e}", status_code=400)

    success, message = await run_in_threadpool(process_webhook_event, event)
    if not success:
        return JSONResponse(status_code=500, content={"error": message})

    return {"received": True, "message": message}
