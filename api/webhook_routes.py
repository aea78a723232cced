import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from core.deps import get_conversation_engine, get_verify_token
from models.inbound_event import InboundEvent, WebhookPayload
from services.conversation_engine import ConversationEngine

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND_EXCEPTION = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


# Verify WhatsApp Webhook Subscription
@router.get("", response_class=PlainTextResponse)
def verify_webhook(
    hub_mode: Annotated[Optional[str], Query(alias="hub.mode")] = None,
    hub_verify_token: Annotated[Optional[str], Query(alias="hub.verify_token")] = None,
    hub_challenge: Annotated[Optional[str], Query(alias="hub.challenge")] = None,
    verify_token: str = Depends(get_verify_token),
):
    if hub_mode == "subscribe" and hub_verify_token == verify_token:
        logger.info("[WEBHOOK] ✅ Subscription verified")
        return PlainTextResponse(hub_challenge or "")

    logger.warning(f"[WEBHOOK] ❌ Verification failed (mode={hub_mode})")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


# Handle WhatsApp Messages
@router.post("", response_class=PlainTextResponse)
async def receive_webhook(
    request: Request,
    engine: ConversationEngine = Depends(get_conversation_engine),
):
    """
    Deliveries are acknowledged with 200 whenever they carry at least one
    message, whatever the outcome of processing; a non-200 would make the
    platform redeliver. Failures reach the user as a reply and the logs.
    """
    try:
        body = await request.json()
        payload = WebhookPayload.model_validate(body)
    except (ValueError, ValidationError) as e:
        logger.warning(f"[WEBHOOK] ⚠️ Ignoring malformed delivery: {e}")
        raise NOT_FOUND_EXCEPTION

    messages = payload.messages()
    if not payload.object or not messages:
        # Status updates (delivered/read) carry no messages
        raise NOT_FOUND_EXCEPTION

    for message in messages:
        event = InboundEvent.from_message(message)
        logger.info(f"[WEBHOOK] 📋 {event.kind.value} message {event.message_id} from {event.sender}")
        await engine.handle_inbound_event(event)

    return PlainTextResponse("EVENT_RECEIVED")
