"""Twilio voice webhook endpoints."""
import logging
from typing import Optional
from fastapi import APIRouter, Request, Form, Depends
from fastapi.responses import Response

from app.core.dependencies import get_webhook_responder
from app.services.voice.responder import WebhookResponder
from app.services.voice.script import VoiceScript, render_twiml

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_MESSAGE = "Sorry, we are unable to take your answer right now. Goodbye!"


@router.post("/voice/confirm")
async def handle_confirmation_input(
    request: Request,
    CallSid: str = Form(...),
    From: Optional[str] = Form(None),
    Digits: Optional[str] = Form(None),
    responder: WebhookResponder = Depends(get_webhook_responder),
):
    """
    Handle keypad input on a confirmation call.

    Twilio calls this when the outbound call connects and again after every
    gather, with the pressed digit in ``Digits``.
    """
    logger.info(
        f"[VOICE WEBHOOK] Received callback - CallSid: {CallSid}, "
        f"Digits: {Digits!r}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        script = await responder.respond(CallSid, From, Digits)
    except Exception as e:
        logger.error(
            f"[VOICE WEBHOOK] Error processing callback - CallSid: {CallSid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        # Return a graceful error response to Twilio
        script = VoiceScript().say(ERROR_MESSAGE).hangup()

    return Response(content=render_twiml(script), media_type="application/xml")
