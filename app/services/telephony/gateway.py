"""Telephony gateway for placing outbound confirmation calls."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from app.core.exceptions import GatewayError

logger = logging.getLogger(__name__)


class OutboundCall(BaseModel):
    """Call created by the telephony provider."""

    call_sid: str
    to: str
    from_number: str
    status: Optional[str] = None


class TelephonyGateway(ABC):
    """Abstract base class for telephony providers."""

    @abstractmethod
    async def place_call(self, to: str) -> OutboundCall:
        """Place an outbound call to ``to``.

        Raises:
            GatewayError: if the provider rejects or fails the request
        """
        pass


class TwilioGateway(TelephonyGateway):
    """Places calls through the Twilio REST API."""

    def __init__(self, client: TwilioClient, from_number: str, callback_url: str):
        self.client = client
        self.from_number = from_number
        self.callback_url = callback_url

    def _create_call(self, to: str) -> OutboundCall:
        call = self.client.calls.create(
            to=to,
            from_=self.from_number,
            url=self.callback_url,
        )
        return OutboundCall(
            call_sid=call.sid,
            to=to,
            from_number=self.from_number,
            status=getattr(call, "status", None),
        )

    async def place_call(self, to: str) -> OutboundCall:
        # The Twilio client is synchronous; keep it off the event loop
        try:
            call = await asyncio.to_thread(self._create_call, to)
        except TwilioException as e:
            logger.warning(
                f"[TWILIO] Call placement failed - To: {to}, "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            raise GatewayError(
                f"Could not place call to {to}: {str(e)}",
                details={"to": to},
            ) from e

        logger.info(f"[TWILIO] Initiating call to {to} - CallSid: {call.call_sid}")
        return call


def build_twilio_gateway(
    account_sid: str,
    auth_token: str,
    from_number: str,
    callback_url: str,
) -> TwilioGateway:
    """Build a Twilio gateway from credentials."""
    missing = [
        name
        for name, value in [
            ("account_sid", account_sid),
            ("auth_token", auth_token),
            ("from_number", from_number),
        ]
        if not value
    ]
    if missing:
        logger.error(f"[TWILIO] Missing Twilio settings: {', '.join(missing)}")
        raise RuntimeError(f"Missing Twilio settings: {', '.join(missing)}")

    client = TwilioClient(account_sid, auth_token)
    logger.info("[TWILIO] Twilio client initialized successfully")
    return TwilioGateway(client, from_number, callback_url)
