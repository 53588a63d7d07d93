"""Call session manager."""
import asyncio
import logging
from typing import Optional

from app.services.call_session.models import CallOutcome, CallSession, UserInput
from app.services.call_session.notifier import Subscription
from app.services.call_session.store import CallSessionStore
from app.services.telephony.gateway import TelephonyGateway

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT_SECONDS = 60.0


class CallSessionManager:
    """Places one confirmation call and waits for the caller's keypad answer."""

    def __init__(
        self,
        gateway: TelephonyGateway,
        store: CallSessionStore,
        timeout: float = DEFAULT_CALL_TIMEOUT_SECONDS,
    ):
        self.gateway = gateway
        self.store = store
        self.timeout = timeout

    async def place_and_await_confirmation(
        self,
        phone_number: str,
        waitlist_key: str,
        timeout: Optional[float] = None,
    ) -> CallOutcome:
        """
        Call a candidate and wait for them to confirm or cancel.

        Args:
            phone_number: Destination phone number
            waitlist_key: Waitlist record being offered
            timeout: Seconds to wait from session creation (defaults to the
                manager's timeout)

        Returns:
            CONFIRMED or CANCELLED from the keypad, TIMED_OUT otherwise

        Raises:
            GatewayError: if the call could not be placed (no session is created)
        """
        timeout = self.timeout if timeout is None else timeout

        call = await self.gateway.place_call(phone_number)
        call_sid = call.call_sid

        subscription: Optional[Subscription] = None
        try:
            await self.store.put(
                CallSession(
                    call_sid=call_sid,
                    user_number=phone_number,
                    waitlist_key=waitlist_key,
                    user_input=UserInput.UNKNOWN,
                )
            )
            subscription = await self.store.subscribe(call_sid)

            timed_out = False
            try:
                answer = await asyncio.wait_for(
                    self._wait_for_answer(subscription), timeout=timeout
                )
            except asyncio.TimeoutError:
                answer = None
                timed_out = True

            if answer is None:
                # Change notifications are per process; an answer committed
                # by another worker is only visible in the store
                answer = await self._recorded_answer(call_sid)

            if answer == UserInput.CONFIRMED:
                logger.info(f"[CALL SESSION] User confirmed: {waitlist_key} - CallSid: {call_sid}")
                return CallOutcome.CONFIRMED

            if answer == UserInput.CANCELLED:
                logger.info(f"[CALL SESSION] User cancelled: {waitlist_key} - CallSid: {call_sid}")
                return CallOutcome.CANCELLED

            if timed_out:
                logger.info(
                    f"[CALL SESSION] Timed out after {timeout} seconds - "
                    f"CallSid: {call_sid}, WaitlistKey: {waitlist_key}"
                )
                return CallOutcome.TIMED_OUT

            # Record vanished before an answer arrived
            logger.warning(
                f"[CALL SESSION] Session removed before an answer - CallSid: {call_sid}"
            )
            return CallOutcome.TIMED_OUT
        finally:
            if subscription is not None:
                subscription.close()
            await self.store.delete(call_sid)

    async def _recorded_answer(self, call_sid: str) -> Optional[UserInput]:
        """Terminal answer currently stored for the call, if any."""
        session = await self.store.get(call_sid)
        if session is not None and session.is_terminal:
            return session.user_input
        return None

    @staticmethod
    async def _wait_for_answer(subscription: Subscription) -> Optional[UserInput]:
        """Wait until the session reaches a terminal answer or is deleted."""
        while True:
            session = await subscription.next_value()
            if session is None:
                return None
            if session.is_terminal:
                return session.user_input
