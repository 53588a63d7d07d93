"""Webhook responder for keypad input on confirmation calls."""
import asyncio
import logging
from typing import Callable, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import SpoofedCaller
from app.services.call_session.models import UserInput
from app.services.call_session.store import CallSessionStore
from app.services.voice.menu import MenuScripts, MenuState, transition
from app.services.voice.script import VoiceScript

logger = logging.getLogger(__name__)

# Keeps fire-and-forget writes alive until they finish
_pending_writes: Set[asyncio.Task] = set()


class WebhookResponder:
    """Turns one Twilio voice callback into a script and a session update."""

    def __init__(
        self,
        store: CallSessionStore,
        caller_number: str,
        scripts: MenuScripts,
        await_writes: bool = True,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
    ):
        self.store = store
        self.caller_number = caller_number
        self.scripts = scripts
        self.await_writes = await_writes
        # Background writes outlive the request, so they need their own session
        self.session_factory = session_factory

    def check_caller(self, from_number: Optional[str]) -> None:
        """Reject callbacks for calls our own dialer did not place."""
        if from_number != self.caller_number:
            raise SpoofedCaller(
                "This number is only for notifications.",
                details={"from": from_number},
            )

    async def respond(
        self,
        call_sid: str,
        from_number: Optional[str],
        digits: Optional[str] = None,
    ) -> VoiceScript:
        """
        Handle one keypad callback.

        Args:
            call_sid: Twilio call SID
            from_number: Number the call was placed from
            digits: Digits pressed, if any

        Returns:
            Voice script to play back to the caller
        """
        try:
            self.check_caller(from_number)
        except SpoofedCaller:
            logger.warning(
                f"[VOICE WEBHOOK] Rejecting call not placed by our dialer - "
                f"CallSid: {call_sid}, From: {from_number}"
            )
            return self.scripts.rejection()

        new_state, script = transition(MenuState.AWAITING_INPUT, digits, self.scripts)
        logger.info(
            f"[VOICE WEBHOOK] Menu transition - CallSid: {call_sid}, "
            f"Digits: {digits!r}, State: {new_state}"
        )

        user_input = new_state.user_input
        if user_input is None:
            return script

        if self.await_writes or self.session_factory is None:
            if not await self.store.set_user_input(call_sid, user_input):
                return await self._unrecorded_script(call_sid)
        else:
            # The call may end before this commits, losing the answer
            task = asyncio.create_task(self._write_in_background(call_sid, user_input))
            _pending_writes.add(task)
            task.add_done_callback(_on_write_done)

        return script

    async def _unrecorded_script(self, call_sid: str) -> VoiceScript:
        """Script for an answer the store refused to record."""
        session = await self.store.get(call_sid)
        if session is not None and session.is_terminal:
            # Caller changed their mind after answering; the first answer stands
            return self.scripts.answered(session.user_input)

        logger.info(
            f"[VOICE WEBHOOK] Answer arrived after the session ended - CallSid: {call_sid}"
        )
        return self.scripts.expired()

    async def _write_in_background(self, call_sid: str, user_input: UserInput) -> None:
        async with self.session_factory() as db:
            store = CallSessionStore(db, self.store.notifier)
            await store.set_user_input(call_sid, user_input)


def _on_write_done(task: asyncio.Task) -> None:
    _pending_writes.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error(
            f"[VOICE WEBHOOK] Background session write failed: {task.exception()!r}"
        )
