"""Unit tests for the voice webhook responder."""
import asyncio
import pytest

from app.core.exceptions import SpoofedCaller
from app.services.call_session.models import CallSession, UserInput
from app.services.voice.menu import CONFIRMED_TEXT, EXPIRED_TEXT, REJECTED_TEXT, MenuScripts
from app.services.voice.responder import WebhookResponder
from app.services.voice.script import Gather, Hangup, Say

CALLER = "+15550000000"
CALL_SID = "CA00000000000000000000000000000001"


@pytest.fixture
def scripts():
    return MenuScripts(webhook_path="/webhooks/voice/confirm", gather_timeout=10)


@pytest.fixture
def responder(store, scripts):
    return WebhookResponder(store, caller_number=CALLER, scripts=scripts)


@pytest.fixture
async def active_session(store):
    return await store.put(
        CallSession(call_sid=CALL_SID, user_number="+15555550001", waitlist_key="wl-1")
    )


class TestWebhookResponder:
    """Test keypad callbacks drive the stored session."""

    @pytest.mark.asyncio
    async def test_no_digits_gathers_without_write(self, responder, store, active_session):
        """Test the first callback gathers and leaves the session unknown."""
        script = await responder.respond(CALL_SID, CALLER, None)

        assert script.has(Gather)
        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.UNKNOWN

    @pytest.mark.asyncio
    async def test_digit_one_confirms(self, responder, store, active_session):
        """Test pressing 1 records confirmed and ends the call."""
        script = await responder.respond(CALL_SID, CALLER, "1")

        assert script.ends_call
        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.CONFIRMED

    @pytest.mark.asyncio
    async def test_digit_two_cancels(self, responder, store, active_session):
        """Test pressing 2 records cancelled and ends the call."""
        script = await responder.respond(CALL_SID, CALLER, "2")

        assert script.ends_call
        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.CANCELLED

    @pytest.mark.asyncio
    async def test_unknown_digit_keeps_waiting(self, responder, store, active_session):
        """Test an unrecognized digit re-gathers without a write."""
        script = await responder.respond(CALL_SID, CALLER, "7")

        assert script.has(Gather)
        assert not script.ends_call
        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.UNKNOWN

    @pytest.mark.asyncio
    async def test_repeated_digit_is_idempotent(self, responder, store, active_session):
        """Test a retried callback with the same digit leaves the same state."""
        await responder.respond(CALL_SID, CALLER, "1")
        await responder.respond(CALL_SID, CALLER, "1")

        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.CONFIRMED

    @pytest.mark.asyncio
    async def test_spoofed_caller_rejected(self, responder, store, active_session):
        """Test a call from another number is rejected with no state change."""
        script = await responder.respond(CALL_SID, "+19998887777", "1")

        assert script.directives[0] == Say(text=REJECTED_TEXT, voice="man")
        assert script.ends_call
        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.UNKNOWN

    @pytest.mark.asyncio
    async def test_missing_from_rejected(self, responder):
        """Test a callback without a From number is rejected."""
        with pytest.raises(SpoofedCaller):
            responder.check_caller(None)

    @pytest.mark.asyncio
    async def test_changed_answer_keeps_first(self, responder, store, active_session):
        """Test pressing 2 after 1 leaves the confirmation and reads it back."""
        await responder.respond(CALL_SID, CALLER, "1")

        script = await responder.respond(CALL_SID, CALLER, "2")

        assert script.directives[0] == Say(text=CONFIRMED_TEXT, voice="man")
        assert script.ends_call
        session = await store.get(CALL_SID)
        assert session.user_input == UserInput.CONFIRMED

    @pytest.mark.asyncio
    async def test_unknown_call_not_recreated(self, responder, store):
        """Test a late answer after the session ended does not recreate it."""
        script = await responder.respond("CA-gone", CALLER, "1")

        assert script.ends_call
        assert await store.get("CA-gone") is None

    @pytest.mark.asyncio
    async def test_late_answer_hears_offer_expired(self, responder, store):
        """Test a caller answering after the session ended is not told they confirmed."""
        script = await responder.respond("CA-expired", CALLER, "1")

        assert script.directives == [Say(text=EXPIRED_TEXT, voice="man"), Hangup()]
        assert await store.get("CA-expired") is None

    @pytest.mark.asyncio
    async def test_answer_notifies_subscribers(self, responder, store, active_session):
        """Test the terminal write reaches subscribers of the call."""
        subscription = await store.subscribe(CALL_SID)
        initial = await subscription.next_value()
        assert initial.user_input == UserInput.UNKNOWN

        await responder.respond(CALL_SID, CALLER, "2")

        changed = await asyncio.wait_for(subscription.next_value(), timeout=1)
        assert changed.user_input == UserInput.CANCELLED
        subscription.close()


class TestFireAndForgetWrites:
    """Test answers written after the response is built."""

    @pytest.mark.asyncio
    async def test_background_write_lands(self, store, scripts, session_factory, active_session):
        """Test the answer is committed shortly after responding."""
        responder = WebhookResponder(
            store,
            caller_number=CALLER,
            scripts=scripts,
            await_writes=False,
            session_factory=session_factory,
        )
        subscription = await store.subscribe(CALL_SID)
        await subscription.next_value()

        script = await responder.respond(CALL_SID, CALLER, "1")
        assert script.ends_call

        changed = await asyncio.wait_for(subscription.next_value(), timeout=2)
        assert changed.user_input == UserInput.CONFIRMED
        subscription.close()
