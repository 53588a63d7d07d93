"""Unit tests for the keypad menu state machine and TwiML rendering."""
import pytest

from app.services.call_session.models import UserInput
from app.services.voice.menu import (
    CANCELLED_TEXT,
    CONFIRMED_TEXT,
    PROMPT_TEXT,
    UNRECOGNIZED_TEXT,
    MenuScripts,
    MenuState,
    transition,
)
from app.services.voice.script import Gather, Hangup, Pause, Redirect, Say, VoiceScript, render_twiml


@pytest.fixture
def scripts():
    return MenuScripts(webhook_path="/webhooks/voice/confirm", gather_timeout=10, voice="man")


class TestTransition:
    """Test the pure transition function."""

    def test_no_digits_gathers(self, scripts):
        """Test no input prompts and gathers one digit, then loops back."""
        state, script = transition(MenuState.AWAITING_INPUT, None, scripts)

        assert state == MenuState.AWAITING_INPUT
        gather, redirect = script.directives
        assert isinstance(gather, Gather)
        assert gather.num_digits == 1
        assert gather.timeout == 10
        assert gather.prompts[0].text == PROMPT_TEXT
        assert isinstance(redirect, Redirect)
        assert redirect.path == "/webhooks/voice/confirm"
        assert not script.ends_call

    def test_empty_digits_same_as_none(self, scripts):
        """Test an empty Digits field is treated as no input."""
        state, script = transition(MenuState.AWAITING_INPUT, "", scripts)

        assert state == MenuState.AWAITING_INPUT
        assert script.has(Gather)

    def test_one_confirms(self, scripts):
        """Test digit 1 confirms and hangs up."""
        state, script = transition(MenuState.AWAITING_INPUT, "1", scripts)

        assert state == MenuState.CONFIRMED
        assert state.user_input == UserInput.CONFIRMED
        assert script.directives[0] == Say(text=CONFIRMED_TEXT, voice="man")
        assert script.ends_call

    def test_two_cancels(self, scripts):
        """Test digit 2 cancels and hangs up."""
        state, script = transition(MenuState.AWAITING_INPUT, "2", scripts)

        assert state == MenuState.CANCELLED
        assert state.user_input == UserInput.CANCELLED
        assert script.directives[0] == Say(text=CANCELLED_TEXT, voice="man")
        assert script.ends_call

    @pytest.mark.parametrize("digits", ["0", "3", "9", "*", "#"])
    def test_other_digit_regathers(self, scripts, digits):
        """Test an unrecognized digit apologizes and gathers again."""
        state, script = transition(MenuState.AWAITING_INPUT, digits, scripts)

        assert state == MenuState.AWAITING_INPUT
        assert state.user_input is None
        assert script.directives[0].text == UNRECOGNIZED_TEXT
        assert isinstance(script.directives[1], Pause)
        assert script.has(Gather)
        assert not script.ends_call

    def test_terminal_state_only_hangs_up(self, scripts):
        """Test a finished menu ignores further input."""
        state, script = transition(MenuState.CONFIRMED, "2", scripts)

        assert state == MenuState.CONFIRMED
        assert script.directives == [Hangup()]

    def test_repeated_digit_is_idempotent(self, scripts):
        """Test the same input always gives the same result."""
        first = transition(MenuState.AWAITING_INPUT, "1", scripts)
        second = transition(MenuState.AWAITING_INPUT, "1", scripts)

        assert first == second


class TestRenderTwiml:
    """Test rendering scripts to TwiML."""

    def test_render_gather(self, scripts):
        """Test the gather script renders nested say and redirect."""
        _, script = transition(MenuState.AWAITING_INPUT, None, scripts)

        xml = render_twiml(script)

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<Gather" in xml
        assert 'numDigits="1"' in xml
        assert 'timeout="10"' in xml
        assert '<Say voice="man">' in xml
        assert "<Redirect>/webhooks/voice/confirm</Redirect>" in xml

    def test_render_hangup(self, scripts):
        """Test a confirmation renders say then hangup."""
        _, script = transition(MenuState.AWAITING_INPUT, "1", scripts)

        xml = render_twiml(script)

        assert CONFIRMED_TEXT in xml
        assert xml.index("<Say") < xml.index("<Hangup")

    def test_render_escapes_text(self):
        """Test spoken text is XML-escaped."""
        xml = render_twiml(VoiceScript().say("Fish & chips <now>"))

        assert "Fish &amp; chips &lt;now&gt;" in xml

    def test_render_pause(self):
        """Test pause renders with its length."""
        xml = render_twiml(VoiceScript().pause(2))

        assert "<Pause" in xml
        assert 'length="2"' in xml
