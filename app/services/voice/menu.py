"""Keypad confirmation menu state machine."""
from enum import Enum
from typing import Optional, Tuple

from app.services.call_session.models import UserInput
from app.services.voice.script import Say, VoiceScript

PROMPT_TEXT = (
    "Hello, this is Easy Wait List, calling you about an available co-vid vaccine "
    "appointment immediately. "
    "Press one to confirm that you can show up in the next twenty minutes. "
    "Press two to decline and remain on the waitlist."
)
CONFIRMED_TEXT = "You have confirmed. A clinic staff will reach out to you soon."
CANCELLED_TEXT = "You have declined. We will remove your waitlist information."
UNRECOGNIZED_TEXT = "Sorry, I don't understand that choice."
REJECTED_TEXT = "This number is only for notifications. Goodbye!"
EXPIRED_TEXT = "Sorry, this appointment offer is no longer available. Goodbye!"

CONFIRM_DIGIT = "1"
CANCEL_DIGIT = "2"


class MenuState(str, Enum):
    """States of the keypad menu for one call."""

    AWAITING_INPUT = "awaiting_input"  # Prompt played, waiting for a digit
    CONFIRMED = "confirmed"  # Pressed 1, call ends
    CANCELLED = "cancelled"  # Pressed 2, call ends

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self != MenuState.AWAITING_INPUT

    @property
    def user_input(self) -> Optional[UserInput]:
        """Answer to record for this state, if any."""
        return {
            MenuState.CONFIRMED: UserInput.CONFIRMED,
            MenuState.CANCELLED: UserInput.CANCELLED,
        }.get(self)


class MenuScripts:
    """Builds the spoken scripts for the menu."""

    def __init__(self, webhook_path: str, gather_timeout: int = 10, voice: Optional[str] = "man"):
        self.webhook_path = webhook_path
        self.gather_timeout = gather_timeout
        self.voice = voice

    def gather(self, script: VoiceScript) -> VoiceScript:
        # If the caller enters nothing, Twilio falls through to the redirect and
        # re-invokes the webhook with no digits
        script.gather(
            timeout=self.gather_timeout,
            num_digits=1,
            prompts=[Say(text=PROMPT_TEXT, voice=self.voice)],
        )
        return script.redirect(self.webhook_path)

    def answered(self, user_input: UserInput) -> VoiceScript:
        """Read back a recorded answer and hang up."""
        text = CONFIRMED_TEXT if user_input == UserInput.CONFIRMED else CANCELLED_TEXT
        return VoiceScript().say(text, voice=self.voice).hangup()

    def expired(self) -> VoiceScript:
        return VoiceScript().say(EXPIRED_TEXT, voice=self.voice).hangup()

    def rejection(self) -> VoiceScript:
        return VoiceScript().say(REJECTED_TEXT, voice=self.voice).hangup()


def transition(
    state: MenuState,
    digits: Optional[str],
    scripts: MenuScripts,
) -> Tuple[MenuState, VoiceScript]:
    """
    Advance the menu for one webhook invocation.

    Args:
        state: Current menu state
        digits: Digits pressed by the caller, if any
        scripts: Script builder for prompts and directives

    Returns:
        (new state, script to play)
    """
    script = VoiceScript()

    if state.is_terminal:
        return state, script.hangup()

    if not digits:
        return MenuState.AWAITING_INPUT, scripts.gather(script)

    if digits == CONFIRM_DIGIT:
        return MenuState.CONFIRMED, scripts.answered(UserInput.CONFIRMED)

    if digits == CANCEL_DIGIT:
        return MenuState.CANCELLED, scripts.answered(UserInput.CANCELLED)

    script.say(UNRECOGNIZED_TEXT, voice=scripts.voice).pause()
    return MenuState.AWAITING_INPUT, scripts.gather(script)
