"""Call session models."""
from enum import Enum
from pydantic import BaseModel


class UserInput(str, Enum):
    """Keypad answer recorded on a call session."""

    UNKNOWN = "unknown"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class CallOutcome(str, Enum):
    """How a single confirmation call ended."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"

    def __str__(self) -> str:
        return self.value


class CallSession(BaseModel):
    """One outstanding confirmation attempt, shared through the store."""

    call_sid: str
    user_number: str
    waitlist_key: str
    user_input: UserInput = UserInput.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        """Whether the caller has answered the menu."""
        return self.user_input != UserInput.UNKNOWN
