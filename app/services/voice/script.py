"""Voice response scripts and their TwiML rendering."""
from typing import List, Optional, Union
from pydantic import BaseModel
from twilio.twiml.voice_response import VoiceResponse


class Say(BaseModel):
    """Speak a line of text."""

    text: str
    voice: Optional[str] = None


class Pause(BaseModel):
    """Pause for a number of seconds."""

    length: int = 1


class Gather(BaseModel):
    """Collect keypad digits while speaking prompts."""

    timeout: int
    num_digits: int = 1
    prompts: List[Say] = []


class Redirect(BaseModel):
    """Send the call back to a webhook path."""

    path: str


class Hangup(BaseModel):
    """End the call."""


Directive = Union[Say, Pause, Gather, Redirect, Hangup]


class VoiceScript(BaseModel):
    """Ordered list of voice directives."""

    directives: List[Directive] = []

    def say(self, text: str, voice: Optional[str] = None) -> "VoiceScript":
        self.directives.append(Say(text=text, voice=voice))
        return self

    def pause(self, length: int = 1) -> "VoiceScript":
        self.directives.append(Pause(length=length))
        return self

    def gather(self, timeout: int, num_digits: int = 1, prompts: Optional[List[Say]] = None) -> "VoiceScript":
        self.directives.append(Gather(timeout=timeout, num_digits=num_digits, prompts=prompts or []))
        return self

    def redirect(self, path: str) -> "VoiceScript":
        self.directives.append(Redirect(path=path))
        return self

    def hangup(self) -> "VoiceScript":
        self.directives.append(Hangup())
        return self

    @property
    def ends_call(self) -> bool:
        return bool(self.directives) and isinstance(self.directives[-1], Hangup)

    def has(self, directive_type: type) -> bool:
        return any(isinstance(d, directive_type) for d in self.directives)


def _say_kwargs(say: Say) -> dict:
    return {"voice": say.voice} if say.voice else {}


def render_twiml(script: VoiceScript) -> str:
    """Render a voice script as a TwiML document."""
    response = VoiceResponse()
    for directive in script.directives:
        if isinstance(directive, Say):
            response.say(directive.text, **_say_kwargs(directive))
        elif isinstance(directive, Pause):
            response.pause(length=directive.length)
        elif isinstance(directive, Gather):
            gather = response.gather(timeout=directive.timeout, num_digits=directive.num_digits)
            for prompt in directive.prompts:
                gather.say(prompt.text, **_say_kwargs(prompt))
        elif isinstance(directive, Redirect):
            response.redirect(directive.path)
        elif isinstance(directive, Hangup):
            response.hangup()
    return str(response)
