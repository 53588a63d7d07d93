"""Error hierarchy for the waitlist service.

Every caller-facing failure carries a machine-readable ``kind`` and an HTTP
status so API routes can normalize it into a structured error body.
"""
from typing import Optional


class WaitlistError(Exception):
    """Base exception for all waitlist service errors."""

    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Serialize for API error responses."""
        body = {"kind": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Unauthenticated(WaitlistError):
    """Caller is not signed in."""
    kind = "unauthenticated"
    status_code = 401


class PermissionDenied(WaitlistError):
    """Caller is signed in but not an activated admin."""
    kind = "permission-denied"
    status_code = 403


class InvalidArgument(WaitlistError):
    """Request arguments or prerequisite data are invalid."""
    kind = "invalid-argument"
    status_code = 400


class StaleSearchResult(WaitlistError):
    """The stored waitlist search result is too old to call from."""
    kind = "deadline-exceeded"
    status_code = 408


class GatewayError(WaitlistError):
    """The telephony provider failed to place a call."""
    kind = "internal"
    status_code = 502


class SpoofedCaller(WaitlistError):
    """A voice webhook arrived for a call our dialer did not place."""
    kind = "permission-denied"
    status_code = 403
