"""In-process change notifications for call session records."""
import asyncio
import logging
from typing import Dict, Optional, Set

from app.services.call_session.models import CallSession

logger = logging.getLogger(__name__)


class Subscription:
    """Stream of value changes for one call session key.

    ``None`` in the stream means the record was deleted.
    """

    def __init__(self, notifier: "ChangeNotifier", call_sid: str):
        self.call_sid = call_sid
        self._notifier = notifier
        self._queue: "asyncio.Queue[Optional[CallSession]]" = asyncio.Queue()
        self.closed = False

    def put(self, value: Optional[CallSession]) -> None:
        if not self.closed:
            self._queue.put_nowait(value)

    async def next_value(self) -> Optional[CallSession]:
        """Wait for the next value change."""
        return await self._queue.get()

    def close(self) -> None:
        """Stop receiving changes. Safe to call more than once."""
        if not self.closed:
            self.closed = True
            self._notifier.unsubscribe(self)


class ChangeNotifier:
    """Fan-out of record changes to subscribers, keyed by call SID."""

    def __init__(self):
        self._subscribers: Dict[str, Set[Subscription]] = {}

    def subscribe(self, call_sid: str) -> Subscription:
        subscription = Subscription(self, call_sid)
        self._subscribers.setdefault(call_sid, set()).add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.call_sid)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.call_sid]

    def publish(self, call_sid: str, value: Optional[CallSession]) -> None:
        """Deliver a committed value (or deletion) to every subscriber."""
        subscribers = list(self._subscribers.get(call_sid, ()))
        logger.debug(
            f"[NOTIFIER] Publishing change - CallSid: {call_sid}, "
            f"Subscribers: {len(subscribers)}"
        )
        for subscription in subscribers:
            subscription.put(value)

    def subscriber_count(self, call_sid: str) -> int:
        return len(self._subscribers.get(call_sid, ()))

    def total_subscribers(self) -> int:
        return sum(len(s) for s in self._subscribers.values())


# Module-level notifier shared by every request in this process
notifier = ChangeNotifier()
