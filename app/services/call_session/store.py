"""Call session store backed by the active_calls table."""
import logging
from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import ActiveCall
from app.services.call_session.models import CallSession, UserInput
from app.services.call_session.notifier import ChangeNotifier, Subscription, notifier as default_notifier

logger = logging.getLogger(__name__)


class CallSessionStore:
    """Point reads, writes, deletes and change subscriptions for call sessions."""

    def __init__(self, db: AsyncSession, notifier: Optional[ChangeNotifier] = None):
        self.db = db
        self.notifier = notifier or default_notifier

    async def _get_row(self, call_sid: str) -> Optional[ActiveCall]:
        # Other sessions and workers write these rows, so always reload from the database
        result = await self.db.execute(
            select(ActiveCall)
            .where(ActiveCall.call_sid == call_sid)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_session(row: ActiveCall) -> CallSession:
        return CallSession(
            call_sid=row.call_sid,
            user_number=row.user_number,
            waitlist_key=row.waitlist_key,
            user_input=UserInput(row.user_input),
        )

    async def get(self, call_sid: str) -> Optional[CallSession]:
        """Get a call session by call SID."""
        row = await self._get_row(call_sid)
        return self._to_session(row) if row else None

    async def put(self, session: CallSession) -> CallSession:
        """Create or overwrite a call session record."""
        row = await self._get_row(session.call_sid)
        if row is None:
            row = ActiveCall(call_sid=session.call_sid)
            self.db.add(row)
        row.user_number = session.user_number
        row.waitlist_key = session.waitlist_key
        row.user_input = session.user_input.value
        await self.db.commit()

        self.notifier.publish(session.call_sid, session)
        return session

    async def set_user_input(self, call_sid: str, user_input: UserInput) -> bool:
        """Record the caller's answer.

        The answer moves from unknown to a terminal value at most once.
        Returns True when the session now holds ``user_input`` (including a
        repeat of the same answer) and False when the session no longer
        exists or already holds a different answer. A late webhook never
        resurrects a finished call.
        """
        result = await self.db.execute(
            update(ActiveCall)
            .where(
                ActiveCall.call_sid == call_sid,
                ActiveCall.user_input == UserInput.UNKNOWN.value,
            )
            .values(user_input=user_input.value)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        written = result.rowcount > 0

        row = await self._get_row(call_sid)
        if row is None:
            logger.warning(
                f"[CALL STORE] No active session for answer - CallSid: {call_sid}, "
                f"UserInput: {user_input}"
            )
            return False

        session = self._to_session(row)
        if written:
            self.notifier.publish(call_sid, session)
            return True

        if session.user_input != user_input:
            logger.warning(
                f"[CALL STORE] Session already answered - CallSid: {call_sid}, "
                f"Recorded: {session.user_input}, Ignored: {user_input}"
            )
            return False
        return True

    async def delete(self, call_sid: str) -> None:
        """Delete a call session. Deleting a missing record is a no-op."""
        row = await self._get_row(call_sid)
        if row is None:
            return
        await self.db.delete(row)
        await self.db.commit()

        self.notifier.publish(call_sid, None)

    async def subscribe(self, call_sid: str) -> Subscription:
        """Subscribe to changes, starting with the current value if present."""
        subscription = self.notifier.subscribe(call_sid)
        current = await self.get(call_sid)
        if current is not None:
            subscription.put(current)
        return subscription
