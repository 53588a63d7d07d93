"""FastAPI dependencies."""
from functools import lru_cache
from datetime import timedelta
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.database import AsyncSessionLocal, get_db
from app.services.call_session.manager import CallSessionManager
from app.services.call_session.notifier import ChangeNotifier, notifier
from app.services.call_session.store import CallSessionStore
from app.services.persistence.search_results import SearchResultPersistenceService
from app.services.telephony.gateway import TelephonyGateway, build_twilio_gateway
from app.services.voice.menu import MenuScripts
from app.services.voice.responder import WebhookResponder
from app.services.waitlist.orchestrator import BatchConfirmationOrchestrator

VOICE_WEBHOOK_PATH = "/webhooks/voice/confirm"


def get_notifier() -> ChangeNotifier:
    """Get the process-wide change notifier."""
    return notifier


@lru_cache
def get_telephony_gateway() -> TelephonyGateway:
    """Get the Twilio gateway, built once per process."""
    return build_twilio_gateway(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
        callback_url=f"{settings.base_url.rstrip('/')}{VOICE_WEBHOOK_PATH}",
    )


def get_call_session_store(
    db: AsyncSession = Depends(get_db),
    change_notifier: ChangeNotifier = Depends(get_notifier),
) -> CallSessionStore:
    """Get call session store."""
    return CallSessionStore(db, change_notifier)


def get_menu_scripts() -> MenuScripts:
    """Get voice menu script builder."""
    return MenuScripts(
        webhook_path=VOICE_WEBHOOK_PATH,
        gather_timeout=settings.gather_timeout_seconds,
        voice=settings.voice,
    )


def get_webhook_responder(
    store: CallSessionStore = Depends(get_call_session_store),
    scripts: MenuScripts = Depends(get_menu_scripts),
) -> WebhookResponder:
    """Get voice webhook responder."""
    return WebhookResponder(
        store,
        caller_number=settings.twilio_phone_number,
        scripts=scripts,
        await_writes=settings.await_webhook_writes,
        session_factory=AsyncSessionLocal,
    )


def get_orchestrator(
    db: AsyncSession = Depends(get_db),
    store: CallSessionStore = Depends(get_call_session_store),
    gateway: TelephonyGateway = Depends(get_telephony_gateway),
) -> BatchConfirmationOrchestrator:
    """Get batch confirmation orchestrator."""
    call_manager = CallSessionManager(gateway, store, timeout=settings.call_timeout_seconds)
    return BatchConfirmationOrchestrator(
        call_manager,
        SearchResultPersistenceService(db),
        max_search_age=timedelta(seconds=settings.search_result_max_age_seconds),
    )
