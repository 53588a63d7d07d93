"""Waitlist batch confirmation endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from app.api.auth import require_activated_admin
from app.core.dependencies import get_orchestrator
from app.services.waitlist.models import WaitlistCandidate
from app.services.waitlist.orchestrator import BatchConfirmationOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


class StartCallingRequest(BaseModel):
    """Start calling request model."""
    model_config = ConfigDict(populate_by_name=True)

    num_spots_to_fill: int = Field(alias="numSpotsToFill")


class StartCallingResponse(BaseModel):
    """Start calling response model."""
    model_config = ConfigDict(populate_by_name=True)

    confirmed_list: List[WaitlistCandidate] = Field(alias="confirmedList")


@router.post(
    "/api/waitlist/start-calling",
    response_model=StartCallingResponse,
    response_model_by_alias=True,
)
async def start_calling_users(
    body: StartCallingRequest,
    admin_uid: str = Depends(require_activated_admin),
    orchestrator: BatchConfirmationOrchestrator = Depends(get_orchestrator),
):
    """Call waitlisted users until the requested number of spots is confirmed."""
    logger.info(
        f"[BATCH] Start calling requested - Admin: {admin_uid}, "
        f"Spots: {body.num_spots_to_fill}"
    )
    batch = await orchestrator.run_batch(admin_uid, body.num_spots_to_fill)
    return StartCallingResponse(confirmed_list=batch.confirmed_list)
