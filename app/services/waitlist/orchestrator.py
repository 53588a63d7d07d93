"""Batch confirmation orchestrator."""
import logging
import random
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from app.core.exceptions import GatewayError, InvalidArgument, StaleSearchResult
from app.services.call_session.manager import CallSessionManager
from app.services.call_session.models import CallOutcome
from app.services.persistence.search_results import SearchResultPersistenceService
from app.services.waitlist.models import BatchResult, SearchResult, WaitlistCandidate
from app.services.waitlist.shuffle import fisher_yates_shuffle

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEARCH_AGE = timedelta(hours=3)


class BatchConfirmationOrchestrator:
    """Calls waitlist candidates one at a time until enough slots are confirmed."""

    def __init__(
        self,
        call_manager: CallSessionManager,
        search_results: SearchResultPersistenceService,
        max_search_age: timedelta = DEFAULT_MAX_SEARCH_AGE,
        rng: Optional[random.Random] = None,
        now: Callable[[], datetime] = datetime.utcnow,
    ):
        self.call_manager = call_manager
        self.search_results = search_results
        self.max_search_age = max_search_age
        self.rng = rng
        self.now = now

    def validate(self, search: Optional[SearchResult], target_confirmations: int) -> SearchResult:
        """Check the search result can be used to fill ``target_confirmations`` spots."""
        if search is None:
            raise InvalidArgument("You haven't performed a search in the waitlist.")

        if not isinstance(target_confirmations, int) or target_confirmations < 1:
            raise InvalidArgument("The number of spots to fill must be a positive integer.")

        if target_confirmations > len(search.candidates):
            raise InvalidArgument(
                "You can't call more users than what's in the search results.",
                details={
                    "num_spots_to_fill": target_confirmations,
                    "num_candidates": len(search.candidates),
                },
            )

        if self.now() - search.generated_at > self.max_search_age:
            raise StaleSearchResult(
                "The search result from the waitlist is more than "
                f"{int(self.max_search_age.total_seconds() // 3600)} hours old. "
                "Please search again."
            )

        return search

    async def call_until_filled(
        self, candidates: List[WaitlistCandidate], target_confirmations: int
    ) -> List[WaitlistCandidate]:
        """Call candidates in order, stopping once enough have confirmed."""
        confirmed: List[WaitlistCandidate] = []

        for index, candidate in enumerate(candidates):
            logger.info(
                f"[BATCH] Calling candidate {index + 1}/{len(candidates)} - "
                f"WaitlistKey: {candidate.waitlist_record_key}"
            )
            try:
                outcome = await self.call_manager.place_and_await_confirmation(
                    candidate.phone_number,
                    candidate.waitlist_record_key,
                )
            except GatewayError as e:
                logger.warning(
                    f"[BATCH] Skipping candidate after gateway error - "
                    f"WaitlistKey: {candidate.waitlist_record_key}, Error: {e.message}"
                )
                continue

            if outcome == CallOutcome.CONFIRMED:
                confirmed.append(candidate)
                if len(confirmed) >= target_confirmations:
                    break

        return confirmed

    async def run_batch(self, admin_uid: str, target_confirmations: int) -> BatchResult:
        """
        Fill up to ``target_confirmations`` spots from the admin's search result.

        Args:
            admin_uid: Activated admin running the batch
            target_confirmations: Number of spots to fill

        Returns:
            The confirmed candidates, in confirmation order

        Raises:
            InvalidArgument: no search result, or target out of range
            StaleSearchResult: the search result is too old
        """
        search = self.validate(
            await self.search_results.get_search_result(admin_uid), target_confirmations
        )

        candidates = fisher_yates_shuffle(list(search.candidates), self.rng)
        logger.info(
            f"[BATCH] Starting batch - Admin: {admin_uid}, "
            f"Candidates: {len(candidates)}, Target: {target_confirmations}"
        )

        confirmed = await self.call_until_filled(candidates, target_confirmations)

        batch = BatchResult(generated_at=self.now(), confirmed_list=confirmed)
        await self.search_results.save_confirmed_list(admin_uid, batch)

        logger.info(
            f"[BATCH] Batch finished - Admin: {admin_uid}, "
            f"Confirmed: {len(confirmed)}/{target_confirmations}"
        )
        return batch
