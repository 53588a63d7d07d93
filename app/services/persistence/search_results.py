"""Waitlist search result persistence service."""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.models import WaitlistSearchResult
from app.services.waitlist.models import BatchResult, SearchResult, WaitlistCandidate


class SearchResultPersistenceService:
    """Service for reading search results and caching confirmed lists."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_row(self, admin_uid: str) -> Optional[WaitlistSearchResult]:
        result = await self.db.execute(
            select(WaitlistSearchResult).where(WaitlistSearchResult.admin_uid == admin_uid)
        )
        return result.scalar_one_or_none()

    async def get_search_result(self, admin_uid: str) -> Optional[SearchResult]:
        """Get the admin's latest waitlist search result."""
        row = await self._get_row(admin_uid)
        if row is None:
            return None
        return SearchResult(
            generated_at=row.generated_at,
            candidates=[WaitlistCandidate.model_validate(c) for c in row.result or []],
        )

    async def save_search_result(
        self, admin_uid: str, candidates: List[WaitlistCandidate], generated_at: Optional[datetime] = None
    ) -> SearchResult:
        """Store a search result, replacing the previous one and its confirmed list."""
        generated_at = generated_at or datetime.utcnow()
        row = await self._get_row(admin_uid)
        if row is None:
            row = WaitlistSearchResult(admin_uid=admin_uid)
            self.db.add(row)
        row.generated_at = generated_at
        row.result = [c.model_dump(by_alias=True) for c in candidates]
        row.confirmed_generated_at = None
        row.cached_confirmed_list = None
        await self.db.commit()
        return SearchResult(generated_at=generated_at, candidates=list(candidates))

    async def save_confirmed_list(self, admin_uid: str, batch: BatchResult) -> None:
        """Overwrite the admin's cached confirmed list."""
        row = await self._get_row(admin_uid)
        if row is None:
            raise LookupError(f"No search result stored for admin {admin_uid}")
        row.confirmed_generated_at = batch.generated_at
        row.cached_confirmed_list = [c.model_dump(by_alias=True) for c in batch.confirmed_list]
        await self.db.commit()

    async def get_confirmed_list(self, admin_uid: str) -> Optional[BatchResult]:
        """Get the admin's cached confirmed list."""
        row = await self._get_row(admin_uid)
        if row is None or row.cached_confirmed_list is None:
            return None
        return BatchResult(
            generated_at=row.confirmed_generated_at,
            confirmed_list=[WaitlistCandidate.model_validate(c) for c in row.cached_confirmed_list],
        )
