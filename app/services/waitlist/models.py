"""Waitlist models."""
from datetime import datetime
from typing import List
from pydantic import BaseModel, ConfigDict, Field


class WaitlistCandidate(BaseModel):
    """Waitlist entrant who can be offered a slot."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    phone_number: str = Field(alias="phoneNumber")
    waitlist_record_key: str = Field(alias="waitlistRecordKey")


class SearchResult(BaseModel):
    """Candidates found by the waitlist search for one admin."""

    generated_at: datetime
    candidates: List[WaitlistCandidate] = []


class BatchResult(BaseModel):
    """Candidates who confirmed, in the order they confirmed."""

    generated_at: datetime
    confirmed_list: List[WaitlistCandidate] = []
