"""Database models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ActiveCall(Base):
    """Outstanding confirmation call, keyed by Twilio call SID."""

    __tablename__ = "active_calls"

    call_sid = Column(String, primary_key=True, index=True)
    user_number = Column(String, nullable=False)
    waitlist_key = Column(String, nullable=False)
    user_input = Column(String, default="unknown", nullable=False)  # unknown, confirmed, cancelled
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AdminUser(Base):
    """Admin identity with its custom claims."""

    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, nullable=True)
    password_hash = Column(String, nullable=True)  # pbkdf2_sha256$iterations$salt$digest; no login when unset
    could_see_admin = Column(Boolean, default=False, nullable=False)
    admin_activated = Column(Boolean, default=False, nullable=False)


class WaitlistSearchResult(Base):
    """Latest waitlist search result and confirmed list for one admin."""

    __tablename__ = "waitlist_search_results"

    admin_uid = Column(String, primary_key=True, index=True)
    generated_at = Column(DateTime, nullable=False)
    result = Column(JSON, nullable=False, default=list)  # List of candidate dicts
    confirmed_generated_at = Column(DateTime, nullable=True)
    cached_confirmed_list = Column(JSON, nullable=True)
