"""Authentication endpoints and utilities."""
from fastapi import APIRouter, Request, Response, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging
import secrets
from datetime import datetime, timedelta

from app.core.exceptions import PermissionDenied, Unauthenticated
from app.db.database import get_db
from app.services.persistence.admins import AdminPersistenceService

logger = logging.getLogger(__name__)

router = APIRouter()

# In-memory session storage (use Redis in production)
_sessions: dict[str, dict] = {}


class LoginRequest(BaseModel):
    """Login request model."""
    uid: str
    password: str


class SessionInfo(BaseModel):
    """Session information response."""
    authenticated: bool
    uid: Optional[str] = None
    expires_at: Optional[str] = None


def create_session_token() -> str:
    """Generate a secure session token."""
    return secrets.token_urlsafe(32)


def create_session(response: Response, uid: str) -> str:
    """Create a new session for ``uid`` and set cookie."""
    session_token = create_session_token()
    expires_at = datetime.utcnow() + timedelta(hours=24)

    _sessions[session_token] = {
        "uid": uid,
        "expires_at": expires_at,
        "created_at": datetime.utcnow()
    }

    # Set HTTP-only cookie
    response.set_cookie(
        key="session_token",
        value=session_token,
        httponly=True,
        max_age=86400,  # 24 hours
        samesite="lax"
    )

    return session_token


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from cookie."""
    return request.cookies.get("session_token")


def verify_session(session_token: Optional[str]) -> Optional[str]:
    """Return the signed-in UID if the session token is valid and not expired."""
    if not session_token:
        return None

    session = _sessions.get(session_token)
    if not session:
        return None

    # Check expiration
    if datetime.utcnow() > session["expires_at"]:
        del _sessions[session_token]
        return None

    return session.get("uid")


async def require_auth(request: Request) -> str:
    """Dependency to require an authenticated caller. Returns the caller UID."""
    uid = verify_session(get_session_token(request))
    if not uid:
        raise Unauthenticated("The function must be called while authenticated.")
    return uid


async def require_activated_admin(
    uid: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
) -> str:
    """Dependency to require an activated admin. Returns the admin UID."""
    if not await AdminPersistenceService(db).is_activated_admin(uid):
        raise PermissionDenied("You are not an activated admin.")
    return uid


@router.post("/api/auth/login")
async def login(login_req: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Login endpoint. The password must belong to the admin named by ``uid``."""
    admin = await AdminPersistenceService(db).authenticate(login_req.uid, login_req.password)
    if admin is None:
        logger.warning(f"[AUTH] Failed login - UID: {login_req.uid}")
        raise Unauthenticated("Invalid credentials")

    # Create session
    session_token = create_session(response, admin.uid)

    return {
        "success": True,
        "message": "Login successful",
        "expires_at": _sessions[session_token]["expires_at"].isoformat()
    }


@router.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    """Logout endpoint."""
    session_token = get_session_token(request)
    if session_token and session_token in _sessions:
        del _sessions[session_token]

    # Clear cookie
    response.delete_cookie("session_token")

    return {"success": True, "message": "Logged out"}


@router.get("/api/auth/session")
async def get_session_info(request: Request) -> SessionInfo:
    """Get current session information."""
    session_token = get_session_token(request)

    uid = verify_session(session_token)
    if uid:
        session = _sessions[session_token]
        return SessionInfo(
            authenticated=True,
            uid=uid,
            expires_at=session["expires_at"].isoformat()
        )

    return SessionInfo(authenticated=False)
