"""Admin identity, credentials and custom claims."""
import hashlib
import logging
import secrets
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.models import AdminUser

logger = logging.getLogger(__name__)

PASSWORD_ALGORITHM = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 260000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash a password for storage as ``algorithm$iterations$salt$digest``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt.encode(), PASSWORD_ITERATIONS
    ).hex()
    return f"{PASSWORD_ALGORITHM}${PASSWORD_ITERATIONS}${salt}${digest}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash."""
    if not password or not password_hash:
        return False
    try:
        algorithm, iterations, salt, digest = password_hash.split("$")
        iterations = int(iterations)
    except ValueError:
        return False
    if algorithm != PASSWORD_ALGORITHM:
        return False

    candidate = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations).hex()
    return secrets.compare_digest(candidate, digest)


class AdminPersistenceService:
    """Service for admin accounts and their custom claims."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_admin(self, uid: str) -> Optional[AdminUser]:
        """Get admin by identity UID."""
        result = await self.db.execute(select(AdminUser).where(AdminUser.uid == uid))
        return result.scalar_one_or_none()

    async def create_admin(
        self,
        uid: str,
        email: Optional[str] = None,
        could_see_admin: bool = False,
        admin_activated: bool = False,
        password: Optional[str] = None,
    ) -> AdminUser:
        """Create an admin record or return the existing one unchanged."""
        existing = await self.get_admin(uid)
        if existing:
            return existing

        admin = AdminUser(
            uid=uid,
            email=email,
            password_hash=hash_password(password) if password else None,
            could_see_admin=could_see_admin,
            admin_activated=admin_activated,
        )
        self.db.add(admin)
        await self.db.commit()
        await self.db.refresh(admin)

        logger.info(f"[ADMINS] Created admin - UID: {uid}, Activated: {admin_activated}")
        return admin

    async def set_password(self, uid: str, password: str) -> bool:
        """Replace an admin's password. Returns False if the admin does not exist."""
        admin = await self.get_admin(uid)
        if admin is None:
            return False

        admin.password_hash = hash_password(password)
        await self.db.commit()
        return True

    async def set_claims(self, uid: str, could_see_admin: bool, admin_activated: bool) -> bool:
        """Update an admin's claims. Returns False if the admin does not exist."""
        admin = await self.get_admin(uid)
        if admin is None:
            return False

        admin.could_see_admin = could_see_admin
        admin.admin_activated = admin_activated
        await self.db.commit()
        return True

    async def authenticate(self, uid: str, password: str) -> Optional[AdminUser]:
        """Return the admin when ``password`` matches the UID's own credentials."""
        admin = await self.get_admin(uid)
        if admin is None or not verify_password(password, admin.password_hash):
            return None
        return admin

    async def is_activated_admin(self, uid: str) -> bool:
        """Whether the UID carries both admin claims."""
        admin = await self.get_admin(uid)
        return bool(admin and admin.could_see_admin and admin.admin_activated)
