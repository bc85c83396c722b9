"""
Password authentication utilities for admin access.
Uses bcrypt for secure password hashing.
"""
import logging
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ambient_frames.models import Admin

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hashed password.
    Malformed hashes and over-long passwords count as a mismatch.
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


async def authenticate_admin(db: AsyncSession, username: str, password: str) -> Optional[Admin]:
    """
    Look up an admin by username and check the password.

    Returns:
        The Admin row if the credentials match, None otherwise
    """
    result = await db.execute(select(Admin).where(Admin.username == username).limit(1))
    admin = result.scalar_one_or_none()

    if admin is None:
        logger.info(f"Login attempt for unknown admin '{username}'")
        return None

    if not verify_password(password, admin.password_hash):
        logger.info(f"Invalid password for admin '{username}'")
        return None

    return admin
