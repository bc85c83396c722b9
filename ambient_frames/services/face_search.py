"""
Face search over uploaded event photos.

Only a placeholder engine exists: `ReturnRecent` hands back the most recently
uploaded photos without looking at the probe image. A real biometric backend
can be plugged in by implementing `MatchEngine`.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ambient_frames.models import Photo

logger = logging.getLogger(__name__)

DEFAULT_MATCH_LIMIT = 5


class MatchEngine(ABC):
    @abstractmethod
    async def find_matches(
        self,
        db: AsyncSession,
        probe: Optional[bytes],
        limit: int = DEFAULT_MATCH_LIMIT,
    ) -> List[Photo]:
        """Return photos that match the face in `probe`."""


class ReturnRecent(MatchEngine):
    """Returns the latest uploads regardless of the probe."""

    async def find_matches(
        self,
        db: AsyncSession,
        probe: Optional[bytes],
        limit: int = DEFAULT_MATCH_LIMIT,
    ) -> List[Photo]:
        result = await db.execute(
            select(Photo).order_by(Photo.uploaded_at.desc()).limit(limit)
        )
        photos = list(result.scalars().all())
        logger.info(f"Face search returned {len(photos)} recent photo(s)")
        return photos


_engine = ReturnRecent()


def get_match_engine() -> MatchEngine:
    return _engine
