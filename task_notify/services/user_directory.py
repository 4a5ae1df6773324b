"""SQL-backed user directory."""

import logging
from typing import Any, Optional, Sequence

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.user import UserRecord

logger = logging.getLogger(__name__)

# Fields that users_where may filter on with an equality condition
_QUERYABLE_FIELDS = frozenset({"id", "role", "pickup_opt_in", "display_name"})


class SqlUserDirectory:
    """
    User directory backed by the Users table.

    Role normalization is not pushed down here: callers filter on the
    canonical role after loading.
    """

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        result = await self._db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return UserRecord.model_validate(user)

    async def users_where(self, **equals: Any) -> list[UserRecord]:
        """
        Return users matching every equality condition, ordered by id.

        Raises:
            ValueError: If a condition names an unsupported field
        """
        unknown = set(equals) - _QUERYABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported user filter field(s): {sorted(unknown)}")

        stmt = select(User)
        for field, value in equals.items():
            stmt = stmt.where(getattr(User, field) == value)
        stmt = stmt.order_by(User.id)

        result = await self._db.execute(stmt)
        return [UserRecord.model_validate(user) for user in result.scalars().all()]

    async def remove_tokens(self, user_id: str, tokens: Sequence[str]) -> int:
        """
        Remove tokens from a user's token list and commit.

        Every occurrence of each token is removed. Rolls back and re-raises
        on failure so one owner's error leaves the session usable.

        Returns:
            int: Number of entries removed
        """
        doomed = set(tokens)
        try:
            result = await self._db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
            if user is None:
                return 0
            current = list(user.fcm_tokens or [])
            kept = [t for t in current if t not in doomed]
            removed = len(current) - len(kept)
            if removed:
                # Reassign so the JSON column is flagged dirty
                user.fcm_tokens = kept
                await self._db.commit()
            return removed
        except Exception:
            await self._db.rollback()
            raise


def get_user_directory(db: AsyncSession = Depends(get_db)) -> SqlUserDirectory:
    """FastAPI dependency for the request-scoped user directory."""
    return SqlUserDirectory(db)
