"""Expansion of a recipient set into a deduplicated device token batch."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..utils.ordered_set import OrderedSet
from .ports import UserDirectory
from .recipient_resolver import RecipientSet

logger = logging.getLogger(__name__)


@dataclass
class TokenBatch:
    """
    Ordered unique tokens plus the user each token is attributed to.

    Every token in ``tokens`` has exactly one entry in ``owners``.
    """

    tokens: OrderedSet = field(default_factory=OrderedSet)
    owners: dict[str, str] = field(default_factory=dict)

    def add(self, token: str, owner: str) -> bool:
        """Add token for owner unless already present (first owner wins)."""
        if not self.tokens.add(token):
            return False
        self.owners[token] = owner
        return True

    def discard(self, token: str) -> bool:
        if not self.tokens.discard(token):
            return False
        self.owners.pop(token, None)
        return True

    def difference_update(self, tokens: Iterable[str]) -> list[str]:
        """Remove every given token; return the ones actually removed."""
        removed = self.tokens.difference_update(tokens)
        for token in removed:
            self.owners.pop(token, None)
        return removed

    def owner_of(self, token: str) -> Optional[str]:
        return self.owners.get(token)

    def to_list(self) -> list[str]:
        return self.tokens.to_list()

    def __len__(self) -> int:
        return len(self.tokens)

    def __bool__(self) -> bool:
        return bool(self.tokens)

    def __iter__(self):
        return iter(self.tokens)


async def aggregate_tokens(
    recipients: RecipientSet,
    author_id: Optional[str],
    directory: UserDirectory,
) -> TokenBatch:
    """
    Collect device tokens for every recipient, then drop the author's tokens.

    Recipients are processed one at a time in order so that a token shared by
    several users is always attributed to the earliest one. The author's
    tokens are subtracted even when the author was never a recipient.
    """
    batch = TokenBatch()

    for user_id in recipients:
        user = recipients.records.get(user_id)
        if user is None:
            user = await directory.get_user(user_id)
        if user is None:
            logger.warning(f"Recipient {user_id} not found in user directory, skipping")
            continue
        for token in user.fcm_tokens:
            if token:
                batch.add(token, user.id)

    if author_id:
        author = await directory.get_user(author_id)
        if author is not None:
            removed = batch.difference_update(t for t in author.fcm_tokens if t)
            if removed:
                logger.info(f"Removed {len(removed)} author token(s) from batch for {author_id}")

    return batch
