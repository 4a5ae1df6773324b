"""Removal of permanently invalid device tokens after a dispatch.

Cleanup is best-effort: a failure for one owner is logged and the remaining
owners are still processed. Nothing raised here reaches the caller.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Sequence

from .ports import DeliveryOutcome, UserDirectory
from .token_aggregator import TokenBatch

logger = logging.getLogger(__name__)

PERMANENT_FAILURE_CODES = frozenset({
    "unregistered",
    "not-registered",
    "sender-id-mismatch",
    "invalid-registration-token",
    "registration-token-not-registered",
})

PERMANENT_FAILURE_PATTERN = re.compile(
    r"registration-token|NotRegistered|Unregistered|MismatchSenderId|"
    r"SenderIdMismatch|InvalidToken|InvalidRegistration",
    re.IGNORECASE,
)


@dataclass
class CleanupSummary:
    """What the reconciler found and removed."""

    permanent: list[str] = field(default_factory=list)
    transient: list[str] = field(default_factory=list)
    removed: dict[str, list[str]] = field(default_factory=dict)
    failed_owners: list[str] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return sum(len(tokens) for tokens in self.removed.values())


def is_permanent_failure(outcome: DeliveryOutcome) -> bool:
    """True when a failed outcome means the registration is gone for good."""
    if outcome.success:
        return False
    if outcome.error_code and outcome.error_code.lower() in PERMANENT_FAILURE_CODES:
        return True
    for text in (outcome.error_code, outcome.error_message):
        if text and PERMANENT_FAILURE_PATTERN.search(text):
            return True
    return False


async def reconcile(
    batch: TokenBatch,
    outcomes: Sequence[DeliveryOutcome],
    directory: UserDirectory,
) -> CleanupSummary:
    """
    Remove tokens whose delivery failed permanently from their owners.

    One removal update is issued per affected owner.
    """
    summary = CleanupSummary()
    by_owner: dict[str, list[str]] = {}

    for outcome in outcomes:
        if outcome.success:
            continue
        if not is_permanent_failure(outcome):
            summary.transient.append(outcome.token)
            continue
        summary.permanent.append(outcome.token)
        owner = batch.owner_of(outcome.token)
        if owner is None:
            logger.warning(f"No owner recorded for stale token {outcome.token[:12]}...")
            continue
        by_owner.setdefault(owner, []).append(outcome.token)

    for owner, tokens in by_owner.items():
        try:
            await directory.remove_tokens(owner, tokens)
        except Exception as e:
            summary.failed_owners.append(owner)
            logger.warning(f"Token cleanup failed for {owner}: {e}")
            continue
        summary.removed[owner] = tokens
        logger.info(f"Removed {len(tokens)} stale token(s) for {owner}")

    return summary
