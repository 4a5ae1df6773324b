"""Single-call multicast dispatch of a notification to a token batch."""

import logging
from dataclasses import dataclass, field

from ..exceptions import DeliveryError
from ..schemas.notification import NotificationPayload
from .ports import DeliveryOutcome, PushClient
from .token_aggregator import TokenBatch

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Counts and per-token outcomes of one dispatch."""

    success_count: int = 0
    failure_count: int = 0
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def tokens_tried(self) -> int:
        return len(self.outcomes)


async def dispatch(
    batch: TokenBatch,
    payload: NotificationPayload,
    push_client: PushClient,
) -> DispatchResult:
    """
    Send the payload to every token in the batch with one multicast call.

    An empty batch returns a zero result without contacting the provider.

    Raises:
        DeliveryError: If the provider call fails as a whole
    """
    if not batch:
        return DispatchResult()

    tokens = batch.to_list()
    try:
        outcomes = await push_client.send_multicast(tokens, payload)
    except Exception as e:
        kind = getattr(e, "code", None) or type(e).__name__
        logger.error(f"Multicast send failed for {len(tokens)} token(s): {kind}: {e}")
        raise DeliveryError(str(e) or type(e).__name__, kind=str(kind))

    success_count = sum(1 for o in outcomes if o.success)
    result = DispatchResult(
        success_count=success_count,
        failure_count=len(outcomes) - success_count,
        outcomes=list(outcomes),
    )
    logger.info(
        f"Multicast sent: {result.success_count} ok, {result.failure_count} failed "
        f"of {len(tokens)} token(s)"
    )
    return result
