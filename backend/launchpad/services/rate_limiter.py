"""
Anti-bot throttle for curve trades.

A curve's creator may move at most 0.5% of the token supply per elapsed hour
since their previous trade on that curve, never more than 0.5% at once.
Everyone else may move up to the whole supply. The allowance is computed in
exact integer arithmetic (parts-per-million of supply, pro-rated per second).
"""

import logging

from launchpad.core.constants import (
    CREATOR_ALLOWANCE_PPM_PER_HOUR,
    PARTS_PER_MILLION,
    SECONDS_PER_HOUR,
)
from launchpad.core.errors import RateLimited

logger = logging.getLogger(__name__)


def max_transfer_amount(
    token_total_supply: int, last_transfer_timestamp: int, now: int, is_creator: bool
) -> int:
    """Largest amount the actor may move right now."""
    if not is_creator:
        return token_total_supply

    elapsed = max(0, now - last_transfer_timestamp)
    # supply * min(elapsed/3600 * 5000ppm, 5000ppm), floored once at the end
    allowance_numerator = min(elapsed, SECONDS_PER_HOUR) * CREATOR_ALLOWANCE_PPM_PER_HOUR
    return (token_total_supply * allowance_numerator) // (
        SECONDS_PER_HOUR * PARTS_PER_MILLION
    )


def check_and_update(record, actor_id, curve, requested_amount: int, now: int) -> None:
    """
    Enforce the allowance for `actor_id` trading `requested_amount` on `curve`.

    `record` is the actor's UserTransferData for this curve. On success its
    last_transfer_timestamp is moved to `now` for every actor, creator or not.
    Raises RateLimited without touching the record otherwise.
    """
    is_creator = curve.creator_id == actor_id
    # TODO: non-creator timestamps are stamped but never read; decide whether
    # to skip the write for them.
    max_allowed = max_transfer_amount(
        curve.token_total_supply,
        record.last_transfer_timestamp or 0,
        now,
        is_creator,
    )

    if requested_amount > max_allowed:
        logger.warning(
            f"Rate limited: requested {requested_amount}, allowed {max_allowed}"
        )
        raise RateLimited(requested_amount=requested_amount, max_allowed=max_allowed)

    record.last_transfer_timestamp = now
