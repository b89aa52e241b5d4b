"""Choice of the next block a BEEFY node should vote on."""

from __future__ import annotations

import logging

logger = logging.getLogger("beefy")

_U32_MAX = (1 << 32) - 1


def next_power_of_two(value: int) -> int:
    """Smallest power of two greater than or equal to ``value``; 1 for 0."""
    if value < 0:
        raise ValueError(f"Expected a non-negative integer, got {value}")
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def vote_target(best_grandpa: int, best_beefy: int, min_delta: int) -> int:
    """Block number to vote on next.

    The gap between the best GRANDPA-finalized block and the best BEEFY block
    is rounded up to a power of two, but never below ``min_delta``.
    """
    if best_grandpa < 0 or best_beefy < 0 or min_delta < 0:
        raise ValueError("Block numbers and min_delta must be non-negative")
    diff = min(max(best_grandpa - best_beefy, 0), _U32_MAX)
    step = next_power_of_two(diff)
    target = best_beefy + max(min_delta, step)
    logger.debug(
        "vote target - diff: %s, next_power_of_two: %s, target block: #%s",
        diff,
        step,
        target,
    )
    return target


def should_vote_on(
    number: int, best_grandpa: int, best_beefy: int | None, min_delta: int
) -> bool:
    """True if block ``number`` is the one to vote on.

    Without a best BEEFY block there is nothing to vote on yet.
    """
    if best_beefy is None:
        logger.debug("Missing best BEEFY block - won't vote for: %s", number)
        return False
    target = vote_target(best_grandpa, best_beefy, min_delta)
    logger.debug("should_vote_on: #%s, next_block_to_vote_on: #%s", number, target)
    return number == target