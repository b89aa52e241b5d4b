"""Tracking of votes in BEEFY voting rounds."""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("beefy")

Vote = tuple[Any, Any]


@dataclass(frozen=True)
class ValidatorSet:
    """An ordered set of validator public keys with its set id."""

    validators: tuple = field(default_factory=tuple)
    id: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "validators", tuple(self.validators))


def threshold(authorities: int) -> int:
    """Number of votes needed to conclude a round among ``authorities`` validators."""
    faulty = max(authorities - 1, 0) // 3
    return authorities - faulty


class _RoundTracker:
    def __init__(self) -> None:
        self.votes: list[Vote] = []

    def add_vote(self, vote: Vote) -> bool:
        if vote in self.votes:
            return False
        self.votes.append(vote)
        return True

    def is_done(self, needed: int) -> bool:
        return len(self.votes) >= needed


class Rounds:
    """Votes for each ``(payload, block_number)`` round under one validator set."""

    def __init__(self, validator_set: ValidatorSet | None = None) -> None:
        self._rounds: dict[Hashable, _RoundTracker] = {}
        self._validator_set = validator_set if validator_set is not None else ValidatorSet()

    def validator_set_id(self) -> int:
        """Id of the validator set these rounds belong to."""
        return self._validator_set.id

    def validators(self) -> list:
        """A copy of the validator public keys."""
        return list(self._validator_set.validators)

    def add_vote(self, round: tuple, vote: Vote) -> bool:
        """Record ``vote`` for ``round``; return False if it was already recorded."""
        tracker = self._rounds.setdefault(tuple(round), _RoundTracker())
        return tracker.add_vote(tuple(vote))

    def is_done(self, round: tuple) -> bool:
        """True once ``round`` has gathered enough votes."""
        tracker = self._rounds.get(tuple(round))
        done = tracker is not None and tracker.is_done(
            threshold(len(self._validator_set.validators))
        )
        logger.debug("Round #%s done: %s", round[1], done)
        return done

    def drop(self, round: tuple) -> list | None:
        """Forget ``round`` and return one signature (or None) per validator, in order.

        Returns None if the round is unknown.
        """
        logger.debug("About to drop round #%s", round[1])
        tracker = self._rounds.pop(tuple(round), None)
        if tracker is None:
            return None
        return [
            next((sig for who, sig in tracker.votes if who == authority), None)
            for authority in self._validator_set.validators
        ]