"""Gossip validation for BEEFY votes: keep only a bounded number of recent rounds live."""

from __future__ import annotations

import enum
import hashlib
import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger("beefy")

# Limit BEEFY gossip by keeping only a bound number of voting rounds alive.
MAX_LIVE_GOSSIP_ROUNDS = 3

# Timeout, in seconds, for rebroadcasting messages.
REBROADCAST_AFTER = 60.0 * 5

_MASK64 = (1 << 64) - 1
_P1 = 11400714785074694791
_P2 = 14029467366897019727
_P3 = 1609587929392839161
_P4 = 9650029242287828579
_P5 = 2870177450012600261


def _rotl(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (64 - bits))) & _MASK64


def _xxh_round(acc: int, lane: int) -> int:
    acc = (acc + lane * _P2) & _MASK64
    return (_rotl(acc, 31) * _P1) & _MASK64


def _xxh_merge(acc: int, value: int) -> int:
    acc ^= _xxh_round(0, value)
    return (acc * _P1 + _P4) & _MASK64


def _xxh64(data: bytes, seed: int = 0) -> int:
    length = len(data)
    pos = 0
    if length >= 32:
        v1 = (seed + _P1 + _P2) & _MASK64
        v2 = (seed + _P2) & _MASK64
        v3 = seed & _MASK64
        v4 = (seed - _P1) & _MASK64
        while pos + 32 <= length:
            v1 = _xxh_round(v1, int.from_bytes(data[pos:pos + 8], "little"))
            v2 = _xxh_round(v2, int.from_bytes(data[pos + 8:pos + 16], "little"))
            v3 = _xxh_round(v3, int.from_bytes(data[pos + 16:pos + 24], "little"))
            v4 = _xxh_round(v4, int.from_bytes(data[pos + 24:pos + 32], "little"))
            pos += 32
        acc = (_rotl(v1, 1) + _rotl(v2, 7) + _rotl(v3, 12) + _rotl(v4, 18)) & _MASK64
        for lane in (v1, v2, v3, v4):
            acc = _xxh_merge(acc, lane)
    else:
        acc = (seed + _P5) & _MASK64

    acc = (acc + length) & _MASK64

    while pos + 8 <= length:
        acc ^= _xxh_round(0, int.from_bytes(data[pos:pos + 8], "little"))
        acc = (_rotl(acc, 27) * _P1 + _P4) & _MASK64
        pos += 8
    if pos + 4 <= length:
        acc ^= (int.from_bytes(data[pos:pos + 4], "little") * _P1) & _MASK64
        acc = (_rotl(acc, 23) * _P2 + _P3) & _MASK64
        pos += 4
    for byte in data[pos:]:
        acc ^= (byte * _P5) & _MASK64
        acc = (_rotl(acc, 11) * _P1) & _MASK64

    acc ^= acc >> 33
    acc = (acc * _P2) & _MASK64
    acc ^= acc >> 29
    acc = (acc * _P3) & _MASK64
    acc ^= acc >> 32
    return acc


def _twox_64(data: bytes) -> bytes:
    """8-byte xxHash64 digest (seed 0), little-endian."""
    return _xxh64(bytes(data)).to_bytes(8, "little")


def _topic() -> bytes:
    return hashlib.blake2b(b"beefy", digest_size=32).digest()


class ValidationResult(enum.Enum):
    """Outcome of validating a gossip message."""

    PROCESS_AND_KEEP = "process_and_keep"
    DISCARD = "discard"


class MessageIntent(enum.Enum):
    """Why a message is about to be sent to a peer."""

    BROADCAST = "broadcast"
    FORCED_BROADCAST = "forced_broadcast"
    PERIODIC_REBROADCAST = "periodic_rebroadcast"


class GossipValidator:
    """Validates BEEFY votes and limits gossip to the most recent voting rounds.

    Messages from the last ``MAX_LIVE_GOSSIP_ROUNDS`` noted rounds flow; everything
    older is rejected or expired. All messages share a single topic.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.topic = _topic()
        self._clock = clock
        self._lock = threading.RLock()
        self._known_votes: dict[int, set[bytes]] = {}
        self._next_rebroadcast = clock() + REBROADCAST_AFTER

    def note_round(self, round: int) -> None:
        """Keep ``round`` live, retaining only the most recent rounds."""
        logger.debug("About to note round #%s", round)
        with self._lock:
            self._known_votes.setdefault(round, set())
            if len(self._known_votes) > MAX_LIVE_GOSSIP_ROUNDS:
                del self._known_votes[min(self._known_votes)]

    def is_live(self, round: int) -> bool:
        """True if ``round`` is noted, or newer than every noted round.

        With nothing noted yet every round is live.
        """
        with self._lock:
            if not self._known_votes:
                return True
            return round in self._known_votes or round > max(self._known_votes)

    def is_known(self, round: int, message_hash: bytes) -> bool:
        """True if a verified message with ``message_hash`` was seen for ``round``."""
        with self._lock:
            return bytes(message_hash) in self._known_votes.get(round, ())

    def live_rounds(self) -> dict[int, frozenset[bytes]]:
        """Snapshot of the live rounds and the message hashes known for each."""
        with self._lock:
            return {r: frozenset(h) for r, h in sorted(self._known_votes.items())}

    def validate(
        self,
        round: int | None,
        message: bytes,
        verify: Callable[[bytes], bool],
    ) -> ValidationResult:
        """Validate a vote ``message`` for ``round``.

        ``round`` is None when the message could not be decoded. ``verify`` checks
        the signature and is skipped for messages already verified.
        """
        if round is None:
            return ValidationResult.DISCARD
        message = bytes(message)
        message_hash = _twox_64(message)

        with self._lock:
            if not self.is_live(round):
                return ValidationResult.DISCARD
            if self.is_known(round, message_hash):
                return ValidationResult.PROCESS_AND_KEEP

        if verify(message):
            with self._lock:
                known = self._known_votes.get(round)
                if known is not None:
                    known.add(message_hash)
            return ValidationResult.PROCESS_AND_KEEP

        logger.debug("Bad signature on message for round #%s", round)
        return ValidationResult.DISCARD

    def message_expired(self, round: int | None) -> bool:
        """True if a message for ``round`` (None if undecodable) should be dropped."""
        if round is None:
            return True
        expired = not self.is_live(round)
        logger.debug("Message for round #%s expired: %s", round, expired)
        return expired

    def message_allowed(self, intent: MessageIntent, round: int | None) -> bool:
        """True if a message for ``round`` may be sent with ``intent``.

        Periodic rebroadcasts are allowed at most once every ``REBROADCAST_AFTER``
        seconds.
        """
        with self._lock:
            now = self._clock()
            if now >= self._next_rebroadcast:
                self._next_rebroadcast = now + REBROADCAST_AFTER
                do_rebroadcast = True
            else:
                do_rebroadcast = False

        if intent is MessageIntent.PERIODIC_REBROADCAST:
            return do_rebroadcast
        if round is None:
            return True
        allowed = self.is_live(round)
        logger.debug("Message for round #%s allowed: %s", round, allowed)
        return allowed