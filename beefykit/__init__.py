"""BEEFY utilities: Keccak binary Merkle trees and proofs, authority keys, SCALE helpers, vote rounds, vote targets and gossip validation."""

__version__ = "0.1.0"

__all__ = [
    "authority",
    "cli",
    "gossip",
    "merkle",
    "proof",
    "round",
    "scale",
    "voting",
]