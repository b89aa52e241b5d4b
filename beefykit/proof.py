"""Merkle proof generation for the binary Merkle tree."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .merkle import Hasher, _as_bytes, _merkelize, keccak256

T = TypeVar("T")


@dataclass
class MerkleProof(Generic[T]):
    """A proof for one leaf, with everything needed to verify it later."""

    root: bytes
    proof: list[bytes] = field(default_factory=list)
    number_of_leaves: int = 0
    leaf_index: int = 0
    leaf: T | None = None


class _ProofCollection:
    """Collects the sibling hashes on the path from one leaf to the root."""

    def __init__(self, position: int) -> None:
        self.position = position
        self.proof: list[bytes] = []

    def move_up(self) -> None:
        self.position //= 2

    def visit(self, index: int, left: bytes | None, right: bytes | None) -> None:
        if self.position == index and right is not None:
            self.proof.append(right)
        if self.position == index + 1 and left is not None:
            self.proof.append(left)


def merkle_proof(
    leaves: Iterable[T], leaf_index: int, hasher: Hasher = keccak256
) -> MerkleProof[T]:
    """Build the tree from ``leaves`` and return the proof for ``leaf_index``.

    Raises ``IndexError`` if ``leaf_index`` does not name a leaf.
    """
    items = list(leaves)
    if not 0 <= leaf_index < len(items):
        raise IndexError(
            f"Requested leaf_index {leaf_index} is out of range for {len(items)} leaves"
        )

    collector = _ProofCollection(leaf_index)
    root = _merkelize((hasher(_as_bytes(item)) for item in items), hasher, collector)
    return MerkleProof(
        root=root,
        proof=collector.proof,
        number_of_leaves=len(items),
        leaf_index=leaf_index,
        leaf=items[leaf_index],
    )