"""Binary Merkle tree compatible with Ethereum bridge contracts.

Leaves are hashed with the same hasher as inner nodes. Inner nodes are the
hash of the concatenated child hashes; no sorting is performed. When a row
has an odd number of nodes, the last one is promoted to the row above.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Protocol, Union

from Crypto.Hash import keccak

HASH_LENGTH = 32
EMPTY_ROOT = bytes(HASH_LENGTH)

Hasher = Callable[[bytes], bytes]


def keccak256(data: bytes) -> bytes:
    """Return the Keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


@dataclass(frozen=True)
class LeafHash:
    """A leaf given by its hash rather than by its content."""

    value: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bytes(self.value))
        if len(self.value) != HASH_LENGTH:
            raise ValueError(f"Leaf hash must be {HASH_LENGTH} bytes, got {len(self.value)}")


LeafLike = Union[bytes, bytearray, memoryview, str, LeafHash]


def _as_bytes(item: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(item, str):
        return item.encode("utf-8")
    return bytes(item)


def _as_hash(item: bytes, what: str) -> bytes:
    item = bytes(item)
    if len(item) != HASH_LENGTH:
        raise ValueError(f"{what} must be {HASH_LENGTH} bytes, got {len(item)}")
    return item


class _Visitor(Protocol):
    def move_up(self) -> None:
        """Called when moving one level up in the tree."""

    def visit(self, index: int, left: bytes | None, right: bytes | None) -> None:
        """Called for every pair of nodes; ``index`` is the index of ``left``."""


class _NoopVisitor:
    def move_up(self) -> None:
        pass

    def visit(self, index: int, left: bytes | None, right: bytes | None) -> None:
        pass


def _merkelize_row(
    nodes: Iterable[bytes], hasher: Hasher, visitor: _Visitor
) -> tuple[bytes | None, list[bytes]]:
    """Hash one row into the next. Return ``(root, [])`` or ``(None, upper_row)``."""
    upper: list[bytes] = []
    it: Iterator[bytes] = iter(nodes)
    index = 0
    while True:
        left = next(it, None)
        right = next(it, None)
        visitor.visit(index, left, right)
        index += 2
        if left is not None and right is not None:
            upper.append(hasher(left + right))
        elif left is not None and upper:
            upper.append(left)
        elif left is not None:
            return left, []
        else:
            return None, upper


def _merkelize(leaf_hashes: Iterable[bytes], hasher: Hasher, visitor: _Visitor | None = None) -> bytes:
    """Compute the root from already hashed leaves, notifying ``visitor`` on the way."""
    visitor = visitor if visitor is not None else _NoopVisitor()
    root, row = _merkelize_row(leaf_hashes, hasher, visitor)
    if root is not None:
        return root
    if not row:
        return EMPTY_ROOT
    while True:
        visitor.move_up()
        root, row = _merkelize_row(row, hasher, visitor)
        if root is not None:
            return root


def merkle_root(leaves: Iterable[bytes | str], hasher: Hasher = keccak256) -> bytes:
    """Return the root of the tree built from ``leaves``; 32 zero bytes if there are none."""
    return _merkelize((hasher(_as_bytes(leaf)) for leaf in leaves), hasher)


def verify_proof(
    root: bytes,
    proof: Iterable[bytes],
    number_of_leaves: int,
    leaf_index: int,
    leaf: LeafLike,
    hasher: Hasher = keccak256,
) -> bool:
    """Check that ``proof`` leads from ``leaf`` to ``root``.

    The proof holds neither the leaf hash nor the root, only the sibling
    nodes needed to rebuild the root.
    """
    if leaf_index >= number_of_leaves:
        return False

    computed = leaf.value if isinstance(leaf, LeafHash) else hasher(_as_bytes(leaf))
    position = leaf_index
    width = number_of_leaves
    for item in proof:
        item = _as_hash(item, "Proof item")
        if position % 2 == 1 or position + 1 == width:
            combined = item + computed
        else:
            combined = computed + item
        computed = hasher(combined)
        position //= 2
        width = (width - 1) // 2 + 1

    return bytes(root) == computed