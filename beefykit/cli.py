"""Command line utilities for BEEFY authority ids, Merkle proofs and MMR leaves."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .authority import uncompress_public_key, uncompressed_to_eth
from .merkle import HASH_LENGTH, verify_proof
from .proof import merkle_proof
from .scale import (
    AUTHORITY_ID_LENGTH,
    ScaleDecodeError,
    decode_authority_ids,
    decode_bytes,
    decode_hash_vec,
    encode_bytes,
    encode_hash_vec,
    encode_u64,
    parse_hex,
)


def beefy_id_from_hex(text: str) -> bytes:
    """Decode a single SCALE-encoded BEEFY authority id (a 33-byte compressed key)."""
    encoded = parse_hex(text)
    if len(encoded) < AUTHORITY_ID_LENGTH:
        raise ScaleDecodeError("Not enough data to fill buffer")
    return encoded[:AUTHORITY_ID_LENGTH]


def parse_authorities(text: str) -> list[bytes]:
    """Decode a hex string holding a SCALE-encoded vector of BEEFY authority ids."""
    return decode_authority_ids(parse_hex(text))


def generate_merkle_proof(
    items: Iterable[bytes], leaf_index: int
) -> tuple[bytes, list[bytes], bytes, int]:
    """Build a Keccak-256 Merkle tree of ``items`` and prove the leaf at ``leaf_index``.

    Returns ``(root, proof, leaf, number_of_leaves)``. Raises ``IndexError`` if the
    index does not name a leaf.
    """
    leaves = [bytes(item) for item in items]
    if not 0 <= leaf_index < len(leaves):
        raise IndexError(f"Leaf index out of bounds: {leaf_index} vs {len(leaves)}")
    result = merkle_proof(leaves, leaf_index)
    return result.root, list(result.proof), leaves[leaf_index], len(leaves)


def verify_merkle_proof(
    root: bytes,
    proof: bytes,
    number_of_leaves: int,
    leaf_index: int,
    leaf_value: bytes,
) -> bool:
    """Check a SCALE-encoded proof (a vector of 32-byte hashes) against ``root``."""
    hashes = decode_hash_vec(proof)
    return verify_proof(bytes(root), hashes, number_of_leaves, leaf_index, bytes(leaf_value))


def mmr_storage_key(prefix: str, pos: int) -> bytes:
    """Offchain storage key of the MMR node at ``pos`` under indexing ``prefix``."""
    return encode_bytes(prefix.encode("utf-8")) + encode_u64(pos)


@dataclass(frozen=True)
class _MmrLeaf:
    version: int
    parent_number: int
    parent_hash: bytes
    next_set_id: int
    next_set_len: int
    next_set_root: bytes
    parachain_heads: bytes

    def __str__(self) -> str:
        return (
            f"MmrLeaf {{ version: MmrLeafVersion({self.version}), "
            f"parent_number_and_hash: ({self.parent_number}, 0x{self.parent_hash.hex()}), "
            f"beefy_next_authority_set: BeefyNextAuthoritySet {{ id: {self.next_set_id}, "
            f"len: {self.next_set_len}, root: 0x{self.next_set_root.hex()} }}, "
            f"parachain_heads: 0x{self.parachain_heads.hex()} }}"
        )


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def take(self, count: int) -> bytes:
        end = self._offset + count
        if end > len(self._data):
            raise ScaleDecodeError("Not enough data to fill buffer")
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def uint(self, size: int) -> int:
        return int.from_bytes(self.take(size), "little")


def _decode_mmr_leaf(raw: bytes) -> _MmrLeaf:
    """Decode a double SCALE-encoded MMR leaf, optionally wrapped as ``DataOrHash::Data``."""
    content = raw[1:] if raw[:1] == b"\x00" else raw
    inner, _ = decode_bytes(content)
    reader = _Reader(inner)
    return _MmrLeaf(
        version=reader.uint(1),
        parent_number=reader.uint(4),
        parent_hash=reader.take(HASH_LENGTH),
        next_set_id=reader.uint(8),
        next_set_len=reader.uint(4),
        next_set_root=reader.take(HASH_LENGTH),
        parachain_heads=reader.take(HASH_LENGTH),
    )


def _parse_h256(text: str) -> bytes:
    value = parse_hex(text)
    if len(value) != HASH_LENGTH:
        raise ValueError(f"Expected a {HASH_LENGTH}-byte hash, got {len(value)} bytes")
    return value


def _usize(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {text}")
    return value


def _uncompress_and_report(ids: Iterable[bytes]) -> list[bytes]:
    uncompressed = []
    for authority_id in ids:
        key = uncompress_public_key(authority_id)
        print(f"[0x{bytes(authority_id).hex()}] Uncompressed:\n\t {key.hex()}")
        uncompressed.append(key)
    return uncompressed


def _print_generated_proof(items: Iterable[bytes], leaf_index: int) -> None:
    root, proof, leaf, number_of_leaves = generate_merkle_proof(items, leaf_index)
    print()
    print(f"Root: 0x{root.hex()}")
    print(f"Leaf index: {leaf_index}")
    print(f"Number of leaves: {number_of_leaves}")
    print(f"SCALE-encoded proof: 0x{encode_hash_vec(proof).hex()}")
    print(f"SCALE-encoded leaf value: 0x{leaf.hex()}")
    print()


def _run_verify(args: argparse.Namespace) -> None:
    ok = verify_merkle_proof(
        _parse_h256(args.root),
        parse_hex(args.proof),
        args.number_of_leaves,
        args.leaf_index,
        parse_hex(args.leaf_value),
    )
    if ok:
        print("\n✅ Proof is correct.\n")
    else:
        print("\n❌ Proof is INCORRECT.\n")


def _run_uncompress(args: argparse.Namespace) -> None:
    if args.authority is not None:
        _uncompress_and_report([beefy_id_from_hex(args.authority)])
    elif args.authorities is not None:
        _uncompress_and_report(parse_authorities(args.authorities))
    else:
        raise ValueError("Neither argument given")


def _run_beefy_tree(args: argparse.Namespace) -> None:
    if args.action == "generate-proof":
        uncompressed = _uncompress_and_report(parse_authorities(args.authorities))
        _print_generated_proof(uncompressed_to_eth(uncompressed), args.leaf_index)
    else:
        _run_verify(args)


def _run_para_tree(args: argparse.Namespace) -> None:
    if args.action == "generate-proof":
        heads = [parse_hex(head) for head in args.heads]
        _print_generated_proof(heads, args.leaf_index)
    else:
        _run_verify(args)


def _run_mmr(args: argparse.Namespace) -> None:
    if args.action == "decode-leaf":
        print(_decode_mmr_leaf(parse_hex(args.leaf)))
    else:
        print(f"0x{mmr_storage_key(args.prefix, args.pos).hex()}")


def _add_verify_parser(actions: argparse._SubParsersAction) -> None:
    verify = actions.add_parser(
        "verify-proof", help="Verify a merkle proof given root hash and the proof content."
    )
    verify.add_argument("root", help="Merkle root hash.")
    verify.add_argument("proof", help="SCALE-encoded proof content.")
    verify.add_argument("number_of_leaves", type=_usize, help="Number of leaves in the tree.")
    verify.add_argument("leaf_index", type=_usize, help="Index of the leaf the proof is for.")
    verify.add_argument("leaf_value", help="Value of the leaf node (not part of the proof).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="beefykit", description="BEEFY utilities")
    commands = parser.add_subparsers(dest="command", required=True)

    uncompress = commands.add_parser(
        "uncompress-beefy-id",
        help="Decode and uncompress a vector of encoded BEEFY authority ids",
    )
    group = uncompress.add_mutually_exclusive_group(required=True)
    group.add_argument("--authority", help="A SCALE-encoded single BEEFY authority id.")
    group.add_argument("--authorities", help="A SCALE-encoded vector of BEEFY authority ids.")
    uncompress.set_defaults(handler=_run_uncompress)

    beefy_tree = commands.add_parser(
        "beefy-id-merkle-tree",
        help="Construct or verify a merkle proof from BEEFY authorities.",
    )
    beefy_actions = beefy_tree.add_subparsers(dest="action", required=True)
    generate = beefy_actions.add_parser(
        "generate-proof", help="Build a tree of Ethereum addresses and prove one leaf."
    )
    generate.add_argument("leaf_index", type=_usize, help="Leaf index to prove.")
    generate.add_argument("authorities", help="A SCALE-encoded vector of BEEFY authority ids.")
    _add_verify_parser(beefy_actions)
    beefy_tree.set_defaults(handler=_run_beefy_tree)

    para_tree = commands.add_parser(
        "para-heads-merkle-tree",
        help="Construct or verify a merkle proof from parachain heads.",
    )
    para_actions = para_tree.add_subparsers(dest="action", required=True)
    generate = para_actions.add_parser(
        "generate-proof", help="Build a tree of parachain heads and prove one leaf."
    )
    generate.add_argument("leaf_index", type=_usize, help="Leaf index to prove.")
    generate.add_argument("heads", nargs="*", help="Raw head data, hex encoded.")
    _add_verify_parser(para_actions)
    para_tree.set_defaults(handler=_run_para_tree)

    mmr = commands.add_parser("mmr", help="Merkle Mountain Range related commands.")
    mmr_actions = mmr.add_subparsers(dest="action", required=True)
    decode = mmr_actions.add_parser("decode-leaf", help="Decode a double SCALE-encoded MMR leaf.")
    decode.add_argument("leaf", help="A double SCALE-encoded MMR leaf.")
    storage = mmr_actions.add_parser("storage-key", help="Construct MMR offchain storage key.")
    storage.add_argument("prefix", help="Indexing prefix used in pallet configuration.")
    storage.add_argument("pos", type=_usize, help="Node position.")
    mmr.set_defaults(handler=_run_mmr)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line tool; return the process exit status."""
    logging.basicConfig(level=logging.INFO)
    args = _build_parser().parse_args(argv)
    try:
        args.handler(args)
    except (ValueError, IndexError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())