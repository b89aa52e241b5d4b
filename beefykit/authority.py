"""BEEFY authority keys: uncompression, Ethereum addresses and next-set commitments."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .merkle import EMPTY_ROOT, keccak256, merkle_root
from .scale import encode_bytes, encode_u32

logger = logging.getLogger("runtime.beefy")

COMPRESSED_KEY_LENGTH = 33
UNCOMPRESSED_KEY_LENGTH = 65
ETH_ADDRESS_LENGTH = 20


def uncompress_public_key(compressed: bytes) -> bytes:
    """Turn a 33-byte compressed secp256k1 public key into its 65-byte uncompressed form.

    Raises ``ValueError`` if the key is malformed or not a point on the curve.
    """
    compressed = bytes(compressed)
    if len(compressed) != COMPRESSED_KEY_LENGTH:
        raise ValueError(
            f"Compressed public key must be {COMPRESSED_KEY_LENGTH} bytes, got {len(compressed)}"
        )
    if compressed[0] not in (0x02, 0x03):
        raise ValueError(f"Invalid compressed public key prefix: 0x{compressed[0]:02x}")
    try:
        key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), compressed)
    except ValueError as exc:
        raise ValueError(f"Invalid secp256k1 public key: 0x{compressed.hex()}") from exc
    return key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)


def public_key_to_eth_address(uncompressed: bytes) -> bytes:
    """Return the 20-byte Ethereum address of a 65-byte uncompressed public key."""
    uncompressed = bytes(uncompressed)
    if len(uncompressed) != UNCOMPRESSED_KEY_LENGTH or uncompressed[0] != 0x04:
        raise ValueError("Expected a 65-byte uncompressed public key starting with 0x04")
    return keccak256(uncompressed[1:])[-ETH_ADDRESS_LENGTH:]


def uncompress_beefy_ids(ids: Iterable[bytes]) -> list[bytes]:
    """Uncompress each BEEFY authority id; raises ``ValueError`` on the first invalid one."""
    return [uncompress_public_key(authority_id) for authority_id in ids]


def uncompressed_to_eth(uncompressed: Iterable[bytes]) -> list[bytes]:
    """Convert uncompressed public keys into Ethereum addresses."""
    return [public_key_to_eth_address(key) for key in uncompressed]


def beefy_ecdsa_to_ethereum(compressed: bytes) -> bytes:
    """Ethereum address of a BEEFY authority id, or empty bytes if the key is invalid."""
    try:
        return public_key_to_eth_address(uncompress_public_key(compressed))
    except ValueError:
        logger.error("Invalid BEEFY PublicKey format!")
        return b""


def parachain_heads_merkle_root(heads: Iterable[tuple[int, bytes]]) -> bytes:
    """Merkle root over ``(para_id, head)`` pairs, sorted and SCALE-encoded."""
    pairs = sorted((int(para_id), bytes(head)) for para_id, head in heads)
    return merkle_root(encode_u32(para_id) + encode_bytes(head) for para_id, head in pairs)


@dataclass(frozen=True)
class BeefyNextAuthoritySet:
    """Id, size and Merkle root of the Ethereum addresses of the next authority set."""

    id: int = 0
    len: int = 0
    root: bytes = EMPTY_ROOT


@dataclass
class NextAuthoritySetCache:
    """Keeps the last computed next authority set and recomputes it only when the id changes."""

    current: BeefyNextAuthoritySet = field(default_factory=BeefyNextAuthoritySet)

    def update(
        self, validator_set_id: int, next_authorities: Iterable[bytes]
    ) -> BeefyNextAuthoritySet:
        """Return details of the set following ``validator_set_id``, caching the result."""
        next_id = validator_set_id + 1
        if next_id == self.current.id:
            return self.current

        addresses = [beefy_ecdsa_to_ethereum(authority) for authority in next_authorities]
        self.current = BeefyNextAuthoritySet(
            id=next_id, len=len(addresses), root=merkle_root(addresses)
        )
        return self.current