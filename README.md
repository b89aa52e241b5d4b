# beefykit

beefykit works with BEEFY finality data and the Merkle structures that data
commits to. You can use it as a library or from the command line.

## What it provides

- `beefykit.merkle` builds a binary Merkle tree over Keccak-256. It offers
  `keccak256`, `merkle_root` and `verify_proof`, plus `LeafHash`, which passes
  a leaf by its hash. An odd node at the end of a row moves up to the next row
  unchanged. A tree with no leaves has a root of 32 zero bytes.
- `beefykit.proof` generates proofs. `merkle_proof` returns a `MerkleProof`
  holding `root`, `proof`, `number_of_leaves`, `leaf_index` and `leaf`. It
  raises `IndexError` when the leaf index is out of range.
- `beefykit.authority` handles secp256k1 authority keys:
  - `uncompress_public_key` and `uncompress_beefy_ids` turn 33-byte keys into
    65-byte keys.
  - `public_key_to_eth_address` and `uncompressed_to_eth` derive Ethereum
    addresses.
  - `beefy_ecdsa_to_ethereum` returns empty bytes when the key is invalid.
  - `parachain_heads_merkle_root` takes `(para_id, head)` pairs, sorts them,
    SCALE-encodes them and returns their Merkle root.
  - `NextAuthoritySetCache.update` returns a `BeefyNextAuthoritySet` with
    `id`, `len` and `root`. It recomputes the set only when the set id
    changes.
- `beefykit.scale` has SCALE helpers:
  - `parse_hex`
  - `encode_compact` / `decode_compact`
  - `encode_bytes` / `decode_bytes`
  - `encode_u32` and `encode_u64`
  - `encode_hash_vec` / `decode_hash_vec`
  - `decode_authority_ids`

  Bad input raises `ScaleDecodeError`, a subclass of `ValueError`.
- `beefykit.round` tracks votes:
  - `ValidatorSet`
  - `threshold`, which counts the votes needed to tolerate `(n - 1) // 3`
    faulty validators
  - `Rounds`, which records votes per `(payload, block_number)` round and
    reports when a round is done. When you drop a round, it returns one
    signature, or `None`, per validator, in validator order.
- `beefykit.voting` picks the block to vote on:
  - `next_power_of_two`
  - `vote_target`
  - `should_vote_on`
- `beefykit.gossip` provides `GossipValidator`, which keeps only the three
  most recently noted rounds live.
  - `validate` returns a `ValidationResult` and checks each signature only
    once.
  - `message_expired` tells you whether to drop a message.
  - `message_allowed` tells you whether to send one; it permits a
    `MessageIntent.PERIODIC_REBROADCAST` at most once every five minutes.

## Installation

```
pip install .
```

## Library use

```python
from beefykit.merkle import keccak256, merkle_root, verify_proof
from beefykit.proof import merkle_proof

leaves = [b"a", b"b", b"c"]
root = merkle_root(leaves, keccak256)

proof = merkle_proof(leaves, 1, keccak256)
assert proof.root == root
assert verify_proof(root, proof.proof, proof.number_of_leaves, proof.leaf_index, proof.leaf, keccak256)
```

Vote targets:

```python
from beefykit.voting import vote_target

vote_target(1016, 1006, 4)   # 1022
```

## Command line

The `beefykit` command has these subcommands:

```
beefykit uncompress-beefy-id --authority 0x<SCALE-encoded id>
beefykit uncompress-beefy-id --authorities 0x<SCALE-encoded vector of ids>

beefykit beefy-id-merkle-tree generate-proof <leaf_index> <authorities>
beefykit beefy-id-merkle-tree verify-proof <root> <proof> <number_of_leaves> <leaf_index> <leaf_value>

beefykit para-heads-merkle-tree generate-proof <leaf_index> [<head> ...]
beefykit para-heads-merkle-tree verify-proof <root> <proof> <number_of_leaves> <leaf_index> <leaf_value>

beefykit mmr decode-leaf <leaf>
beefykit mmr storage-key <prefix> <pos>
```

- You can write hex arguments with or without a `0x` prefix.
- Proofs are printed and read as SCALE-encoded vectors of 32-byte hashes.
- `verify-proof` prints whether the proof is correct or incorrect.
- `mmr decode-leaf` accepts a double SCALE-encoded MMR leaf, which may carry a
  leading `00` byte.
- `mmr storage-key` prints the offchain key for a node position.
- Invalid input prints an error and exits with status 1.

Run `beefykit --help` for the full usage.

## What it does not do

beefykit is a set of building blocks, not a node. It does not:

- connect to a network or run a gossip engine;
- hold a keystore, or sign or verify votes on its own. `GossipValidator.validate`
  takes the signature check as a callable you supply;
- offer a subscription channel for signed commitments;
- serve an RPC interface.

## Tests

```
pip install .[test]
pytest
```