"""Minimal SCALE codec helpers and hex parsing used by the command line tools."""

from __future__ import annotations

import re
from collections.abc import Iterable

_HEX_RE = re.compile(r"[0-9a-fA-F]*")

HASH_LENGTH = 32
AUTHORITY_ID_LENGTH = 33

_MAX_COMPACT_BYTES = 67


class ScaleDecodeError(ValueError):
    """Raised when SCALE-encoded input cannot be decoded."""


def parse_hex(text: str) -> bytes:
    """Parse a hex string, with or without a ``0x`` prefix, into bytes."""
    digits = text[2:] if text.startswith("0x") else text
    if not _HEX_RE.fullmatch(digits):
        raise ValueError(f"Invalid character in hex string: {text!r}")
    if len(digits) % 2:
        raise ValueError(f"Odd number of digits in hex string: {text!r}")
    return bytes.fromhex(digits)


def _take(data: bytes, offset: int, count: int) -> bytes:
    end = offset + count
    if offset < 0 or end > len(data):
        raise ScaleDecodeError("Not enough data to fill buffer")
    return data[offset:end]


def encode_compact(value: int) -> bytes:
    """Encode a non-negative integer in SCALE compact form."""
    if value < 0:
        raise ValueError("Compact encoding requires a non-negative integer")
    if value < 1 << 6:
        return bytes([value << 2])
    if value < 1 << 14:
        return ((value << 2) | 0b01).to_bytes(2, "little")
    if value < 1 << 30:
        return ((value << 2) | 0b10).to_bytes(4, "little")
    length = max(4, (value.bit_length() + 7) // 8)
    if length > _MAX_COMPACT_BYTES:
        raise ValueError("Integer too large for compact encoding")
    return bytes([((length - 4) << 2) | 0b11]) + value.to_bytes(length, "little")


def decode_compact(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a compact integer at ``offset``; return the value and the next offset."""
    data = bytes(data)
    first = _take(data, offset, 1)[0]
    mode = first & 0b11
    if mode == 0b00:
        return first >> 2, offset + 1
    if mode == 0b01:
        value = int.from_bytes(_take(data, offset, 2), "little") >> 2
        if value < 1 << 6:
            raise ScaleDecodeError("Out of range compact integer")
        return value, offset + 2
    if mode == 0b10:
        value = int.from_bytes(_take(data, offset, 4), "little") >> 2
        if value < 1 << 14:
            raise ScaleDecodeError("Out of range compact integer")
        return value, offset + 4
    length = (first >> 2) + 4
    raw = _take(data, offset + 1, length)
    if length > 4 and raw[-1] == 0:
        raise ScaleDecodeError("Out of range compact integer")
    value = int.from_bytes(raw, "little")
    if value < 1 << 30:
        raise ScaleDecodeError("Out of range compact integer")
    return value, offset + 1 + length


def encode_bytes(value: bytes) -> bytes:
    """Encode a byte string as a SCALE ``Vec<u8>``."""
    value = bytes(value)
    return encode_compact(len(value)) + value


def decode_bytes(data: bytes, offset: int = 0) -> tuple[bytes, int]:
    """Decode a SCALE ``Vec<u8>`` at ``offset``; return the bytes and the next offset."""
    data = bytes(data)
    length, offset = decode_compact(data, offset)
    return _take(data, offset, length), offset + length


def _encode_uint(value: int, size: int) -> bytes:
    if not 0 <= value < 1 << (8 * size):
        raise ValueError(f"Value {value} does not fit in u{8 * size}")
    return value.to_bytes(size, "little")


def encode_u32(value: int) -> bytes:
    """Encode an unsigned 32-bit integer, little-endian."""
    return _encode_uint(value, 4)


def encode_u64(value: int) -> bytes:
    """Encode an unsigned 64-bit integer, little-endian."""
    return _encode_uint(value, 8)


def _decode_fixed_vec(data: bytes, item_length: int) -> list[bytes]:
    data = bytes(data)
    count, offset = decode_compact(data)
    items = []
    for _ in range(count):
        items.append(_take(data, offset, item_length))
        offset += item_length
    return items


def encode_hash_vec(hashes: Iterable[bytes]) -> bytes:
    """Encode a sequence of 32-byte hashes as a SCALE ``Vec<H256>``."""
    items = [bytes(h) for h in hashes]
    for item in items:
        if len(item) != HASH_LENGTH:
            raise ValueError(f"Expected a {HASH_LENGTH}-byte hash, got {len(item)} bytes")
    return encode_compact(len(items)) + b"".join(items)


def decode_hash_vec(data: bytes) -> list[bytes]:
    """Decode a SCALE ``Vec<H256>`` into a list of 32-byte hashes."""
    return _decode_fixed_vec(data, HASH_LENGTH)


def decode_authority_ids(data: bytes) -> list[bytes]:
    """Decode a SCALE vector of BEEFY authority ids (33-byte compressed keys)."""
    return _decode_fixed_vec(data, AUTHORITY_ID_LENGTH)