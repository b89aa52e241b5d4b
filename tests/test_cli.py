import pytest

from beefykit.cli import (
    beefy_id_from_hex,
    generate_merkle_proof,
    main,
    mmr_storage_key,
    parse_authorities,
    verify_merkle_proof,
)
from beefykit.authority import uncompress_beefy_ids, uncompressed_to_eth
from beefykit.scale import (
    ScaleDecodeError,
    encode_bytes,
    encode_compact,
    encode_hash_vec,
    encode_u32,
    encode_u64,
)

KEY_A = bytes.fromhex("039346ec0021405ec103c2baac8feff9d6fb75851318fb03781edf29f05f2ffeb7")
KEY_B = bytes.fromhex("03fe6b333420b90689158643ccad94e62d707de1a80726d53aa04657fec14afd3e")
AUTHORITIES = [KEY_A, KEY_B, KEY_B]


def _encoded_authorities():
    return "0x" + (encode_compact(len(AUTHORITIES)) + b"".join(AUTHORITIES)).hex()


def _parse_output(text):
    fields = {}
    for line in text.splitlines():
        if ": " in line:
            key, value = line.split(": ", 1)
            fields[key.strip()] = value.strip()
    return fields


def test_generate_proof_should_be_verified_correctly():
    uncompressed = uncompress_beefy_ids(AUTHORITIES)
    items = uncompressed_to_eth(uncompressed)
    root, proof, leaf, count = generate_merkle_proof(items, 0)
    assert count == 3
    assert verify_merkle_proof(root, encode_hash_vec(proof), len(AUTHORITIES), 0, leaf) is True


def test_verify_rejects_wrong_leaf():
    root, proof, _, count = generate_merkle_proof([b"a", b"b", b"c"], 1)
    assert verify_merkle_proof(root, encode_hash_vec(proof), count, 1, b"x") is False


def test_generate_proof_out_of_bounds():
    with pytest.raises(IndexError, match="Leaf index out of bounds: 5 vs 1"):
        generate_merkle_proof([b"a"], 5)


def test_verify_rejects_truncated_proof_encoding():
    with pytest.raises(ScaleDecodeError):
        verify_merkle_proof(bytes(32), encode_compact(2) + bytes(32), 3, 0, b"a")


def test_mmr_storage_key_value():
    assert mmr_storage_key("mmr", 0).hex() == "0c6d6d720000000000000000"
    assert mmr_storage_key("mmr", 1).hex() == "0c6d6d720100000000000000"


def test_beefy_id_from_hex():
    assert beefy_id_from_hex("0x" + KEY_A.hex()) == KEY_A
    with pytest.raises(ScaleDecodeError):
        beefy_id_from_hex("0x0102")


def test_parse_authorities():
    assert parse_authorities(_encoded_authorities()) == AUTHORITIES


def test_main_storage_key(capsys):
    assert main(["mmr", "storage-key", "mmr", "0"]) == 0
    assert capsys.readouterr().out.strip() == "0x0c6d6d720000000000000000"


def test_main_beefy_tree_generate_then_verify(capsys):
    assert main(["beefy-id-merkle-tree", "generate-proof", "0", _encoded_authorities()]) == 0
    fields = _parse_output(capsys.readouterr().out)
    assert fields["Number of leaves"] == "3"
    assert fields["Leaf index"] == "0"
    assert main(
        [
            "beefy-id-merkle-tree",
            "verify-proof",
            fields["Root"],
            fields["SCALE-encoded proof"],
            "3",
            "0",
            fields["SCALE-encoded leaf value"],
        ]
    ) == 0
    assert "Proof is correct." in capsys.readouterr().out


def test_main_para_tree_incorrect_proof(capsys):
    assert main(["para-heads-merkle-tree", "generate-proof", "1", "0x01", "0x02", "0x03"]) == 0
    fields = _parse_output(capsys.readouterr().out)
    assert fields["SCALE-encoded leaf value"] == "0x02"
    assert main(
        [
            "para-heads-merkle-tree",
            "verify-proof",
            fields["Root"],
            fields["SCALE-encoded proof"],
            "3",
            "1",
            "0x03",
        ]
    ) == 0
    assert "Proof is INCORRECT." in capsys.readouterr().out


def test_main_para_tree_index_out_of_bounds(capsys):
    assert main(["para-heads-merkle-tree", "generate-proof", "4", "0x01"]) == 1
    assert "Leaf index out of bounds" in capsys.readouterr().err


def test_main_uncompress_single(capsys):
    assert main(["uncompress-beefy-id", "--authority", "0x" + KEY_A.hex()]) == 0
    out = capsys.readouterr().out
    expected = uncompress_beefy_ids([KEY_A])[0].hex()
    assert expected in out
    assert expected.startswith("04")


def test_main_uncompress_requires_argument():
    with pytest.raises(SystemExit) as info:
        main(["uncompress-beefy-id"])
    assert info.value.code == 2


def _leaf_bytes():
    return (
        bytes([37])
        + encode_u32(1)
        + bytes([0x45]) * 32
        + encode_u64(7)
        + encode_u32(2)
        + bytes([0xAA]) * 32
        + bytes([0xBB]) * 32
    )


@pytest.mark.parametrize("prefix", [b"", b"\x00"])
def test_main_decode_leaf(capsys, prefix):
    payload = prefix + encode_bytes(_leaf_bytes())
    assert main(["mmr", "decode-leaf", "0x" + payload.hex()]) == 0
    out = capsys.readouterr().out
    assert "MmrLeafVersion(37)" in out
    assert f"(1, 0x{'45' * 32})" in out
    assert "id: 7, len: 2" in out
    assert f"parachain_heads: 0x{'bb' * 32}" in out


def test_main_decode_leaf_truncated(capsys):
    payload = encode_bytes(_leaf_bytes()[:40])
    assert main(["mmr", "decode-leaf", "0x" + payload.hex()]) == 1
    assert "Not enough data" in capsys.readouterr().err