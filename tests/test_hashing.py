import pytest

from bip_keychain.hashing import DIGEST_SIZE, HashFunction, hash_entity
from bip_keychain.errors import KeychainError, BK_E_HASH


ALL_HASHES = [HashFunction.HMAC_SHA512, HashFunction.BLAKE2B, HashFunction.SHA256]


def test_hmac_sha512_rfc4231_test_case_1():
    key = b"\x0b" * 20
    expected = bytes.fromhex(
        "87aa7cdea5ef619d4ff0b4241a1d6cb02379f4e2ce4ec2787ad0b30545e17cde"
        "daa833b7d6b8a702038b274eaea3f4e4be9d914eeb61f1702e696c203a126854"
    )
    assert hash_entity("Hi There", key, HashFunction.HMAC_SHA512) == expected


def test_hmac_sha512_rfc4231_test_case_2():
    expected = bytes.fromhex(
        "164b7a7bfcf819e2e395fbe73b56e0a387bd64222e831fd610270cd7ea250554"
        "9758bf75c05a994a6d034f65f8f0e6fdcaeab1a34d4a6b4b636e070a38bce737"
    )
    assert hash_entity("what do ya want for nothing?", b"Jefe", "hmac_sha512") == expected


def test_blake2b_known_answers_ignore_parent_entropy():
    empty = bytes.fromhex(
        "786a02f742015903c6c6fd852552d272912f4740e15847618a86e217f71f5419"
        "d25e1031afee585313896444934eb04b903a685b1448b755d56f701afe9be2ce"
    )
    abc = bytes.fromhex(
        "ba80a53f981c4d0d6a2797b69f12f6e94c212f14685ac4b74b12bb6fdbffa2d1"
        "7d87c5392aab792dc252d5de4533cc9518d38aa8dbf1925ab92386edd4009923"
    )
    assert hash_entity("", b"", HashFunction.BLAKE2B) == empty
    assert hash_entity("", b"anything", HashFunction.BLAKE2B) == empty
    assert hash_entity("abc", b"ignored", HashFunction.BLAKE2B) == abc


def test_sha256_is_zero_padded_to_64_bytes():
    abc = hash_entity("abc", b"ignored", HashFunction.SHA256)
    assert len(abc) == DIGEST_SIZE
    assert abc[:32].hex() == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert abc[32:] == b"\x00" * 32

    empty = hash_entity(b"", b"", HashFunction.SHA256)
    assert empty[:32].hex() == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    assert empty[32:] == b"\x00" * 32


@pytest.mark.parametrize("hash_fn", ALL_HASHES)
def test_hashing_is_deterministic(hash_fn):
    entity = '{"@context":"https://schema.org","@type":"SoftwareSourceCode","name":"bip-keychain"}'
    entropy = b"test_seed_entropy_32_bytes_long!"
    d1 = hash_entity(entity, entropy, hash_fn)
    d2 = hash_entity(entity, entropy, hash_fn)
    assert d1 == d2
    assert len(d1) == 64


@pytest.mark.parametrize("hash_fn", ALL_HASHES)
def test_distinct_entities_give_distinct_digests(hash_fn):
    names = [f'{{"@type":"Thing","name":"entity-{i}"}}' for i in range(50)]
    digests = {hash_entity(n, b"test_entropy", hash_fn) for n in names}
    assert len(digests) == len(names)


def test_hash_functions_disagree_on_same_input():
    digests = {hash_entity('{"name":"x"}', b"k", h) for h in ALL_HASHES}
    assert len(digests) == 3


def test_hmac_depends_on_parent_entropy_and_accepts_any_key_length():
    a = hash_entity("data", b"", HashFunction.HMAC_SHA512)
    b = hash_entity("data", b"k" * 500, HashFunction.HMAC_SHA512)
    assert a != b


def test_parse_accepts_wire_and_display_names():
    assert HashFunction.parse("blake2b") is HashFunction.BLAKE2B
    assert HashFunction.parse("HmacSha512") is HashFunction.HMAC_SHA512
    assert HashFunction.SHA256.display_name == "Sha256"
    with pytest.raises(ValueError):
        HashFunction.parse("md5")


def test_unknown_hash_name_is_a_hash_error():
    with pytest.raises(KeychainError) as ei:
        hash_entity("x", b"", "md5")
    assert ei.value.code == BK_E_HASH
    assert ei.value.stage == "hash"


def test_per_call_implementation_must_return_64_bytes():
    with pytest.raises(KeychainError) as ei:
        hash_entity("abc", b"", HashFunction.SHA256, impl=lambda data, key: b"\x01" * 32)
    assert ei.value.code == BK_E_HASH

    # built-in table is untouched by the override
    assert hash_entity("abc", b"", HashFunction.SHA256)[32:] == b"\x00" * 32


def test_per_call_implementation_replaces_builtin():
    digest = hash_entity("abc", b"k", "blake2b", impl=lambda data, key: data.ljust(64, b"."))
    assert digest == b"abc" + b"." * 61


def test_lone_surrogate_string_is_a_hash_error():
    with pytest.raises(KeychainError) as ei:
        hash_entity('{"name":"\ud800"}', b"", HashFunction.BLAKE2B)
    assert ei.value.code == BK_E_HASH
