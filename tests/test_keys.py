import base64
import struct

import pytest

from bip_keychain.errors import KeychainError, BK_E_KEY_MATERIAL
from bip_keychain.keys import DEFAULT_COMMENT, Ed25519KeyPair


# RFC 8032 section 7.1, TEST 1
RFC8032_SECRET = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
RFC8032_SIG_EMPTY = (
    "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e065224901555"
    "fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
)


def test_rfc8032_test_vector():
    kp = Ed25519KeyPair.from_seed(RFC8032_SECRET)
    assert kp.public_key_hex == RFC8032_PUBLIC
    assert kp.private_key_bytes == RFC8032_SECRET
    assert kp.sign(b"").hex() == RFC8032_SIG_EMPTY


def test_same_seed_same_keypair():
    seed = bytes(range(32))
    assert Ed25519KeyPair.from_seed(seed) == Ed25519KeyPair.from_seed(seed)


@pytest.mark.parametrize("position", [0, 15, 31])
def test_one_byte_difference_changes_public_key(position):
    seed = bytearray(b"\x42" * 32)
    other = bytearray(seed)
    other[position] ^= 0x01
    assert Ed25519KeyPair.from_seed(bytes(seed)).public_key_bytes != \
        Ed25519KeyPair.from_seed(bytes(other)).public_key_bytes


def test_seed_must_be_32_bytes():
    for bad in (b"", b"\x00" * 31, b"\x00" * 64):
        with pytest.raises(KeychainError) as ei:
            Ed25519KeyPair.from_seed(bad)
        assert ei.value.code == BK_E_KEY_MATERIAL


def test_sign_and_verify():
    kp = Ed25519KeyPair.from_seed(b"\x07" * 32)
    sig = kp.sign(b"hello-world")
    assert kp.verify(b"hello-world", sig) is True
    assert kp.verify(b"hello-world!", sig) is False


def test_ssh_public_key_wire_format():
    kp = Ed25519KeyPair.from_seed(RFC8032_SECRET)
    line = kp.to_ssh_public_key("deploy@example")
    algo, b64, comment = line.split(" ")
    assert algo == "ssh-ed25519"
    assert comment == "deploy@example"
    assert b64.startswith("AAAAC3NzaC1lZDI1NTE5AAAAI")

    blob = base64.b64decode(b64)
    assert len(blob) == 4 + 11 + 4 + 32
    assert struct.unpack(">I", blob[:4])[0] == 11
    assert blob[4:15] == b"ssh-ed25519"
    assert struct.unpack(">I", blob[15:19])[0] == 32
    assert blob[19:] == kp.public_key_bytes


def test_ssh_default_comment():
    kp = Ed25519KeyPair.from_seed(RFC8032_SECRET)
    assert kp.to_ssh_public_key().endswith(" " + DEFAULT_COMMENT)


def test_gpg_block_carries_public_key_and_instructions():
    kp = Ed25519KeyPair.from_seed(RFC8032_SECRET)
    block = kp.to_gpg_public_key("Git signing")
    assert "Comment: Git signing" in block
    assert RFC8032_PUBLIC in block
    assert "gpg --import" in block
    assert kp.private_key_hex not in block


def test_repr_hides_private_key():
    kp = Ed25519KeyPair.from_seed(RFC8032_SECRET)
    assert RFC8032_SECRET.hex() not in repr(kp)
