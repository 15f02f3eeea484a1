"""Core BIP-Keychain derivation.

entity record -> canonical JSON -> 64-byte digest -> u32 index ->
m/83696968'/67797668'/{index}' -> 32-byte Ed25519 seed.
"""

from __future__ import annotations

import logging

from .bip32 import DerivedKey, Keychain, derivation_path
from .entity import KeyDerivation
from .errors import BK_E_HASH, keychain_error
from .hashing import hash_entity


logger = logging.getLogger("bip_keychain")


def hash_to_index(digest: bytes) -> int:
    """First four digest bytes as a big-endian unsigned 32-bit index.

    Every value in [0, 2**32 - 1] is a usable index.
    """
    if len(digest) < 4:
        raise keychain_error(BK_E_HASH, "hash output too short for index extraction", length=len(digest))
    return int.from_bytes(digest[:4], "big")


def entity_digest(key_derivation: KeyDerivation, parent_entropy: bytes) -> bytes:
    return hash_entity(key_derivation.entity_json(), parent_entropy, key_derivation.hash_function)


def entity_index(key_derivation: KeyDerivation, parent_entropy: bytes) -> int:
    """Child index for an entity (no seed phrase needed)."""
    return hash_to_index(entity_digest(key_derivation, parent_entropy))


def derive_key_from_entity(
    keychain: Keychain,
    key_derivation: KeyDerivation,
    parent_entropy: bytes,
) -> DerivedKey:
    """Derive the key for an entity.

    Args:
        keychain: master keychain (from a BIP-39 mnemonic).
        key_derivation: parsed entity record.
        parent_entropy: HMAC key for hmac_sha512; ignored by other hashes.

    Returns the DerivedKey; `.to_seed()` gives the 32-byte Ed25519 seed.
    """
    index = entity_index(key_derivation, parent_entropy)
    logger.debug(
        "entity schema_type=%s hash=%s -> %s",
        key_derivation.schema_type,
        key_derivation.hash_function.value,
        derivation_path(index),
    )
    return keychain.derive_bip_keychain_path(index)
