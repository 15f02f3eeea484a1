"""Entity hashing.

Maps canonical entity bytes (plus optional parent entropy) to a fixed 64-byte
digest. Three functions are supported:

- HMAC-SHA-512 (BIP-85 style): parent entropy is the HMAC key.
- BLAKE2b-512: unkeyed, parent entropy ignored.
- SHA-256: unkeyed, 32-byte digest zero-padded to 64 bytes.

Built-in implementations live in a read-only table keyed by HashFunction.
A caller can pass its own implementation to a single hash_entity call.
"""

from __future__ import annotations

import hashlib
import hmac
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Union

from .errors import BK_E_HASH, keychain_error


DIGEST_SIZE = 64


class HashFunction(str, Enum):
    """Hash function selector (value is the entity wire name)."""

    HMAC_SHA512 = "hmac_sha512"
    BLAKE2B = "blake2b"
    SHA256 = "sha256"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, name: Union[str, "HashFunction"]) -> "HashFunction":
        """Accept a wire name ("hmac_sha512") or display name ("HmacSha512")."""
        if isinstance(name, HashFunction):
            return name
        s = str(name).strip()
        for member in cls:
            if s == member.value or s == member.display_name:
                return member
        raise ValueError(
            f"Unknown hash function: {name!r} (expected one of "
            f"{', '.join(m.value for m in cls)})"
        )


_DISPLAY_NAMES: Dict[HashFunction, str] = {
    HashFunction.HMAC_SHA512: "HmacSha512",
    HashFunction.BLAKE2B: "Blake2b",
    HashFunction.SHA256: "Sha256",
}


HashImpl = Callable[[bytes, bytes], bytes]


def _hmac_sha512(data: bytes, parent_entropy: bytes) -> bytes:
    return hmac.new(parent_entropy, data, hashlib.sha512).digest()


def _blake2b(data: bytes, parent_entropy: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=DIGEST_SIZE).digest()


def _sha256_padded(data: bytes, parent_entropy: bytes) -> bytes:
    return hashlib.sha256(data).digest() + b"\x00" * 32


_HASH_IMPLS: Mapping[HashFunction, HashImpl] = MappingProxyType({
    HashFunction.HMAC_SHA512: _hmac_sha512,
    HashFunction.BLAKE2B: _blake2b,
    HashFunction.SHA256: _sha256_padded,
})


def hash_entity(
    data: Union[str, bytes],
    parent_entropy: bytes,
    hash_fn: Union[HashFunction, str],
    impl: Optional[HashImpl] = None,
) -> bytes:
    """Hash entity bytes to a 64-byte digest.

    Args:
        data: canonical entity JSON (str is encoded as UTF-8).
        parent_entropy: HMAC key for HMAC_SHA512; ignored otherwise.
        hash_fn: HashFunction member or its name.
        impl: optional replacement for the built-in implementation of
            `hash_fn`, called as impl(data, parent_entropy). Only this call
            is affected.

    Raises KeychainError (BK_E_HASH) if the inputs are not byte-like, a str
    cannot be encoded as UTF-8, or the implementation violates the 64-byte
    contract.
    """

    try:
        hash_fn = HashFunction.parse(hash_fn)
    except ValueError as e:
        raise keychain_error(BK_E_HASH, str(e), hash_function=str(hash_fn)) from e

    if isinstance(data, str):
        try:
            msg = data.encode("utf-8")
        except UnicodeEncodeError as e:
            raise keychain_error(
                BK_E_HASH,
                f"entity data is not valid Unicode (lone surrogate at offset {e.start})",
                hash_function=hash_fn.value,
            ) from e
    else:
        msg = data
    if not isinstance(msg, (bytes, bytearray, memoryview)):
        raise keychain_error(BK_E_HASH, "entity data must be str or bytes", got=type(data).__name__)
    if not isinstance(parent_entropy, (bytes, bytearray, memoryview)):
        raise keychain_error(BK_E_HASH, "parent entropy must be bytes", got=type(parent_entropy).__name__)

    hasher = impl if impl is not None else _HASH_IMPLS[hash_fn]
    digest = hasher(bytes(msg), bytes(parent_entropy))
    if len(digest) != DIGEST_SIZE:
        raise keychain_error(
            BK_E_HASH,
            f"{hash_fn.display_name} produced {len(digest)} bytes, expected {DIGEST_SIZE}",
            hash_function=hash_fn.value,
        )
    return bytes(digest)
