"""BIP-32 hardened derivation for BIP-Keychain.

Keys are derived at the path:

    m/83696968'/67797668'/{entity_index}'

The first level is the BIP-85 application number, the second the
BIP-Keychain application code, the third the entity-specific index. Every
level is hardened, so derivation only needs the parent private key and chain
code:

    I   = HMAC-SHA512(key=c_par, data=0x00 || k_par || ser32(i))
    k_i = (parse256(I_L) + k_par) mod n
    c_i = I_R

No curve point arithmetic is involved, which is why non-hardened steps are
rejected rather than implemented.

The master key comes from a BIP-39 mnemonic (python-mnemonic), with an empty
passphrase unless one is given.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import List

from mnemonic import Mnemonic

from .errors import BK_E_DERIVATION, BK_E_RANDOMNESS, BK_E_SEED_PHRASE, keychain_error


logger = logging.getLogger("bip_keychain")

BIP85_APP = 83696968
BIPKEYCHAIN_APP = 67797668
HARDENED_OFFSET = 0x80000000

SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

VALID_WORD_COUNTS = (12, 15, 18, 21, 24)

_MASTER_HMAC_KEY = b"Bitcoin seed"


def _hmac_sha512(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha512).digest()


def entity_child_index(entity_index: int) -> int:
    """Third-level child index (before the hardened marker) for an entity index.

    The hardened marker occupies the top bit, so only the low 31 bits of the
    32-bit entity index select the child: `i` and `i + 2**31` share a key.
    """
    if not 0 <= entity_index <= 0xFFFFFFFF:
        raise keychain_error(BK_E_DERIVATION, f"entity index out of range: {entity_index}", index=entity_index)
    return entity_index & 0x7FFFFFFF


def derivation_path(entity_index: int) -> str:
    """Path actually walked for an entity index (parseable by parse_path)."""
    return f"m/{BIP85_APP}'/{BIPKEYCHAIN_APP}'/{entity_child_index(entity_index)}'"


def parse_path(path: str) -> List[int]:
    """Parse "m/44'/0h/1H" style paths into raw child numbers.

    Hardened components come back with HARDENED_OFFSET added.
    """
    parts = path.strip().split("/")
    if not parts or parts[0] != "m":
        raise keychain_error(BK_E_DERIVATION, f"path must start with 'm': {path!r}", path=path)
    out: List[int] = []
    for part in parts[1:]:
        hardened = part.endswith(("'", "h", "H"))
        digits = part.rstrip("'hH")
        if not digits.isdigit():
            raise keychain_error(BK_E_DERIVATION, f"invalid path component {part!r}", path=path)
        idx = int(digits)
        if idx >= HARDENED_OFFSET:
            raise keychain_error(BK_E_DERIVATION, f"path component out of range: {part!r}", path=path)
        out.append(idx + HARDENED_OFFSET if hardened else idx)
    return out


def _format_child(child_number: int) -> str:
    if child_number >= HARDENED_OFFSET:
        return f"{child_number - HARDENED_OFFSET}'"
    return str(child_number)


@dataclass(frozen=True)
class ExtendedPrivateKey:
    """A BIP-32 extended private key (scalar + chain code)."""

    private_key: bytes
    chain_code: bytes
    depth: int = 0
    child_number: int = 0
    path: str = "m"

    def __repr__(self) -> str:
        # never print key material
        return f"ExtendedPrivateKey(path={self.path!r}, depth={self.depth})"

    @classmethod
    def from_seed(cls, seed: bytes) -> "ExtendedPrivateKey":
        """Master key generation (BIP-32)."""
        if not 16 <= len(seed) <= 64:
            raise keychain_error(
                BK_E_DERIVATION,
                f"seed must be 16..64 bytes, got {len(seed)}",
            )
        I = _hmac_sha512(_MASTER_HMAC_KEY, seed)
        il = int.from_bytes(I[:32], "big")
        if il == 0 or il >= SECP256K1_ORDER:
            raise keychain_error(BK_E_DERIVATION, "seed produces an invalid master key")
        return cls(private_key=I[:32], chain_code=I[32:])

    def derive_child(self, child_number: int) -> "ExtendedPrivateKey":
        """Derive a hardened child (child_number must include HARDENED_OFFSET)."""
        if not 0 <= child_number <= 0xFFFFFFFF:
            raise keychain_error(
                BK_E_DERIVATION, f"child number out of range: {child_number}", child_number=child_number
            )
        if child_number < HARDENED_OFFSET:
            raise keychain_error(
                BK_E_DERIVATION,
                "non-hardened derivation is not supported",
                child_number=child_number,
                path=self.path,
            )

        data = b"\x00" + self.private_key + child_number.to_bytes(4, "big")
        I = _hmac_sha512(self.chain_code, data)
        il = int.from_bytes(I[:32], "big")
        if il >= SECP256K1_ORDER:
            raise keychain_error(BK_E_DERIVATION, "derived I_L is not a valid scalar", path=self.path)
        k = (il + int.from_bytes(self.private_key, "big")) % SECP256K1_ORDER
        if k == 0:
            raise keychain_error(BK_E_DERIVATION, "derived child key is zero", path=self.path)

        return ExtendedPrivateKey(
            private_key=k.to_bytes(32, "big"),
            chain_code=I[32:],
            depth=self.depth + 1,
            child_number=child_number,
            path=f"{self.path}/{_format_child(child_number)}",
        )

    def hardened_child(self, index: int) -> "ExtendedPrivateKey":
        """Derive child `index'` from a plain (unhardened-range) index."""
        if not 0 <= index < HARDENED_OFFSET:
            raise keychain_error(BK_E_DERIVATION, f"index out of range: {index}", index=index)
        return self.derive_child(index + HARDENED_OFFSET)


@dataclass(frozen=True)
class DerivedKey:
    """A derived key at a specific BIP-Keychain path."""

    key: ExtendedPrivateKey
    index: int

    def __repr__(self) -> str:
        return f"DerivedKey(path={self.key.path!r})"

    @property
    def path(self) -> str:
        return self.key.path

    def to_seed(self) -> bytes:
        """The 32-byte private scalar, used as the Ed25519 seed (BIP-85 pattern)."""
        return bytes(self.key.private_key)

    def to_bytes(self) -> bytes:
        """Private key followed by chain code (64 bytes)."""
        return bytes(self.key.private_key) + bytes(self.key.chain_code)


def _validate_mnemonic(mnemo: Mnemonic, phrase: str) -> str:
    words = phrase.split()
    if len(words) not in VALID_WORD_COUNTS:
        raise keychain_error(
            BK_E_SEED_PHRASE,
            f"invalid mnemonic: expected {', '.join(map(str, VALID_WORD_COUNTS))} words, got {len(words)}",
            word_count=len(words),
        )
    wordset = set(mnemo.wordlist)
    for pos, w in enumerate(words):
        if w not in wordset:
            raise keychain_error(
                BK_E_SEED_PHRASE,
                f"invalid mnemonic: word #{pos + 1} is not in the {mnemo.language} wordlist",
                position=pos + 1,
            )
    normalized = " ".join(words)
    if not mnemo.check(normalized):
        raise keychain_error(BK_E_SEED_PHRASE, "invalid mnemonic: checksum mismatch")
    return normalized


class Keychain:
    """Keychain wrapper around a BIP-32 master key."""

    def __init__(self, master_key: ExtendedPrivateKey):
        self._master_key = master_key

    def __repr__(self) -> str:
        return "Keychain(<master key hidden>)"

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keychain":
        return cls(ExtendedPrivateKey.from_seed(bytes(seed)))

    @classmethod
    def from_mnemonic(cls, phrase: str, passphrase: str = "", language: str = "english") -> "Keychain":
        """Create a keychain from a BIP-39 mnemonic phrase.

        The phrase is fully validated (word count, wordlist, checksum) before
        any key material is derived.
        """
        if not isinstance(phrase, str):
            raise keychain_error(BK_E_SEED_PHRASE, "mnemonic must be a string")
        mnemo = Mnemonic(language)
        normalized = _validate_mnemonic(mnemo, phrase)
        seed = Mnemonic.to_seed(normalized, passphrase=passphrase)
        return cls.from_seed(seed)

    @property
    def master_key(self) -> ExtendedPrivateKey:
        return self._master_key

    def derive_path(self, path: str) -> ExtendedPrivateKey:
        """Walk an arbitrary all-hardened path from the master key."""
        key = self._master_key
        for child_number in parse_path(path):
            key = key.derive_child(child_number)
        return key

    def derive_bip_keychain_path(self, entity_index: int) -> DerivedKey:
        """Derive the key at derivation_path(entity_index).

        `entity_index` may use the full 32-bit range; see entity_child_index
        for how it maps onto a hardened child.
        """
        child = entity_child_index(entity_index)
        key_bip85 = self._master_key.hardened_child(BIP85_APP)
        key_app = key_bip85.hardened_child(BIPKEYCHAIN_APP)
        derived = key_app.hardened_child(child)
        logger.debug("derived key at %s", derived.path)
        return DerivedKey(key=derived, index=entity_index)


def generate_mnemonic(words: int = 24, language: str = "english") -> str:
    """Fresh random BIP-39 mnemonic (12, 15, 18, 21 or 24 words).

    Store it securely: anyone with this phrase can derive every key.
    """
    if words not in VALID_WORD_COUNTS:
        raise keychain_error(
            BK_E_SEED_PHRASE,
            f"word count must be one of {', '.join(map(str, VALID_WORD_COUNTS))}, got {words}",
            word_count=words,
        )
    try:
        return Mnemonic(language).generate(strength=words * 32 // 3)
    except OSError as e:
        raise keychain_error(BK_E_RANDOMNESS, f"randomness source failed: {e}") from e
