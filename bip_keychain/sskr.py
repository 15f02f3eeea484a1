"""
bip_keychain.sskr: seed backup via threshold secret sharing.

This module does not implement a sharing scheme. It defines the policy
rules and the seam a sharing backend plugs into:

- SharePolicy: how many shares are produced and how many recover the secret.
- SecretSharer: protocol implemented by backends (e.g. Blockchain Commons SSKR).

The derivation core never imports this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Protocol, runtime_checkable

from mnemonic import Mnemonic

from .errors import BK_E_SEED_PHRASE, BK_E_SHARING, keychain_error


MIN_GROUPS = 2
MAX_GROUPS = 16
VALID_ENTROPY_LENGTHS = (16, 20, 24, 28, 32)


@dataclass(frozen=True)
class SharePolicy:
    """Total shares (`groups`) and shares required to recover (`threshold`)."""

    groups: int
    threshold: int

    def __post_init__(self) -> None:
        if not MIN_GROUPS <= self.groups <= MAX_GROUPS:
            raise keychain_error(
                BK_E_SHARING,
                f"groups must be between {MIN_GROUPS} and {MAX_GROUPS}",
                groups=self.groups,
            )
        if not 1 <= self.threshold <= self.groups:
            raise keychain_error(
                BK_E_SHARING,
                f"threshold must be between 1 and {self.groups} (number of groups)",
                threshold=self.threshold,
            )

    @classmethod
    def two_of_three(cls) -> "SharePolicy":
        return cls(groups=3, threshold=2)

    @classmethod
    def three_of_five(cls) -> "SharePolicy":
        return cls(groups=5, threshold=3)

    @classmethod
    def two_of_two(cls) -> "SharePolicy":
        return cls(groups=2, threshold=2)


@runtime_checkable
class SecretSharer(Protocol):
    """Protocol implemented by secret-sharing backends."""

    def shard(self, secret: bytes, threshold: int, total_shares: int) -> List[bytes]: ...

    def recover(self, shares: List[bytes]) -> bytes: ...


def mnemonic_entropy(phrase: str, language: str = "english") -> bytes:
    """BIP-39 entropy behind a mnemonic (what gets sharded)."""
    mnemo = Mnemonic(language)
    normalized = " ".join(phrase.split())
    if not mnemo.check(normalized):
        raise keychain_error(BK_E_SEED_PHRASE, "invalid mnemonic")
    return bytes(mnemo.to_entropy(normalized))


def shard_seed(seed_entropy: bytes, policy: SharePolicy, sharer: SecretSharer) -> List[bytes]:
    """Split seed entropy into `policy.groups` shares via `sharer`."""
    if len(seed_entropy) not in VALID_ENTROPY_LENGTHS:
        raise keychain_error(
            BK_E_SHARING,
            f"Invalid seed entropy length: {len(seed_entropy)} bytes. "
            f"Must be {', '.join(map(str, VALID_ENTROPY_LENGTHS))} bytes.",
            length=len(seed_entropy),
        )
    shares = list(sharer.shard(bytes(seed_entropy), policy.threshold, policy.groups))
    if len(shares) != policy.groups:
        raise keychain_error(
            BK_E_SHARING,
            f"sharer returned {len(shares)} shares, expected {policy.groups}",
        )
    return shares


def recover_seed(shares: Iterable[bytes], sharer: SecretSharer) -> bytes:
    """Recombine shares via `sharer`; the backend enforces the threshold."""
    share_list = [bytes(s) for s in shares]
    if not share_list:
        raise keychain_error(BK_E_SHARING, "no shares provided")
    secret = bytes(sharer.recover(share_list))
    if len(secret) not in VALID_ENTROPY_LENGTHS:
        raise keychain_error(BK_E_SHARING, f"recovered secret has invalid length {len(secret)}")
    return secret


def entropy_to_mnemonic(entropy: bytes, language: str = "english") -> str:
    """Mnemonic for recovered entropy."""
    if len(entropy) not in VALID_ENTROPY_LENGTHS:
        raise keychain_error(BK_E_SHARING, f"invalid entropy length {len(entropy)}")
    return Mnemonic(language).to_mnemonic(bytes(entropy))
