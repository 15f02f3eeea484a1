"""
BIP-Keychain key material (Ed25519)

Turns a 32-byte derived seed into an Ed25519 signing/verifying key pair and
renders the public half in OpenSSH and GPG-friendly forms.

SECURITY: the seed is the BIP-32 node's private scalar. Anyone holding the
Ed25519 private key also holds that node secret.
"""

from __future__ import annotations

import base64
import struct
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .errors import BK_E_KEY_MATERIAL, keychain_error


SSH_KEY_TYPE = b"ssh-ed25519"
DEFAULT_COMMENT = "bip-keychain"


def _ssh_string(data: bytes) -> bytes:
    """RFC 4251 `string`: uint32 length prefix + bytes."""
    return struct.pack(">I", len(data)) + data


@dataclass(frozen=True)
class Ed25519KeyPair:
    """Ed25519 key pair derived from a 32-byte seed."""

    public_key_bytes: bytes
    private_key_bytes: bytes

    def __repr__(self) -> str:
        return f"Ed25519KeyPair(public_key_hex={self.public_key_hex!r})"

    @classmethod
    def from_seed(cls, seed: bytes) -> "Ed25519KeyPair":
        """
        Create key pair from a 32-byte seed.

        Standard RFC 8032 key generation: the seed is hashed, clamped and
        multiplied by the base point. Same seed, same key pair.
        """
        seed = bytes(seed)
        if len(seed) != 32:
            raise keychain_error(BK_E_KEY_MATERIAL, f"Seed must be 32 bytes, got {len(seed)}", length=len(seed))

        private_key = Ed25519PrivateKey.from_private_bytes(seed)
        public_key = private_key.public_key()

        private_bytes = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption()
        )
        public_bytes = public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )

        return cls(public_key_bytes=public_bytes, private_key_bytes=private_bytes)

    @classmethod
    def from_derived_key(cls, derived) -> "Ed25519KeyPair":
        """Key pair for a bip32.DerivedKey."""
        return cls.from_seed(derived.to_seed())

    @property
    def public_key_hex(self) -> str:
        return self.public_key_bytes.hex()

    @property
    def private_key_hex(self) -> str:
        return self.private_key_bytes.hex()

    def sign(self, message: bytes) -> bytes:
        """Sign a message with the private key."""
        private_key = Ed25519PrivateKey.from_private_bytes(self.private_key_bytes)
        return private_key.sign(message)

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Verify a signature with the public key."""
        try:
            public_key = Ed25519PublicKey.from_public_bytes(self.public_key_bytes)
            public_key.verify(signature, message)
            return True
        except InvalidSignature:
            return False

    def ssh_wire_blob(self) -> bytes:
        """OpenSSH public key blob: string("ssh-ed25519") || string(pubkey)."""
        return _ssh_string(SSH_KEY_TYPE) + _ssh_string(self.public_key_bytes)

    def to_ssh_public_key(self, comment: Optional[str] = None) -> str:
        """Format as an OpenSSH authorized_keys line.

        Format: `ssh-ed25519 <base64> <comment>`
        """
        encoded = base64.b64encode(self.ssh_wire_blob()).decode("ascii")
        return f"{SSH_KEY_TYPE.decode('ascii')} {encoded} {DEFAULT_COMMENT if comment is None else comment}"

    def to_gpg_public_key(self, comment: Optional[str] = None) -> str:
        """Public key material for manual import into GPG.

        This is descriptive text, not an OpenPGP packet.
        """
        return "\n".join([
            "GPG Ed25519 Public Key",
            "=====================",
            f"Comment: {DEFAULT_COMMENT if comment is None else comment}",
            "",
            "Public Key (hex, 32 bytes):",
            self.public_key_hex,
            "",
            "To import into GPG:",
            "1. Save this key material",
            "2. Use: gpg --import (if in OpenPGP format)",
            "3. Or use: gpg --expert --full-gen-key to create key from seed",
            "",
            "For Git signing:",
            "1. Import/create GPG key",
            "2. git config --global user.signingkey <KEY-ID>",
            "3. git config --global commit.gpgsign true",
            "",
            "Note: this is raw key material; no OpenPGP packet is generated.",
        ])
