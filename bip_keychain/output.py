"""Output formatting for derived keys.

Every format is one entry in `_RENDERERS`; adding a format means adding an
enum member and a renderer, nothing else.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Callable, Dict, Union

from .bip32 import DerivedKey
from .entity import KeyDerivation
from .errors import BK_E_OUTPUT, keychain_error
from .keys import Ed25519KeyPair


class OutputFormat(str, Enum):
    HEX_SEED = "hex"
    ED25519_PUBLIC_HEX = "public-hex"
    ED25519_PRIVATE_HEX = "private-hex"
    SSH_PUBLIC_KEY = "ssh"
    GPG_PUBLIC_KEY = "gpg"
    JSON = "json"

    @property
    def is_sensitive(self) -> bool:
        """True when the rendering contains private key material."""
        return self in _SENSITIVE

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat"]) -> "OutputFormat":
        if isinstance(value, OutputFormat):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise keychain_error(
                BK_E_OUTPUT,
                f"unsupported output format {value!r} (expected one of {', '.join(f.value for f in cls)})",
                format=str(value),
            ) from e


_SENSITIVE = frozenset({OutputFormat.HEX_SEED, OutputFormat.ED25519_PRIVATE_HEX, OutputFormat.JSON})


Renderer = Callable[[DerivedKey, KeyDerivation], str]


def _hex_seed(derived: DerivedKey, kd: KeyDerivation) -> str:
    return derived.to_seed().hex()


def _public_hex(derived: DerivedKey, kd: KeyDerivation) -> str:
    return Ed25519KeyPair.from_derived_key(derived).public_key_hex


def _private_hex(derived: DerivedKey, kd: KeyDerivation) -> str:
    return Ed25519KeyPair.from_derived_key(derived).private_key_hex


def _ssh(derived: DerivedKey, kd: KeyDerivation) -> str:
    return Ed25519KeyPair.from_derived_key(derived).to_ssh_public_key(kd.purpose)


def _gpg(derived: DerivedKey, kd: KeyDerivation) -> str:
    return Ed25519KeyPair.from_derived_key(derived).to_gpg_public_key(kd.purpose)


def _json(derived: DerivedKey, kd: KeyDerivation) -> str:
    keypair = Ed25519KeyPair.from_derived_key(derived)
    doc = {
        "seed_hex": derived.to_seed().hex(),
        "ed25519_public_key": keypair.public_key_hex,
        "ed25519_private_key": keypair.private_key_hex,
        "ssh_public_key": keypair.to_ssh_public_key(kd.purpose),
        "schema_type": kd.schema_type,
        "hash_function": kd.hash_function.display_name,
        "purpose": kd.purpose,
    }
    return json.dumps(doc, indent=2, sort_keys=True, ensure_ascii=False)


_RENDERERS: Dict[OutputFormat, Renderer] = {
    OutputFormat.HEX_SEED: _hex_seed,
    OutputFormat.ED25519_PUBLIC_HEX: _public_hex,
    OutputFormat.ED25519_PRIVATE_HEX: _private_hex,
    OutputFormat.SSH_PUBLIC_KEY: _ssh,
    OutputFormat.GPG_PUBLIC_KEY: _gpg,
    OutputFormat.JSON: _json,
}


def format_key(
    derived: DerivedKey,
    key_derivation: KeyDerivation,
    fmt: Union[OutputFormat, str],
) -> str:
    """Render a derived key in the requested format."""
    return _RENDERERS[OutputFormat.parse(fmt)](derived, key_derivation)
