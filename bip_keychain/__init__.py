"""BIP-Keychain package.

Semantic hierarchical key derivation: a human-readable entity record plus a
BIP-39 seed phrase deterministically yields an Ed25519 key.

    entity JSON -> canonical JSON -> hash (hmac_sha512 | blake2b | sha256)
    -> u32 index -> m/83696968'/67797668'/{index}' -> Ed25519 key pair

Convenience imports
------------------
The package avoids import-time side effects. These are available lazily:

    from bip_keychain import Keychain, KeyDerivation, derive_key_from_entity
    from bip_keychain import OutputFormat, format_key, Ed25519KeyPair

Secret sharing and airgapped transport seams live in `bip_keychain.sskr`
and `bip_keychain.transport` and are never imported by the core.
"""

from __future__ import annotations

import re
from importlib import import_module
from pathlib import Path
from typing import Any


def _read_version_from_pyproject() -> str | None:
    """Best-effort version discovery for dev/test environments."""

    try:
        pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
        txt = pyproject.read_text(encoding="utf-8")
        m = re.search(r"^version\s*=\s*\"([^\"]+)\"\s*$", txt, flags=re.MULTILINE)
        return m.group(1) if m else None
    except Exception:
        return None


__version__ = (
    _read_version_from_pyproject()
    or "0.3.0"
)

__all__ = [
    "__version__",
    "Keychain",
    "DerivedKey",
    "KeyDerivation",
    "DerivationConfig",
    "HashFunction",
    "hash_entity",
    "hash_to_index",
    "canonicalize",
    "derive_key_from_entity",
    "Ed25519KeyPair",
    "OutputFormat",
    "format_key",
    "KeychainError",
]

# Lazy export map: name -> (module, attribute)
_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "Keychain": ("bip_keychain.bip32", "Keychain"),
    "DerivedKey": ("bip_keychain.bip32", "DerivedKey"),
    "KeyDerivation": ("bip_keychain.entity", "KeyDerivation"),
    "DerivationConfig": ("bip_keychain.entity", "DerivationConfig"),
    "HashFunction": ("bip_keychain.hashing", "HashFunction"),
    "hash_entity": ("bip_keychain.hashing", "hash_entity"),
    "hash_to_index": ("bip_keychain.derivation", "hash_to_index"),
    "canonicalize": ("bip_keychain.canonical", "canonicalize"),
    "derive_key_from_entity": ("bip_keychain.derivation", "derive_key_from_entity"),
    "Ed25519KeyPair": ("bip_keychain.keys", "Ed25519KeyPair"),
    "OutputFormat": ("bip_keychain.output", "OutputFormat"),
    "format_key": ("bip_keychain.output", "format_key"),
    "KeychainError": ("bip_keychain.errors", "KeychainError"),
}


def __getattr__(name: str) -> Any:
    if name in _LAZY_EXPORTS:
        module_name, attr = _LAZY_EXPORTS[name]
        module = import_module(module_name)
        value = getattr(module, attr)
        # Cache the resolved attribute on the module for faster future access.
        globals()[name] = value
        return value
    raise AttributeError(f"module 'bip_keychain' has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))
