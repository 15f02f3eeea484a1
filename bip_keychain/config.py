"""Runtime settings for BIP-Keychain front ends.

Settings come from an optional JSON config file and the environment
(environment wins):

    BIP_KEYCHAIN_SEED            BIP-39 mnemonic (never accepted on argv)
    BIP_KEYCHAIN_PASSPHRASE      optional BIP-39 passphrase
    BIP_KEYCHAIN_PARENT_ENTROPY  hex HMAC key for hmac_sha512 entities
    BIP_KEYCHAIN_FORMAT          default output format

Config file keys: "parent_entropy" (hex), "format", "language".
The seed phrase is deliberately not read from config files.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import BK_E_CONFIG, keychain_error


SEED_ENV = "BIP_KEYCHAIN_SEED"
PASSPHRASE_ENV = "BIP_KEYCHAIN_PASSPHRASE"
PARENT_ENTROPY_ENV = "BIP_KEYCHAIN_PARENT_ENTROPY"
FORMAT_ENV = "BIP_KEYCHAIN_FORMAT"

DEFAULT_PARENT_ENTROPY = b"bip-keychain-default-entropy-32!"
DEFAULT_FORMAT = "hex"


def load_config(config_path: Optional[Path]) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    A missing path yields an empty config; unreadable or invalid JSON raises
    KeychainError (BK_E_CONFIG) rather than silently falling back.
    """
    if config_path and Path(config_path).exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise keychain_error(
                BK_E_CONFIG, f"Invalid JSON in config file '{config_path}': {e}", path=str(config_path)
            ) from e
        except OSError as e:
            raise keychain_error(
                BK_E_CONFIG, f"Failed to read config file '{config_path}': {e}", path=str(config_path)
            ) from e
        if not isinstance(data, dict):
            raise keychain_error(BK_E_CONFIG, "config file must contain a JSON object", path=str(config_path))
        return data
    return {}


def parse_hex(value: str, *, name: str) -> bytes:
    try:
        return bytes.fromhex(value.strip())
    except ValueError as e:
        raise keychain_error(BK_E_CONFIG, f"Failed to decode {name} hex string: {e}", setting=name) from e


@dataclass
class KeychainSettings:
    seed_phrase: Optional[str] = field(default=None, repr=False)
    passphrase: str = field(default="", repr=False)
    parent_entropy: bytes = field(default=DEFAULT_PARENT_ENTROPY, repr=False)
    output_format: str = DEFAULT_FORMAT
    language: str = "english"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> "KeychainSettings":
        env = os.environ if environ is None else environ
        cfg = dict(config or {})

        entropy = DEFAULT_PARENT_ENTROPY
        entropy_hex = env.get(PARENT_ENTROPY_ENV) or cfg.get("parent_entropy")
        if entropy_hex:
            entropy = parse_hex(str(entropy_hex), name="parent entropy")

        return cls(
            seed_phrase=(env.get(SEED_ENV) or None),
            passphrase=env.get(PASSPHRASE_ENV, ""),
            parent_entropy=entropy,
            output_format=(env.get(FORMAT_ENV) or cfg.get("format") or DEFAULT_FORMAT),
            language=str(cfg.get("language") or "english"),
        )

    def require_seed_phrase(self) -> str:
        if not self.seed_phrase or not self.seed_phrase.strip():
            raise keychain_error(
                BK_E_CONFIG,
                f"{SEED_ENV} environment variable not set. "
                f"Set your BIP-39 seed phrase: export {SEED_ENV}=\"your twelve word phrase...\" "
                "(the seed phrase is never accepted as a command-line argument, "
                "which would be visible in process listings)",
                setting=SEED_ENV,
            )
        return self.seed_phrase
