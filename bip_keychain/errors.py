"""Stable error taxonomy for BIP-Keychain.

This module defines machine-readable error codes and a single exception type
used across the derivation pipeline, the collaborator seams and the CLI.

Design goals:
- Stable `code` string suitable for programmatic handling.
- `stage` naming which pipeline step failed (entity, hash, derivation, ...).
- Structured `details` for debugging without parsing messages.

Every stage is a pure function of its inputs, so nothing here is retryable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


# Entity parsing / canonicalization
BK_E_ENTITY_JSON = "BK_E_ENTITY_JSON"
BK_E_ENTITY_FIELD = "BK_E_ENTITY_FIELD"
BK_E_ENTITY_NOT_JSON = "BK_E_ENTITY_NOT_JSON"

# Hashing
BK_E_HASH = "BK_E_HASH"

# Hierarchical derivation
BK_E_SEED_PHRASE = "BK_E_SEED_PHRASE"
BK_E_DERIVATION = "BK_E_DERIVATION"

# Key material / rendering
BK_E_KEY_MATERIAL = "BK_E_KEY_MATERIAL"
BK_E_OUTPUT = "BK_E_OUTPUT"

# Collaborator seams
BK_E_SHARING = "BK_E_SHARING"
BK_E_TRANSPORT = "BK_E_TRANSPORT"

# Ambient
BK_E_CONFIG = "BK_E_CONFIG"
BK_E_RANDOMNESS = "BK_E_RANDOMNESS"


# code -> pipeline stage
STAGES: Dict[str, str] = {
    BK_E_ENTITY_JSON: "entity",
    BK_E_ENTITY_FIELD: "entity",
    BK_E_ENTITY_NOT_JSON: "entity",
    BK_E_HASH: "hash",
    BK_E_SEED_PHRASE: "derivation",
    BK_E_DERIVATION: "derivation",
    BK_E_KEY_MATERIAL: "key_material",
    BK_E_OUTPUT: "output",
    BK_E_SHARING: "sharing",
    BK_E_TRANSPORT: "transport",
    BK_E_CONFIG: "config",
    BK_E_RANDOMNESS: "seed_generation",
}


@dataclass
class KeychainError(Exception):
    """Base BIP-Keychain exception with stable error code."""

    code: str
    message: str
    stage: str = "internal"
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": bool(self.retryable),
        }
        if self.details:
            d["details"] = self.details
        return d

    def __str__(self) -> str:
        # Keep message readable; details are available via .as_dict()
        return f"{self.code}: {self.message}"


def keychain_error(code: str, message: str, **details: Any) -> KeychainError:
    return KeychainError(
        code=code,
        message=message,
        stage=STAGES.get(code, "internal"),
        details=details,
    )
