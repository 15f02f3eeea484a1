"""Entity records for BIP-Keychain derivation.

A KeyDerivation is the parsed form of a Nickel-exported JSON record that
says *what a key is for*. The `entity` value is kept as generic JSON; only
its canonical serialization matters for derivation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .canonical import canonical_json_dumps
from .errors import BK_E_ENTITY_FIELD, BK_E_ENTITY_JSON, KeychainError, keychain_error
from .hashing import HashFunction
from .schema import validate_key_derivation


@dataclass(frozen=True)
class DerivationConfig:
    """Derivation configuration.

    `hardened` is recorded for round-tripping; every BIP-Keychain path level
    is hardened regardless.
    """

    hash_function: HashFunction
    hardened: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"hash_function": self.hash_function.value, "hardened": bool(self.hardened)}


@dataclass(frozen=True)
class KeyDerivation:
    """A complete key derivation record."""

    schema_type: str
    entity: Any
    derivation_config: DerivationConfig
    purpose: Optional[str] = None
    metadata: Optional[Any] = None

    @classmethod
    def from_dict(cls, obj: Any) -> "KeyDerivation":
        """Build from an already-parsed JSON object.

        Raises KeychainError (BK_E_ENTITY_FIELD) naming the first offending
        field when the record does not match the expected shape.
        An entity value with no canonical JSON form raises BK_E_ENTITY_NOT_JSON.
        """
        problems = validate_key_derivation(obj)
        if problems:
            first = problems[0]
            raise keychain_error(
                BK_E_ENTITY_FIELD,
                f"invalid entity record: {first.detail}",
                field=first.field,
                errors=[p.detail for p in problems],
            )

        # the entity must have a canonical form before it can be hashed
        canonical_json_dumps(obj["entity"])

        cfg = obj["derivation_config"]
        return cls(
            schema_type=obj["schema_type"],
            entity=obj["entity"],
            derivation_config=DerivationConfig(
                hash_function=HashFunction(cfg["hash_function"]),
                hardened=cfg["hardened"],
            ),
            purpose=obj.get("purpose"),
            metadata=obj.get("metadata"),
        )

    @classmethod
    def from_json(cls, text: str) -> "KeyDerivation":
        """Parse a KeyDerivation from a JSON string.

        Raises KeychainError (BK_E_ENTITY_JSON) for text that is not strict
        JSON: syntax errors, NaN/Infinity literals, lone surrogate escapes
        and nesting too deep to parse.
        """
        try:
            obj = json.loads(text)
        except RecursionError as e:
            raise keychain_error(BK_E_ENTITY_JSON, "invalid entity JSON: nested too deeply") from e
        except (TypeError, ValueError) as e:
            raise keychain_error(BK_E_ENTITY_JSON, f"invalid entity JSON: {e}") from e
        try:
            canonical_json_dumps(obj)
        except KeychainError as e:
            raise keychain_error(BK_E_ENTITY_JSON, f"invalid entity JSON: {e.message}") from e
        return cls.from_dict(obj)

    @property
    def hash_function(self) -> HashFunction:
        return self.derivation_config.hash_function

    def entity_json(self) -> str:
        """The entity as canonical JSON (the string that gets hashed)."""
        return canonical_json_dumps(self.entity)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "schema_type": self.schema_type,
            "entity": self.entity,
            "derivation_config": self.derivation_config.to_dict(),
        }
        if self.purpose is not None:
            d["purpose"] = self.purpose
        if self.metadata is not None:
            d["metadata"] = self.metadata
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def canonical_json(self) -> str:
        """The whole record as canonical JSON."""
        return canonical_json_dumps(self.to_dict())
