"""JSON Schema validation for key-derivation records.

The record shape is the Nickel-exported entity format:

    {
      "schema_type": "<string>",
      "entity": <any JSON value>,
      "derivation_config": {"hash_function": "hmac_sha512"|"blake2b"|"sha256", "hardened": <bool>},
      "purpose": "<string>",        (optional)
      "metadata": <any JSON value>  (optional)
    }

Design notes:
- Uses jsonschema Draft 2020-12.
- Unknown top-level fields are tolerated; nested config is strict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class SchemaMessage:
    ok: bool
    code: str
    detail: str
    field: Optional[str] = None


KEY_DERIVATION_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "KeyDerivation",
    "type": "object",
    "required": ["schema_type", "entity", "derivation_config"],
    "properties": {
        "schema_type": {"type": "string"},
        "entity": {},
        "derivation_config": {
            "type": "object",
            "required": ["hash_function", "hardened"],
            "properties": {
                "hash_function": {"enum": ["hmac_sha512", "blake2b", "sha256"]},
                "hardened": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "purpose": {"type": ["string", "null"]},
        "metadata": {},
    },
}


def _get_validator():
    try:
        import jsonschema
    except Exception as e:  # pragma: no cover
        raise RuntimeError(
            "jsonschema is required for entity validation. Install with: pip install jsonschema"
        ) from e

    return jsonschema.Draft202012Validator(KEY_DERIVATION_SCHEMA)


def _error_field(err) -> str:
    path = [str(p) for p in err.absolute_path]
    instance = err.instance if isinstance(err.instance, dict) else {}
    # "required" and "additionalProperties" errors point at the parent object;
    # name the missing or unexpected property instead
    if err.validator == "required":
        missing = [k for k in err.validator_value if k not in instance]
        # one error per missing property; match it by its repr
        named = [k for k in missing if err.message.startswith(repr(k))]
        if named or missing:
            path.append((named or missing)[0])
    elif err.validator == "additionalProperties":
        allowed = err.schema.get("properties", {})
        extra = sorted(k for k in instance if k not in allowed)
        if extra:
            path.append(extra[0])
    return ".".join(path) or "<root>"


def validate_key_derivation(obj: Any) -> List[SchemaMessage]:
    """Validate a parsed record; returns only failures (empty list when valid)."""

    validator = _get_validator()
    errors = sorted(validator.iter_errors(obj), key=lambda e: list(map(str, e.absolute_path)))
    msgs: List[SchemaMessage] = []
    for e in errors[:50]:
        loc = _error_field(e)
        msgs.append(SchemaMessage(False, "SCHEMA_ERROR", f"{loc}: {e.message}", field=loc))
    return msgs
