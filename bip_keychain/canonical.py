"""Canonical JSON for entity hashing.

Entities are hashed as canonical JSON: object keys sorted (recursively), no
insignificant whitespace, UTF-8 without ASCII escaping. Two semantically
equal JSON documents that differ only in key order or formatting produce the
same bytes.

Numbers are not normalized: ``1`` and ``1.0`` stay distinct.
"""

from __future__ import annotations

import json
import math
from typing import Any, Union

from .errors import BK_E_ENTITY_NOT_JSON, KeychainError, keychain_error


def _check_finite(obj: Any, path: str = "$") -> None:
    if isinstance(obj, float) and not math.isfinite(obj):
        raise keychain_error(BK_E_ENTITY_NOT_JSON, "non-finite float", path=path)
    if isinstance(obj, dict):
        for k, v in obj.items():
            _check_finite(v, f"{path}['{k}']")
    elif isinstance(obj, (list, tuple)):
        for i, v in enumerate(obj):
            _check_finite(v, f"{path}[{i}]")


def canonical_json_dumps(obj: Any) -> str:
    """Serialize an already-parsed JSON value canonically.

    Raises KeychainError (BK_E_ENTITY_NOT_JSON) for values that have no JSON
    representation, including NaN/Infinity, strings that cannot be encoded
    as UTF-8 (lone surrogates) and nesting too deep to serialize.
    """

    try:
        _check_finite(obj)
        text = json.dumps(
            obj,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except RecursionError as e:
        raise keychain_error(BK_E_ENTITY_NOT_JSON, "value is nested too deeply") from e
    except (TypeError, ValueError) as e:
        raise keychain_error(
            BK_E_ENTITY_NOT_JSON,
            f"value is not JSON-serializable: {e}",
            got=type(obj).__name__,
        ) from e
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise keychain_error(
            BK_E_ENTITY_NOT_JSON,
            f"string is not valid Unicode (lone surrogate at offset {e.start})",
        ) from e
    return text


def canonicalize(data: Union[str, bytes]) -> bytes:
    """Canonical bytes for a raw JSON document.

    Input that does not parse as JSON, or that cannot be re-serialized as
    UTF-8 canonical JSON, is returned unchanged (as UTF-8 bytes when given a
    str, keeping any lone surrogates), so fixed literals such as test vectors
    can be hashed directly. Never raises.
    """

    if isinstance(data, str):
        raw = data.encode("utf-8", errors="surrogatepass")
    else:
        raw = bytes(data)
    try:
        value = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError):
        return raw
    try:
        return canonical_json_dumps(value).encode("utf-8")
    except KeychainError:
        # NaN literals, lone "\ud800" escapes, nesting too deep to re-serialize
        return raw
