"""
bip_keychain.transport: airgapped transfer seams.

Entity records travel to an airgapped machine and public keys travel back.
The wire codec (Uniform Resources with fountain codes) and the QR renderer
are external; this module defines their protocols and the payloads that
pass through them:

- entity payload: the full record as JSON bytes
- public key payload: the raw 32-byte Ed25519 public key
"""

from __future__ import annotations

import math
from typing import Iterable, List, Protocol, runtime_checkable

from .entity import KeyDerivation
from .errors import BK_E_TRANSPORT, KeychainError, keychain_error


DEFAULT_MAX_FRAGMENT_LEN = 200
# fountain decoders typically need ~1.5x the minimum fragment count
REDUNDANCY_FACTOR = 1.5


@runtime_checkable
class TransportCodec(Protocol):
    """Multi-part codec: any sufficiently large subset of parts decodes."""

    def encode(self, payload: bytes, max_fragment_len: int, part_count: int) -> List[str]: ...

    def decode(self, parts: Iterable[str]) -> bytes: ...


@runtime_checkable
class QRRenderer(Protocol):
    def render(self, wire_string: str) -> str: ...


def entity_payload(key_derivation: KeyDerivation) -> bytes:
    return key_derivation.to_json().encode("utf-8")


def entity_from_payload(payload: bytes) -> KeyDerivation:
    try:
        text = bytes(payload).decode("utf-8")
    except UnicodeDecodeError as e:
        raise keychain_error(BK_E_TRANSPORT, f"entity payload is not UTF-8: {e}") from e
    try:
        return KeyDerivation.from_json(text)
    except KeychainError as e:
        raise keychain_error(BK_E_TRANSPORT, f"failed to decode entity payload: {e.message}", cause=e.code) from e


def pubkey_payload(public_key: bytes) -> bytes:
    if len(public_key) != 32:
        raise keychain_error(BK_E_TRANSPORT, f"Invalid public key length: expected 32 bytes, got {len(public_key)}")
    return bytes(public_key)


def pubkey_from_payload(payload: bytes) -> bytes:
    return pubkey_payload(bytes(payload))


def recommended_part_count(payload_len: int, max_fragment_len: int, requested: int = 0) -> int:
    """Number of parts to emit; `requested=0` means "enough to decode reliably"."""
    if max_fragment_len <= 0:
        raise keychain_error(BK_E_TRANSPORT, "max_fragment_len must be positive")
    if requested:
        return requested
    min_fragments = max(1, math.ceil(payload_len / max_fragment_len))
    return math.ceil(min_fragments * REDUNDANCY_FACTOR)


def encode_entity_animated(
    key_derivation: KeyDerivation,
    codec: TransportCodec,
    max_fragment_len: int = DEFAULT_MAX_FRAGMENT_LEN,
    part_count: int = 0,
) -> List[str]:
    payload = entity_payload(key_derivation)
    count = recommended_part_count(len(payload), max_fragment_len, part_count)
    return list(codec.encode(payload, max_fragment_len, count))


def decode_entity_animated(parts: Iterable[str], codec: TransportCodec) -> KeyDerivation:
    return entity_from_payload(codec.decode(parts))


def render_frames(parts: List[str], renderer: QRRenderer) -> List[str]:
    """One displayable frame per wire part."""
    if not parts:
        raise keychain_error(BK_E_TRANSPORT, "No QR frames to display")
    total = len(parts)
    return [
        f"Frame {i}/{total}\n\n{renderer.render(part)}\n\nUR: {part}"
        for i, part in enumerate(parts, start=1)
    ]
