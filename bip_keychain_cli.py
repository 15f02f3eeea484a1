#!/usr/bin/env python3
"""
BIP-Keychain - Command Line Interface

Usage:
    bip-keychain derive <entity.json>          Derive a key from an entity JSON file
                                               (seed phrase read from BIP_KEYCHAIN_SEED)
    bip-keychain index <entity.json>           Show canonical entity JSON, index and path
    bip-keychain generate-seed [--words N]     Generate a new BIP-39 seed phrase

Use "-" as the entity path to read from stdin.

Exit codes: 0 success, 3 invalid input (entity, seed phrase, config), 1 other failure.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from bip_keychain.bip32 import Keychain, derivation_path, generate_mnemonic
from bip_keychain.config import KeychainSettings, load_config, parse_hex
from bip_keychain.derivation import derive_key_from_entity, entity_index
from bip_keychain.entity import KeyDerivation
from bip_keychain.errors import (
    BK_E_CONFIG,
    BK_E_ENTITY_FIELD,
    BK_E_ENTITY_JSON,
    BK_E_ENTITY_NOT_JSON,
    BK_E_SEED_PHRASE,
    KeychainError,
)
from bip_keychain.output import OutputFormat, format_key


logger = logging.getLogger("bip_keychain")

_INPUT_ERRORS = {BK_E_CONFIG, BK_E_ENTITY_FIELD, BK_E_ENTITY_JSON, BK_E_ENTITY_NOT_JSON, BK_E_SEED_PHRASE}


def setup_logging(verbose: bool = False):
    """Configure logging for CLI usage."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )
    logger.setLevel(level)


def _fail(err: KeychainError) -> None:
    print(f"ERROR [{err.stage}]: {err}", file=sys.stderr)
    field = err.details.get("field")
    if field:
        print(f"  expected field: {field}", file=sys.stderr)
    sys.exit(3 if err.code in _INPUT_ERRORS else 1)


def read_entity(path: str) -> KeyDerivation:
    """Read and parse an entity file ("-" = stdin)."""
    if path == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            sys.exit(3)
        except OSError as e:
            print(f"ERROR: Failed to read entity file {path}: {e}", file=sys.stderr)
            sys.exit(3)
    return KeyDerivation.from_json(text)


def _settings(args) -> KeychainSettings:
    settings = KeychainSettings.from_env(config=load_config(args.config))
    entropy_hex: Optional[str] = getattr(args, "parent_entropy", None)
    if entropy_hex:
        settings.parent_entropy = parse_hex(entropy_hex, name="parent entropy")
    return settings


def cmd_derive(args):
    """Derive a key from an entity JSON file."""
    try:
        settings = _settings(args)
        fmt = OutputFormat.parse(args.format or settings.output_format)
        key_derivation = read_entity(args.entity_file)
        keychain = Keychain.from_mnemonic(
            settings.require_seed_phrase(),
            passphrase=settings.passphrase,
            language=settings.language,
        )
        derived = derive_key_from_entity(keychain, key_derivation, settings.parent_entropy)
        rendered = format_key(derived, key_derivation, fmt)
    except KeychainError as e:
        _fail(e)
        return

    if fmt.is_sensitive:
        logger.warning("output contains private key material")
    print(rendered)
    del keychain, derived, rendered


def cmd_index(args):
    """Show how an entity maps to a derivation path (no seed phrase needed)."""
    try:
        settings = _settings(args)
        key_derivation = read_entity(args.entity_file)
        index = entity_index(key_derivation, settings.parent_entropy)
        canonical = key_derivation.entity_json()
    except KeychainError as e:
        _fail(e)
        return

    print(f"Schema type:   {key_derivation.schema_type}")
    print(f"Hash function: {key_derivation.hash_function.display_name}")
    print(f"Entity:        {canonical}")
    print(f"Index:         {index}")
    print(f"Path:          {derivation_path(index)}")


def cmd_generate_seed(args):
    """Generate a new BIP-39 seed phrase."""
    try:
        phrase = generate_mnemonic(args.words)
    except KeychainError as e:
        _fail(e)
        return
    print(phrase)
    print(
        "WARNING: Store this securely! Anyone with this phrase can derive all your keys.",
        file=sys.stderr,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="bip-keychain",
        description="BIP-Keychain: semantic hierarchical key derivation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--config", type=Path, help="Path to config JSON file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # derive command
    derive_parser = subparsers.add_parser("derive", help="Derive a key from an entity JSON file")
    derive_parser.add_argument("entity_file", help="Path to entity JSON file (Nickel-exported), or -")
    derive_parser.add_argument(
        "--parent-entropy",
        metavar="HEX",
        help="Parent entropy (hex); HMAC key for hmac_sha512 entities",
    )
    derive_parser.add_argument(
        "--format",
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Output format (default: hex, or BIP_KEYCHAIN_FORMAT)",
    )
    derive_parser.set_defaults(func=cmd_derive)

    # index command
    index_parser = subparsers.add_parser("index", help="Show the derivation index and path for an entity")
    index_parser.add_argument("entity_file", help="Path to entity JSON file, or -")
    index_parser.add_argument("--parent-entropy", metavar="HEX", help="Parent entropy (hex)")
    index_parser.set_defaults(func=cmd_index)

    # generate-seed command
    gen_parser = subparsers.add_parser("generate-seed", help="Generate a new BIP-39 seed phrase")
    gen_parser.add_argument(
        "-w", "--words",
        type=int,
        default=24,
        choices=[12, 15, 18, 21, 24],
        help="Number of words (default: 24)",
    )
    gen_parser.set_defaults(func=cmd_generate_seed)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
