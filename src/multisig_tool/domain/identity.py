from __future__ import annotations

"""Account identities: formatted account hashes and the public keys they derive from.

An account hash is the blake2b-256 digest of ``<algorithm name> 0x00 <key bytes>``
and is written as ``account-hash-`` followed by 64 hex digits.
"""

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from .errors import (
    InvalidAccountHashFormatError,
    ParseHexPublicKeyError,
    ParsePublicKeyFileError,
)

ACCOUNT_HASH_LENGTH = 32
ACCOUNT_HASH_PREFIX = "account-hash-"

ED25519 = "ed25519"
SECP256K1 = "secp256k1"

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")
# tag byte -> (algorithm, key length)
_KEY_TAGS = {
    1: (ED25519, 32),
    2: (SECP256K1, 33),
}


@dataclass(frozen=True)
class AccountHash:
    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != ACCOUNT_HASH_LENGTH:
            raise ValueError(f"account hash must be {ACCOUNT_HASH_LENGTH} bytes, got {len(self.value)}")

    @classmethod
    def from_formatted_str(cls, text: str) -> "AccountHash":
        if not text.startswith(ACCOUNT_HASH_PREFIX):
            raise InvalidAccountHashFormatError(f"missing '{ACCOUNT_HASH_PREFIX}' prefix")
        digits = text[len(ACCOUNT_HASH_PREFIX):]
        if not _HEX_DIGITS.fullmatch(digits):
            raise InvalidAccountHashFormatError("contains non-hex characters")
        if len(digits) != ACCOUNT_HASH_LENGTH * 2:
            raise InvalidAccountHashFormatError(
                f"expected {ACCOUNT_HASH_LENGTH * 2} hex digits, got {len(digits)}"
            )
        return cls(bytes.fromhex(digits))

    @classmethod
    def from_public_key(cls, algorithm: str, raw: bytes) -> "AccountHash":
        preimage = algorithm.lower().encode("utf-8") + b"\x00" + raw
        return cls(hashlib.blake2b(preimage, digest_size=ACCOUNT_HASH_LENGTH).digest())

    def to_formatted_string(self) -> str:
        return ACCOUNT_HASH_PREFIX + self.value.hex()

    def __str__(self) -> str:
        return self.to_formatted_string()


@dataclass(frozen=True)
class PublicKey:
    algorithm: str
    raw: bytes

    @classmethod
    def from_hex(cls, text: str) -> "PublicKey":
        """Parse a tag-prefixed hex public key as produced by the casper-client."""
        text = text.strip()
        if not text or not _HEX_DIGITS.fullmatch(text) or len(text) % 2:
            raise ParseHexPublicKeyError("not a valid hex string")
        data = bytes.fromhex(text)
        tag, raw = data[0], data[1:]
        if tag not in _KEY_TAGS:
            raise ParseHexPublicKeyError(f"unsupported key tag {tag:#04x}")
        algorithm, expected = _KEY_TAGS[tag]
        if len(raw) != expected:
            raise ParseHexPublicKeyError(
                f"{algorithm} public key must be {expected} bytes, got {len(raw)}"
            )
        try:
            if algorithm == ED25519:
                ed25519.Ed25519PublicKey.from_public_bytes(raw)
            else:
                ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), raw)
        except ValueError as exc:
            raise ParseHexPublicKeyError(str(exc)) from exc
        return cls(algorithm=algorithm, raw=raw)

    @classmethod
    def from_pem(cls, data: bytes) -> "PublicKey":
        key = serialization.load_pem_public_key(data)
        if isinstance(key, ed25519.Ed25519PublicKey):
            raw = key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
            return cls(algorithm=ED25519, raw=raw)
        if isinstance(key, ec.EllipticCurvePublicKey) and isinstance(key.curve, ec.SECP256K1):
            raw = key.public_bytes(serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint)
            return cls(algorithm=SECP256K1, raw=raw)
        raise ValueError(f"unsupported public key type {type(key).__name__}")

    def to_account_hash(self) -> AccountHash:
        return AccountHash.from_public_key(self.algorithm, self.raw)


def account_hash_from_key_bytes(data: bytes, name: str) -> str:
    """Derive a formatted account hash from the contents of a public key file.

    PEM is tried first, then tag-prefixed hex. ``name`` is only used to pick
    which failure to report: ``*.pem`` and ``*public_key_hex`` files report the
    parser's message, anything else reports a bare failure.
    """
    try:
        return PublicKey.from_pem(data).to_account_hash().to_formatted_string()
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        if name.endswith(".pem"):
            raise ParsePublicKeyFileError(name, str(exc)) from exc

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParsePublicKeyFileError(name, str(exc)) from exc

    try:
        return PublicKey.from_hex(text).to_account_hash().to_formatted_string()
    except ParseHexPublicKeyError as exc:
        if name.endswith("public_key_hex"):
            raise ParsePublicKeyFileError(name, exc.cause) from exc

    raise ParsePublicKeyFileError(name)


def account_hash_from_file(path: Union[str, Path]) -> str:
    """Return the formatted account hash of the public key stored at ``path``."""
    name = str(path)
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ParsePublicKeyFileError(name, str(exc)) from exc
    return account_hash_from_key_bytes(data, name)


def account_hash_from_hex_public_key(hex_public_key: str) -> str:
    return PublicKey.from_hex(hex_public_key).to_account_hash().to_formatted_string()


def validate_account_hash(formatted_account_hash: str) -> None:
    """Raise ``InvalidAccountHashFormatError`` unless the input is a formatted account hash."""
    AccountHash.from_formatted_str(formatted_account_hash)
