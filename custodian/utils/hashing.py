"""
Hashing utilities for anonymized dataset fingerprints using SHA-256
"""

from cryptography.hazmat.primitives import hashes
from typing import Union


HASH_SIZE = 32


def fingerprint(data: Union[str, bytes]) -> bytes:
    """
    Compute the 32-byte SHA-256 fingerprint of dataset content

    Args:
        data: Dataset content; strings are encoded as UTF-8

    Returns:
        Raw 32-byte digest suitable for anonymization records
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


def validate_hash(value: bytes, label: str = "hash") -> bytes:
    """
    Check that a value is a fixed-size hash

    Raises:
        ValueError: If value is not exactly HASH_SIZE bytes
    """
    if not isinstance(value, (bytes, bytearray)):
        raise ValueError(f"{label} must be bytes")
    if len(value) != HASH_SIZE:
        raise ValueError(f"{label} must be exactly {HASH_SIZE} bytes")
    return bytes(value)


def parse_hex_hash(value: str, label: str = "hash") -> bytes:
    """Decode a hex-encoded hash received from an external caller"""
    try:
        raw = bytes.fromhex(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a hex string")
    return validate_hash(raw, label)
