"""
Utility functions and helpers for Custodian
"""

from .clock import LogicalClock, SystemClock, make_clock
from .hashing import HASH_SIZE, fingerprint, validate_hash, parse_hex_hash

__all__ = ['LogicalClock', 'SystemClock', 'make_clock', 'HASH_SIZE', 'fingerprint', 'validate_hash', 'parse_hex_hash']
