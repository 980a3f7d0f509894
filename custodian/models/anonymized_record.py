"""
AnonymizedDatasetRecord data model for registered anonymized derivatives
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any

from ..utils.hashing import HASH_SIZE
from .limits import is_stored_int


@dataclass(frozen=True)
class AnonymizedDatasetRecord:
    """
    Immutable record binding an original dataset hash to its anonymized hash

    Attributes:
        record_id: Sequential identifier starting at 1
        original_hash: 32-byte hash of the source dataset
        anonymized_hash: 32-byte hash of the anonymized dataset
        method_id: Anonymization method category id
        anonymizer: Principal that registered the derivative
        timestamp: Logical time of registration
    """
    record_id: int
    original_hash: bytes
    anonymized_hash: bytes
    method_id: int
    anonymizer: str
    timestamp: int

    def validate(self) -> bool:
        """Validate the AnonymizedDatasetRecord instance"""
        if not is_stored_int(self.record_id, minimum=1):
            return False
        if not isinstance(self.original_hash, bytes) or len(self.original_hash) != HASH_SIZE:
            return False
        if not isinstance(self.anonymized_hash, bytes) or len(self.anonymized_hash) != HASH_SIZE:
            return False
        if not is_stored_int(self.method_id):
            return False
        if not self.anonymizer or not isinstance(self.anonymizer, str):
            return False
        if not is_stored_int(self.timestamp):
            return False
        return True

    def matches(self, claimed_hash: bytes) -> bool:
        """Check a claimed anonymized hash against the stored one"""
        return self.anonymized_hash == claimed_hash

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        data = asdict(self)
        # Hashes are serialized as hex strings
        data['original_hash'] = self.original_hash.hex()
        data['anonymized_hash'] = self.anonymized_hash.hex()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnonymizedDatasetRecord':
        """Create AnonymizedDatasetRecord from dictionary"""
        data = dict(data)
        data['original_hash'] = bytes.fromhex(data['original_hash'])
        data['anonymized_hash'] = bytes.fromhex(data['anonymized_hash'])
        return cls(**data)
