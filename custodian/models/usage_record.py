"""
UsageRecord data model for the dataset usage log
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any

from .limits import is_stored_int


@dataclass(frozen=True)
class UsageRecord:
    """
    Immutable entry in the usage log

    Attributes:
        record_id: Sequential identifier starting at 1
        dataset_id: Dataset the usage refers to (not checked against ownership)
        user: Principal that recorded the usage
        usage_type: Usage type category id
        timestamp: Logical time of recording
        details: Free-text details
    """
    record_id: int
    dataset_id: int
    user: str
    usage_type: int
    timestamp: int
    details: str

    def validate(self) -> bool:
        """Validate the UsageRecord instance"""
        if not is_stored_int(self.record_id, minimum=1):
            return False
        if not is_stored_int(self.dataset_id):
            return False
        if not self.user or not isinstance(self.user, str):
            return False
        if not is_stored_int(self.usage_type):
            return False
        if not is_stored_int(self.timestamp):
            return False
        if not isinstance(self.details, str):
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UsageRecord':
        """Create UsageRecord from dictionary"""
        return cls(**data)
