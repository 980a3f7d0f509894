"""
Dataset ownership record
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Any

from .limits import is_stored_int


@dataclass(frozen=True)
class Dataset:
    """
    Ownership record for a registered dataset

    Attributes:
        dataset_id: Caller-coordinated numeric identifier
        owner: Principal currently owning the dataset
    """
    dataset_id: int
    owner: str

    def validate(self) -> bool:
        """Validate the Dataset instance"""
        if not is_stored_int(self.dataset_id):
            return False
        if not self.owner or not isinstance(self.owner, str):
            return False
        return True

    def with_owner(self, new_owner: str) -> 'Dataset':
        return replace(self, owner=new_owner)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Dataset':
        return cls(**data)
