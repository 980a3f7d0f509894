"""
AccessGrant data model for time-bounded dataset access permissions
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Any

from .limits import is_stored_int


@dataclass(frozen=True)
class AccessGrant:
    """
    Represents an access grant allowing an accessor to use a specific dataset

    Grants are keyed uniquely by (dataset_id, accessor). Expiration is a
    logical time (e.g. block height), compared against the registry clock.

    Attributes:
        dataset_id: ID of the dataset this grant applies to
        accessor: Principal receiving access
        granted_by: Owner principal who issued the grant
        access_level: Small integer describing the level of access
        expiration: Logical time at which the grant stops being valid
        active: Whether the grant has not been revoked
    """
    dataset_id: int
    accessor: str
    granted_by: str
    access_level: int
    expiration: int
    active: bool

    @classmethod
    def create_new(cls, dataset_id: int, accessor: str, granted_by: str,
                   access_level: int, expiration: int) -> 'AccessGrant':
        """Create a new active AccessGrant"""
        return cls(
            dataset_id=dataset_id,
            accessor=accessor,
            granted_by=granted_by,
            access_level=access_level,
            expiration=expiration,
            active=True
        )

    def validate(self) -> bool:
        """Validate the AccessGrant instance"""
        if not is_stored_int(self.dataset_id):
            return False
        if not self.accessor or not isinstance(self.accessor, str):
            return False
        if not self.granted_by or not isinstance(self.granted_by, str):
            return False
        if not is_stored_int(self.access_level):
            return False
        if not is_stored_int(self.expiration):
            return False
        if not isinstance(self.active, bool):
            return False
        return True

    def is_expired(self, now: int) -> bool:
        """Check if the grant has expired; a grant expiring exactly at now is expired"""
        return self.expiration <= now

    def is_valid(self, now: int) -> bool:
        """Check if the grant is valid (active and not expired)"""
        return self.active and not self.is_expired(now)

    def revoked(self) -> 'AccessGrant':
        """Return a copy of this grant with access revoked"""
        return replace(self, active=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccessGrant':
        """Create AccessGrant from dictionary"""
        return cls(**data)
