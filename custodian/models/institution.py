"""
Institution data model for verified research institutions
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Any

from .limits import is_stored_int


@dataclass(frozen=True)
class Institution:
    """
    Represents an institution verified by the identity registry admin

    Attributes:
        identity: Principal identifier of the institution
        name: Display name recorded at verification time
        verification_level: Small integer describing the assurance level
        verification_date: Logical time at which the institution was verified
        active: Whether the verification is still in force
    """
    identity: str
    name: str
    verification_level: int
    verification_date: int
    active: bool

    @classmethod
    def create_new(cls, identity: str, name: str, verification_level: int,
                   verification_date: int) -> 'Institution':
        """Create a new active Institution verified at the given logical time"""
        return cls(
            identity=identity,
            name=name,
            verification_level=verification_level,
            verification_date=verification_date,
            active=True
        )

    def validate(self) -> bool:
        """Validate the Institution instance"""
        if not self.identity or not isinstance(self.identity, str):
            return False
        if not isinstance(self.name, str):
            return False
        if not is_stored_int(self.verification_level):
            return False
        if not is_stored_int(self.verification_date):
            return False
        if not isinstance(self.active, bool):
            return False
        return True

    def deactivated(self) -> 'Institution':
        """Return a copy of this record with the verification revoked"""
        return replace(self, active=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Institution':
        """Create Institution from dictionary"""
        return cls(**data)
