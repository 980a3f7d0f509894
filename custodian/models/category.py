"""
Category data model shared by usage types and anonymization methods
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Any

from .limits import is_stored_int


@dataclass(frozen=True)
class Category:
    """
    An admin-curated taxonomy entry referenced by id from provenance records

    Attributes:
        category_id: Admin-assigned numeric identifier
        name: Short display name
        description: Free-text description
        active: Whether the entry is still in use; inactive entries stay readable
    """
    category_id: int
    name: str
    description: str
    active: bool

    @classmethod
    def create_new(cls, category_id: int, name: str, description: str) -> 'Category':
        return cls(category_id=category_id, name=name, description=description, active=True)

    def validate(self) -> bool:
        """Validate the Category instance"""
        if not is_stored_int(self.category_id):
            return False
        if not isinstance(self.name, str) or not isinstance(self.description, str):
            return False
        if not isinstance(self.active, bool):
            return False
        return True

    def deactivated(self) -> 'Category':
        return replace(self, active=False)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(**data)
