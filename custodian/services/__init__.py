"""
Governance registries for Custodian
"""

from .identity_registry import IdentityRegistry
from .access_registry import OwnershipAndAccessRegistry
from .category_registry import CategoryRegistry, USAGE_TYPES, ANONYMIZATION_METHODS
from .provenance_registry import ProvenanceRegistry

__all__ = ['IdentityRegistry', 'OwnershipAndAccessRegistry', 'CategoryRegistry', 'ProvenanceRegistry',
           'USAGE_TYPES', 'ANONYMIZATION_METHODS']
