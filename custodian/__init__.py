"""
Custodian - research-data governance registries
"""

from .governance import Custodian
from .errors import (
    RegistryError, NotAuthorized, NotOwner, AlreadyVerified, NotFound,
    PermissionNotFound, CategoryNotFound, DatasetNotFound
)

__version__ = "0.1.0"

__all__ = [
    'Custodian',
    'RegistryError',
    'NotAuthorized',
    'NotOwner',
    'AlreadyVerified',
    'NotFound',
    'PermissionNotFound',
    'CategoryNotFound',
    'DatasetNotFound'
]
