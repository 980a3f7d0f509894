"""
Core data models for Custodian
"""

from .institution import Institution
from .dataset import Dataset
from .access_grant import AccessGrant
from .category import Category
from .usage_record import UsageRecord
from .anonymized_record import AnonymizedDatasetRecord
from .limits import MAX_SQLITE_INT

__all__ = [
    "Institution",
    "Dataset",
    "AccessGrant",
    "Category",
    "UsageRecord",
    "AnonymizedDatasetRecord",
    "MAX_SQLITE_INT"
]
