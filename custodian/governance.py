"""
Main Custodian class - integrates the governance registries behind one call surface
"""

import logging
from typing import Optional

from .config.settings import Settings
from .errors import RegistryError
from .models import (
    AccessGrant, AnonymizedDatasetRecord, Category, Dataset, Institution, UsageRecord
)
from .services.identity_registry import IdentityRegistry
from .services.access_registry import OwnershipAndAccessRegistry
from .services.category_registry import CategoryRegistry, USAGE_TYPES, ANONYMIZATION_METHODS
from .services.provenance_registry import ProvenanceRegistry
from .utils.clock import make_clock


logger = logging.getLogger(__name__)

REGISTRY_NAMES = ('identity', 'access', 'usage_types', 'anonymization_methods', 'provenance')


class Custodian:
    """
    Research-data governance facade

    Each registry keeps its own admin; transferring admin on one registry does
    not affect the others. Registry errors are logged and re-raised unchanged,
    unexpected failures are wrapped in RuntimeError.
    """

    def __init__(self,
                 identity: IdentityRegistry,
                 access: OwnershipAndAccessRegistry,
                 usage_types: CategoryRegistry,
                 anonymization_methods: CategoryRegistry,
                 provenance: ProvenanceRegistry,
                 clock=None):
        self.identity = identity
        self.access = access
        self.usage_types = usage_types
        self.anonymization_methods = anonymization_methods
        self.provenance = provenance
        self.clock = clock

        logger.info("Custodian initialized with all registries")

    @classmethod
    def create(cls, admin: str, settings: Optional[Settings] = None, clock=None) -> 'Custodian':
        """
        Build all registries from settings, sharing one clock and initial admin

        Args:
            admin: Initial admin principal of every registry
            settings: Storage and clock configuration (loaded from env if None)
            clock: Clock override; built from settings.clock if None
        """
        settings = settings or Settings()
        clock = clock or make_clock(settings.clock)
        usage_types = CategoryRegistry(
            admin, kind=USAGE_TYPES, db_path=settings.get_db_path('usage_types'), clock=clock
        )
        anonymization_methods = CategoryRegistry(
            admin, kind=ANONYMIZATION_METHODS,
            db_path=settings.get_db_path('anonymization_methods'), clock=clock
        )
        return cls(
            identity=IdentityRegistry(admin, settings.get_db_path('identity'), clock),
            access=OwnershipAndAccessRegistry(admin, settings.get_db_path('access'), clock),
            usage_types=usage_types,
            anonymization_methods=anonymization_methods,
            provenance=ProvenanceRegistry(
                admin, usage_types, anonymization_methods,
                settings.get_db_path('provenance'), clock
            ),
            clock=clock
        )

    async def _call(self, operation: str, coro):
        try:
            result = await coro
        except RegistryError as e:
            logger.warning(f"{operation} rejected: {e.kind} ({e.code}): {e.message}")
            raise
        except ValueError as e:
            logger.error(f"Validation error in {operation}: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {operation}: {e}")
            raise RuntimeError(f"{operation} failed: {str(e)}")

        logger.debug(f"{operation} succeeded")
        return result

    # Institution verification

    async def verify_institution(self, caller: str, institution: str, name: str, level: int) -> bool:
        return await self._call("verify_institution",
                                self.identity.verify(caller, institution, name, level))

    async def revoke_verification(self, caller: str, institution: str) -> bool:
        return await self._call("revoke_verification", self.identity.revoke(caller, institution))

    async def is_verified(self, institution: str) -> bool:
        return await self._call("is_verified", self.identity.is_verified(institution))

    async def get_institution_details(self, institution: str) -> Optional[Institution]:
        return await self._call("get_institution_details", self.identity.get_details(institution))

    # Dataset ownership and access control

    async def register_dataset(self, caller: str, dataset_id: int) -> bool:
        return await self._call("register_dataset", self.access.register_dataset(caller, dataset_id))

    async def is_dataset_owner(self, caller: str, dataset_id: int) -> bool:
        return await self._call("is_dataset_owner", self.access.is_owner(caller, dataset_id))

    async def get_dataset(self, dataset_id: int) -> Optional[Dataset]:
        return await self._call("get_dataset", self.access.get_dataset(dataset_id))

    async def grant_access(self, caller: str, dataset_id: int, accessor: str,
                           access_level: int, expiration: int) -> bool:
        return await self._call("grant_access", self.access.grant_access(
            caller, dataset_id, accessor, access_level, expiration
        ))

    async def revoke_access(self, caller: str, dataset_id: int, accessor: str) -> bool:
        return await self._call("revoke_access",
                                self.access.revoke_access(caller, dataset_id, accessor))

    async def has_access(self, dataset_id: int, accessor: str) -> bool:
        return await self._call("has_access", self.access.has_access(dataset_id, accessor))

    async def get_access_details(self, dataset_id: int, accessor: str) -> Optional[AccessGrant]:
        return await self._call("get_access_details",
                                self.access.get_access_details(dataset_id, accessor))

    async def transfer_dataset_ownership(self, caller: str, dataset_id: int, new_owner: str) -> bool:
        return await self._call("transfer_dataset_ownership",
                                self.access.transfer_ownership(caller, dataset_id, new_owner))

    # Usage tracking

    async def register_usage_type(self, caller: str, type_id: int, name: str, description: str) -> bool:
        return await self._call("register_usage_type",
                                self.usage_types.register(caller, type_id, name, description))

    async def deactivate_usage_type(self, caller: str, type_id: int) -> bool:
        return await self._call("deactivate_usage_type", self.usage_types.deactivate(caller, type_id))

    async def get_usage_type(self, type_id: int) -> Optional[Category]:
        return await self._call("get_usage_type", self.usage_types.get(type_id))

    async def record_usage(self, caller: str, dataset_id: int, usage_type: int, details: str) -> int:
        return await self._call("record_usage",
                                self.provenance.record_usage(caller, dataset_id, usage_type, details))

    async def get_usage_record(self, record_id: int) -> Optional[UsageRecord]:
        return await self._call("get_usage_record", self.provenance.get_record(record_id))

    async def get_dataset_usage(self, dataset_id: int, record_id: int) -> Optional[UsageRecord]:
        return await self._call("get_dataset_usage",
                                self.provenance.get_dataset_usage(dataset_id, record_id))

    # Data anonymization

    async def register_anonymization_method(self, caller: str, method_id: int, name: str,
                                            description: str) -> bool:
        return await self._call("register_anonymization_method",
                                self.anonymization_methods.register(caller, method_id, name, description))

    async def deactivate_anonymization_method(self, caller: str, method_id: int) -> bool:
        return await self._call("deactivate_anonymization_method",
                                self.anonymization_methods.deactivate(caller, method_id))

    async def get_anonymization_method(self, method_id: int) -> Optional[Category]:
        return await self._call("get_anonymization_method", self.anonymization_methods.get(method_id))

    async def register_anonymized_dataset(self, caller: str, original_hash: bytes,
                                          anonymized_hash: bytes, method_id: int) -> int:
        return await self._call("register_anonymized_dataset",
                                self.provenance.register_anonymized_dataset(
                                    caller, original_hash, anonymized_hash, method_id
                                ))

    async def get_anonymized_dataset(self, record_id: int) -> Optional[AnonymizedDatasetRecord]:
        return await self._call("get_anonymized_dataset", self.provenance.get_anonymized_record(record_id))

    async def verify_anonymization(self, record_id: int, claimed_hash: bytes) -> bool:
        return await self._call("verify_anonymization",
                                self.provenance.verify_anonymization(record_id, claimed_hash))

    # Administration

    def registry(self, name: str):
        """Look up a registry by its configuration name"""
        if name not in REGISTRY_NAMES:
            raise ValueError(f"Unknown registry: {name}")
        return getattr(self, name)

    async def transfer_admin(self, caller: str, registry: str, new_admin: str) -> bool:
        """Transfer admin of a single named registry"""
        return await self._call(f"transfer_admin[{registry}]",
                                self.registry(registry).transfer_admin(caller, new_admin))

    async def get_admin(self, registry: str) -> str:
        return await self._call(f"get_admin[{registry}]", self.registry(registry).get_admin())
