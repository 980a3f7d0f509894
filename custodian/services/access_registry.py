"""
Ownership and Access Registry for Custodian - dataset ownership and time-bounded access grants
"""

import logging
from typing import Optional

from .base_registry import SQLiteRegistry
from ..errors import NotOwner, PermissionNotFound
from ..models.access_grant import AccessGrant
from ..models.dataset import Dataset
from ..models.limits import is_stored_int


logger = logging.getLogger(__name__)


class OwnershipAndAccessRegistry(SQLiteRegistry):
    """
    Registry that tracks dataset owners and the access grants they issue

    Grants are keyed by (dataset_id, accessor); only the current owner of a
    dataset may create or revoke them. Validity is checked against the
    registry clock with a strict comparison: a grant expiring exactly at the
    current time is already expired.
    """

    name = "access registry"

    def __init__(self, admin: str, db_path: str = "custodian_access.db", clock=None):
        super().__init__(admin, db_path, clock)

    def _init_database(self) -> None:
        """Initialize SQLite database with required tables"""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS datasets (
                    dataset_id INTEGER PRIMARY KEY,
                    owner TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS access_grants (
                    dataset_id INTEGER NOT NULL,
                    accessor TEXT NOT NULL,
                    granted_by TEXT NOT NULL,
                    access_level INTEGER NOT NULL,
                    expiration INTEGER NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1,
                    PRIMARY KEY (dataset_id, accessor)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_grants_granted_by
                ON access_grants(granted_by)
            """)

            conn.commit()

    def _row_to_access_grant(self, row) -> AccessGrant:
        """Convert database row to AccessGrant instance"""
        return AccessGrant(
            dataset_id=row['dataset_id'],
            accessor=row['accessor'],
            granted_by=row['granted_by'],
            access_level=row['access_level'],
            expiration=row['expiration'],
            active=bool(row['active'])
        )

    def _fetch_dataset(self, conn, dataset_id: int) -> Optional[Dataset]:
        if not is_stored_int(dataset_id):
            return None
        row = conn.execute(
            "SELECT dataset_id, owner FROM datasets WHERE dataset_id = ?", (dataset_id,)
        ).fetchone()
        return Dataset(dataset_id=row['dataset_id'], owner=row['owner']) if row else None

    def _store_dataset(self, conn, dataset: Dataset) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO datasets (dataset_id, owner) VALUES (?, ?)",
            (dataset.dataset_id, dataset.owner)
        )

    def _fetch_grant(self, conn, dataset_id: int, accessor: str) -> Optional[AccessGrant]:
        if not is_stored_int(dataset_id):
            return None
        row = conn.execute("""
            SELECT * FROM access_grants
            WHERE dataset_id = ? AND accessor = ?
        """, (dataset_id, accessor)).fetchone()
        return self._row_to_access_grant(row) if row else None

    def _store_grant(self, conn, grant: AccessGrant) -> None:
        conn.execute("""
            INSERT OR REPLACE INTO access_grants
            (dataset_id, accessor, granted_by, access_level, expiration, active)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            grant.dataset_id,
            grant.accessor,
            grant.granted_by,
            grant.access_level,
            grant.expiration,
            1 if grant.active else 0
        ))

    def _require_owner(self, conn, caller: str, dataset_id: int) -> Dataset:
        dataset = self._fetch_dataset(conn, dataset_id)
        if dataset is None or dataset.owner != caller:
            logger.warning(f"Caller {caller} is not the owner of dataset {dataset_id}")
            raise NotOwner(f"{caller} does not own dataset {dataset_id}")
        return dataset

    async def register_dataset(self, caller: str, dataset_id: int) -> bool:
        """
        Register a dataset with the caller as its owner

        Dataset ids are coordinated by callers, not assigned here. Registering an
        id that is already owned silently replaces the owner; this looseness is
        kept as-is and only logged.

        Args:
            caller: Principal that becomes the owner
            dataset_id: Caller-chosen dataset identifier

        Returns:
            True on success

        Raises:
            ValueError: If the ownership record would be malformed
        """
        dataset = Dataset(dataset_id=dataset_id, owner=caller)
        if not dataset.validate():
            raise ValueError(f"Invalid dataset registration: {dataset_id}")

        async with self._transaction() as conn:
            previous = self._fetch_dataset(conn, dataset_id)
            self._store_dataset(conn, dataset)

        if previous is not None and previous.owner != caller:
            logger.warning(f"Dataset {dataset_id} re-registered: owner {previous.owner} replaced by {caller}")
        logger.info(f"Registered dataset {dataset_id} for owner {caller}")
        return True

    async def is_owner(self, caller: str, dataset_id: int) -> bool:
        """Check whether caller owns the dataset; unknown datasets are not owned"""
        with self._get_connection() as conn:
            dataset = self._fetch_dataset(conn, dataset_id)
        return dataset is not None and dataset.owner == caller

    async def get_dataset(self, dataset_id: int) -> Optional[Dataset]:
        """Get the ownership record for a dataset, or None if unregistered"""
        with self._get_connection() as conn:
            return self._fetch_dataset(conn, dataset_id)

    async def grant_access(self, caller: str, dataset_id: int, accessor: str,
                           access_level: int, expiration: int) -> bool:
        """
        Grant an accessor time-bounded access to a dataset

        A second grant for the same (dataset_id, accessor) fully replaces the
        first one; nothing is merged.

        Args:
            caller: Principal issuing the grant, must own the dataset
            dataset_id: Dataset to grant access to
            accessor: Principal receiving access
            access_level: Level of access
            expiration: Logical time at which access ends

        Returns:
            True on success

        Raises:
            NotOwner: If caller does not own the dataset
            ValueError: If the grant would be malformed
        """
        async with self._transaction() as conn:
            self._require_owner(conn, caller, dataset_id)

            grant = AccessGrant.create_new(
                dataset_id=dataset_id,
                accessor=accessor,
                granted_by=caller,
                access_level=access_level,
                expiration=expiration
            )
            if not grant.validate():
                raise ValueError(f"Invalid access grant for {accessor} on dataset {dataset_id}")

            self._store_grant(conn, grant)

        logger.info(f"Granted level {access_level} access on dataset {dataset_id} to {accessor} until {expiration}")
        return True

    async def revoke_access(self, caller: str, dataset_id: int, accessor: str) -> bool:
        """
        Revoke an existing grant, keeping the record with active=False

        Raises:
            NotOwner: If caller does not own the dataset
            PermissionNotFound: If no grant exists for (dataset_id, accessor)
        """
        async with self._transaction() as conn:
            self._require_owner(conn, caller, dataset_id)

            grant = self._fetch_grant(conn, dataset_id, accessor)
            if grant is None:
                raise PermissionNotFound(f"No grant for {accessor} on dataset {dataset_id}")

            self._store_grant(conn, grant.revoked())

        logger.info(f"Revoked access on dataset {dataset_id} for {accessor}")
        return True

    async def has_access(self, dataset_id: int, accessor: str) -> bool:
        """
        Check if an accessor currently holds valid access to a dataset

        Returns:
            False if no grant exists, otherwise active and expiration > now
        """
        with self._get_connection() as conn:
            grant = self._fetch_grant(conn, dataset_id, accessor)

        if grant is None:
            logger.debug(f"No grant found for {accessor} on dataset {dataset_id}")
            return False
        return grant.is_valid(self._now())

    async def get_access_details(self, dataset_id: int, accessor: str) -> Optional[AccessGrant]:
        """Get the stored grant for (dataset_id, accessor), active or not, or None"""
        with self._get_connection() as conn:
            return self._fetch_grant(conn, dataset_id, accessor)

    async def transfer_ownership(self, caller: str, dataset_id: int, new_owner: str) -> bool:
        """
        Hand a dataset over to a new owner

        Existing grants stay in place; only the new owner can revoke them.

        Raises:
            NotOwner: If caller does not own the dataset
        """
        async with self._transaction() as conn:
            dataset = self._require_owner(conn, caller, dataset_id)
            self._store_dataset(conn, dataset.with_owner(new_owner))

        logger.info(f"Transferred dataset {dataset_id} from {caller} to {new_owner}")
        return True
