"""
Provenance Registry for Custodian - append-only usage and anonymization logs
"""

import logging
from typing import Optional

from .base_registry import SQLiteRegistry
from .category_registry import CategoryRegistry
from ..errors import CategoryNotFound, DatasetNotFound
from ..models.usage_record import UsageRecord
from ..models.anonymized_record import AnonymizedDatasetRecord
from ..models.limits import is_stored_int
from ..utils.hashing import validate_hash


logger = logging.getLogger(__name__)


USAGE_COUNTER = "usage"
ANONYMIZED_COUNTER = "anonymized"


class ProvenanceRegistry(SQLiteRegistry):
    """
    Two independent append-only logs sharing one id-assignment pattern

    Usage records reference a usage type and anonymized-dataset records
    reference an anonymization method. Both references must exist (active or
    not) when the record is written. Each log has its own counter that starts
    at 1 and is advanced in the same transaction as the insert, so ids are
    never skipped by failed calls and never reused.

    Dataset ids are stored as given; they are not checked against the
    ownership registry, and no per-dataset index is kept.
    """

    name = "provenance registry"

    def __init__(self, admin: str, usage_types: CategoryRegistry,
                 anonymization_methods: CategoryRegistry,
                 db_path: str = "custodian_provenance.db", clock=None):
        """
        Initialize the provenance registry

        Args:
            admin: Admin principal (no provenance operation is admin-gated)
            usage_types: Registry that usage records must reference
            anonymization_methods: Registry that anonymized records must reference
            db_path: Path to the SQLite database file
            clock: Logical clock source for record timestamps
        """
        self.usage_types = usage_types
        self.anonymization_methods = anonymization_methods
        super().__init__(admin, db_path, clock)

    def _init_database(self) -> None:
        """Initialize SQLite database with required tables"""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS usage_records (
                    record_id INTEGER PRIMARY KEY,
                    dataset_id INTEGER NOT NULL,
                    user TEXT NOT NULL,
                    usage_type INTEGER NOT NULL,
                    timestamp INTEGER NOT NULL,
                    details TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS anonymized_datasets (
                    record_id INTEGER PRIMARY KEY,
                    original_hash BLOB NOT NULL,
                    anonymized_hash BLOB NOT NULL,
                    method_id INTEGER NOT NULL,
                    anonymizer TEXT NOT NULL,
                    timestamp INTEGER NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS counters (
                    name TEXT PRIMARY KEY,
                    value INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.executemany(
                "INSERT OR IGNORE INTO counters (name, value) VALUES (?, 0)",
                [(USAGE_COUNTER,), (ANONYMIZED_COUNTER,)]
            )

            conn.commit()

    def _row_to_usage_record(self, row) -> UsageRecord:
        """Convert database row to UsageRecord instance"""
        return UsageRecord(
            record_id=row['record_id'],
            dataset_id=row['dataset_id'],
            user=row['user'],
            usage_type=row['usage_type'],
            timestamp=row['timestamp'],
            details=row['details']
        )

    def _row_to_anonymized_record(self, row) -> AnonymizedDatasetRecord:
        """Convert database row to AnonymizedDatasetRecord instance"""
        return AnonymizedDatasetRecord(
            record_id=row['record_id'],
            original_hash=bytes(row['original_hash']),
            anonymized_hash=bytes(row['anonymized_hash']),
            method_id=row['method_id'],
            anonymizer=row['anonymizer'],
            timestamp=row['timestamp']
        )

    @staticmethod
    def _next_id(conn, counter: str) -> int:
        row = conn.execute("SELECT value FROM counters WHERE name = ?", (counter,)).fetchone()
        if row is None:
            raise ValueError(f"Unknown counter: {counter}")
        return row['value'] + 1

    @staticmethod
    def _advance(conn, counter: str, value: int) -> None:
        conn.execute("UPDATE counters SET value = ? WHERE name = ?", (value, counter))

    async def get_counter(self, counter: str = USAGE_COUNTER) -> int:
        """Get the last id assigned by a log (0 when empty)"""
        with self._get_connection() as conn:
            return self._next_id(conn, counter) - 1

    async def record_usage(self, caller: str, dataset_id: int, usage_type_id: int, details: str) -> int:
        """
        Append a usage record

        Args:
            caller: Principal recording the usage
            dataset_id: Dataset the usage refers to
            usage_type_id: Usage type id, must exist in the usage type registry
            details: Free-text details

        Returns:
            The new record id

        Raises:
            CategoryNotFound: If the usage type is unknown
            ValueError: If the record would be malformed
        """
        async with self._transaction() as conn:
            if not await self.usage_types.exists(usage_type_id):
                raise CategoryNotFound(f"Usage type not found: {usage_type_id}")

            record = UsageRecord(
                record_id=self._next_id(conn, USAGE_COUNTER),
                dataset_id=dataset_id,
                user=caller,
                usage_type=usage_type_id,
                timestamp=self._now(),
                details=details
            )
            if not record.validate():
                raise ValueError(f"Invalid usage record for dataset {dataset_id}")

            conn.execute("""
                INSERT INTO usage_records
                (record_id, dataset_id, user, usage_type, timestamp, details)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                record.record_id,
                record.dataset_id,
                record.user,
                record.usage_type,
                record.timestamp,
                record.details
            ))
            self._advance(conn, USAGE_COUNTER, record.record_id)

        logger.info(f"Recorded usage {record.record_id} on dataset {dataset_id} by {caller}")
        return record.record_id

    async def register_anonymized_dataset(self, caller: str, original_hash: bytes,
                                          anonymized_hash: bytes, method_id: int) -> int:
        """
        Append an anonymized-dataset record

        Args:
            caller: Principal registering the anonymized dataset
            original_hash: 32-byte hash of the source dataset
            anonymized_hash: 32-byte hash of the anonymized dataset
            method_id: Anonymization method id, must exist in the method registry

        Returns:
            The new record id

        Raises:
            ValueError: If a hash is not 32 bytes
            CategoryNotFound: If the anonymization method is unknown
        """
        original_hash = validate_hash(original_hash, "original_hash")
        anonymized_hash = validate_hash(anonymized_hash, "anonymized_hash")

        async with self._transaction() as conn:
            if not await self.anonymization_methods.exists(method_id):
                raise CategoryNotFound(f"Anonymization method not found: {method_id}")

            record = AnonymizedDatasetRecord(
                record_id=self._next_id(conn, ANONYMIZED_COUNTER),
                original_hash=original_hash,
                anonymized_hash=anonymized_hash,
                method_id=method_id,
                anonymizer=caller,
                timestamp=self._now()
            )
            if not record.validate():
                raise ValueError("Invalid anonymized dataset record")

            conn.execute("""
                INSERT INTO anonymized_datasets
                (record_id, original_hash, anonymized_hash, method_id, anonymizer, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                record.record_id,
                record.original_hash,
                record.anonymized_hash,
                record.method_id,
                record.anonymizer,
                record.timestamp
            ))
            self._advance(conn, ANONYMIZED_COUNTER, record.record_id)

        logger.info(f"Registered anonymized dataset {record.record_id} with method {method_id} by {caller}")
        return record.record_id

    async def get_record(self, record_id: int) -> Optional[UsageRecord]:
        """Get a usage record by id, or None"""
        if not is_stored_int(record_id, minimum=1):
            return None
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM usage_records WHERE record_id = ?", (record_id,)
            ).fetchone()
        return self._row_to_usage_record(row) if row else None

    async def get_anonymized_record(self, record_id: int) -> Optional[AnonymizedDatasetRecord]:
        """Get an anonymized-dataset record by id, or None"""
        if not is_stored_int(record_id, minimum=1):
            return None
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM anonymized_datasets WHERE record_id = ?", (record_id,)
            ).fetchone()
        return self._row_to_anonymized_record(row) if row else None

    async def get_dataset_usage(self, dataset_id: int, record_id: int) -> Optional[UsageRecord]:
        """
        Get a usage record by id, only if it belongs to the given dataset

        This is a lookup by record id followed by a dataset check, not a query
        for all usage of a dataset.
        """
        record = await self.get_record(record_id)
        if record is not None and record.dataset_id == dataset_id:
            return record
        return None

    async def verify_anonymization(self, record_id: int, claimed_hash: bytes) -> bool:
        """
        Check a claimed anonymized hash against a registered record

        Returns:
            True only if claimed_hash equals the stored anonymized hash

        Raises:
            DatasetNotFound: If no anonymized dataset has this id
        """
        record = await self.get_anonymized_record(record_id)
        if record is None:
            raise DatasetNotFound(f"Anonymized dataset not found: {record_id}")
        return record.matches(claimed_hash)
