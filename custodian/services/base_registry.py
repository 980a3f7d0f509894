"""
Shared SQLite-backed registry plumbing: connection handling, the single-admin
singleton and the per-registry write lock
"""

import asyncio
import sqlite3
import logging
from contextlib import contextmanager, asynccontextmanager

from ..errors import NotAuthorized
from ..utils.clock import SystemClock


logger = logging.getLogger(__name__)


class SQLiteRegistry:
    """
    Base class for registries persisted in their own SQLite database

    Each instance owns one admin principal, stored in a one-row table and seeded
    only when the database is first created, and one asyncio.Lock under which
    every mutating operation runs its check-then-write sequence.
    """

    name = "registry"

    def __init__(self, admin: str, db_path: str, clock=None):
        """
        Initialize the registry storage

        Args:
            admin: Initial admin principal (ignored if the database already has one)
            db_path: Path to the SQLite database file
            clock: Logical clock source exposing now() (Unix seconds if None)
        """
        if not admin or not admin.strip():
            raise ValueError("Admin principal cannot be empty")

        self.db_path = db_path
        self.clock = clock or SystemClock()
        self._write_lock = asyncio.Lock()
        self._init_admin(admin)
        self._init_database()

    def _init_admin(self, admin: str) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS registry_admin (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    admin TEXT NOT NULL
                )
            """)
            conn.execute(
                "INSERT OR IGNORE INTO registry_admin (id, admin) VALUES (1, ?)",
                (admin,)
            )
            conn.commit()

    def _init_database(self) -> None:
        """Create registry-specific tables"""
        raise NotImplementedError

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row  # Enable column access by name
        try:
            yield conn
        finally:
            conn.close()

    @asynccontextmanager
    async def _transaction(self):
        """
        Serialize a mutation and commit it atomically

        Yields a connection; the write is committed only if the block completes,
        so a failed check leaves no partial state behind.
        """
        async with self._write_lock:
            with self._get_connection() as conn:
                try:
                    yield conn
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise

    def _now(self) -> int:
        return self.clock.now()

    @staticmethod
    def _read_admin(conn) -> str:
        row = conn.execute("SELECT admin FROM registry_admin WHERE id = 1").fetchone()
        return row['admin']

    def _require_admin(self, conn, caller: str) -> None:
        if self._read_admin(conn) != caller:
            logger.warning(f"{self.name}: caller {caller} is not the admin")
            raise NotAuthorized(f"{caller} is not the {self.name} admin")

    async def get_admin(self) -> str:
        """Get the current admin principal"""
        with self._get_connection() as conn:
            return self._read_admin(conn)

    async def is_admin(self, principal: str) -> bool:
        return await self.get_admin() == principal

    async def transfer_admin(self, caller: str, new_admin: str) -> bool:
        """
        Replace the admin of this registry

        Args:
            caller: Principal issuing the call, must be the current admin
            new_admin: Principal that becomes admin (not validated)

        Returns:
            True on success

        Raises:
            NotAuthorized: If caller is not the current admin
        """
        async with self._transaction() as conn:
            self._require_admin(conn, caller)
            conn.execute("UPDATE registry_admin SET admin = ? WHERE id = 1", (new_admin,))

        logger.info(f"{self.name}: admin transferred from {caller} to {new_admin}")
        return True
