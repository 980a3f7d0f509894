"""
Identity Registry for Custodian - verifies and deactivates institutional identities
"""

import logging
from typing import Optional

from .base_registry import SQLiteRegistry
from ..errors import AlreadyVerified, NotFound
from ..models.institution import Institution


logger = logging.getLogger(__name__)


class IdentityRegistry(SQLiteRegistry):
    """
    Admin-curated registry of verified institutions

    An identity can be verified at most once. Revocation flips the active flag
    and keeps the record, so a revoked identity can never be verified again.
    """

    name = "identity registry"

    def __init__(self, admin: str, db_path: str = "custodian_identity.db", clock=None):
        super().__init__(admin, db_path, clock)

    def _init_database(self) -> None:
        """Initialize SQLite database with required tables"""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS institutions (
                    identity TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    verification_level INTEGER NOT NULL,
                    verification_date INTEGER NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1
                )
            """)
            conn.commit()

    def _row_to_institution(self, row) -> Institution:
        """Convert database row to Institution instance"""
        return Institution(
            identity=row['identity'],
            name=row['name'],
            verification_level=row['verification_level'],
            verification_date=row['verification_date'],
            active=bool(row['active'])
        )

    def _fetch(self, conn, identity: str) -> Optional[Institution]:
        row = conn.execute(
            "SELECT * FROM institutions WHERE identity = ?", (identity,)
        ).fetchone()
        return self._row_to_institution(row) if row else None

    def _store(self, conn, institution: Institution) -> None:
        conn.execute("""
            INSERT OR REPLACE INTO institutions
            (identity, name, verification_level, verification_date, active)
            VALUES (?, ?, ?, ?, ?)
        """, (
            institution.identity,
            institution.name,
            institution.verification_level,
            institution.verification_date,
            1 if institution.active else 0
        ))

    async def verify(self, caller: str, identity: str, name: str, level: int) -> bool:
        """
        Verify an institution

        Args:
            caller: Principal issuing the call, must be the admin
            identity: Principal of the institution being verified
            name: Display name of the institution
            level: Verification level

        Returns:
            True on success

        Raises:
            NotAuthorized: If caller is not the admin
            AlreadyVerified: If identity was ever verified, even if since revoked
            ValueError: If the record would be malformed
        """
        async with self._transaction() as conn:
            self._require_admin(conn, caller)

            if self._fetch(conn, identity) is not None:
                raise AlreadyVerified(f"Institution already verified: {identity}")

            institution = Institution.create_new(
                identity=identity,
                name=name,
                verification_level=level,
                verification_date=self._now()
            )
            if not institution.validate():
                raise ValueError(f"Invalid institution record for {identity}")

            self._store(conn, institution)

        logger.info(f"Verified institution {identity} at level {level}")
        return True

    async def revoke(self, caller: str, identity: str) -> bool:
        """
        Revoke an institution's verification without deleting its record

        Raises:
            NotAuthorized: If caller is not the admin
            NotFound: If identity was never verified
        """
        async with self._transaction() as conn:
            self._require_admin(conn, caller)

            institution = self._fetch(conn, identity)
            if institution is None:
                raise NotFound(f"Institution not found: {identity}")

            self._store(conn, institution.deactivated())

        logger.info(f"Revoked verification for institution {identity}")
        return True

    async def is_verified(self, identity: str) -> bool:
        """
        Check the current verification status of an institution

        Returns:
            The active flag of the stored record

        Raises:
            NotFound: If identity was never verified
        """
        with self._get_connection() as conn:
            institution = self._fetch(conn, identity)

        if institution is None:
            raise NotFound(f"Institution not found: {identity}")
        return institution.active

    async def get_details(self, identity: str) -> Optional[Institution]:
        """Get the stored record for an institution, or None if never verified"""
        with self._get_connection() as conn:
            return self._fetch(conn, identity)
