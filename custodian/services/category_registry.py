"""
Category Registry for Custodian - admin-curated usage types and anonymization methods
"""

import logging
from typing import Optional

from .base_registry import SQLiteRegistry
from ..errors import CategoryNotFound
from ..models.category import Category
from ..models.limits import is_stored_int


logger = logging.getLogger(__name__)


USAGE_TYPES = "usage_type"
ANONYMIZATION_METHODS = "anonymization_method"


class CategoryRegistry(SQLiteRegistry):
    """
    Admin-curated taxonomy keyed by admin-assigned ids

    Registering an existing id overwrites it (there is no "already exists"
    guard). Deactivated entries stay readable and remain valid reference
    targets for provenance records.
    """

    def __init__(self, admin: str, kind: str = USAGE_TYPES, db_path: str = None, clock=None):
        """
        Initialize a category registry

        Args:
            admin: Initial admin principal
            kind: Label of the taxonomy, USAGE_TYPES or ANONYMIZATION_METHODS
            db_path: Path to the SQLite database file (defaults per kind)
            clock: Unused by categories, accepted for uniform construction
        """
        if kind not in (USAGE_TYPES, ANONYMIZATION_METHODS):
            raise ValueError(f"Unknown category kind: {kind}")
        self.kind = kind
        self.name = f"{kind.replace('_', ' ')} registry"
        super().__init__(admin, db_path or f"custodian_{kind}s.db", clock)

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    category_id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1
                )
            """)
            conn.commit()

    def _row_to_category(self, row) -> Category:
        return Category(
            category_id=row['category_id'],
            name=row['name'],
            description=row['description'],
            active=bool(row['active'])
        )

    def _fetch(self, conn, category_id: int) -> Optional[Category]:
        if not is_stored_int(category_id):
            return None
        row = conn.execute(
            "SELECT * FROM categories WHERE category_id = ?", (category_id,)
        ).fetchone()
        return self._row_to_category(row) if row else None

    def _store(self, conn, category: Category) -> None:
        conn.execute("""
            INSERT OR REPLACE INTO categories (category_id, name, description, active)
            VALUES (?, ?, ?, ?)
        """, (
            category.category_id,
            category.name,
            category.description,
            1 if category.active else 0
        ))

    async def register(self, caller: str, category_id: int, name: str, description: str) -> bool:
        """
        Register or overwrite a category as active

        Raises:
            NotAuthorized: If caller is not the admin
            ValueError: If the record would be malformed
        """
        async with self._transaction() as conn:
            self._require_admin(conn, caller)

            category = Category.create_new(category_id, name, description)
            if not category.validate():
                raise ValueError(f"Invalid {self.kind} {category_id}")

            self._store(conn, category)

        logger.info(f"Registered {self.kind} {category_id} ({name})")
        return True

    async def deactivate(self, caller: str, category_id: int) -> bool:
        """
        Deactivate a category, keeping it readable

        Raises:
            NotAuthorized: If caller is not the admin
            CategoryNotFound: If category_id was never registered
        """
        async with self._transaction() as conn:
            self._require_admin(conn, caller)

            category = self._fetch(conn, category_id)
            if category is None:
                raise CategoryNotFound(f"{self.kind} not found: {category_id}")

            self._store(conn, category.deactivated())

        logger.info(f"Deactivated {self.kind} {category_id}")
        return True

    async def get(self, category_id: int) -> Optional[Category]:
        """Get a category regardless of its active flag, or None if unknown"""
        with self._get_connection() as conn:
            return self._fetch(conn, category_id)

    async def exists(self, category_id: int) -> bool:
        return await self.get(category_id) is not None
