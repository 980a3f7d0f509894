"""
Integer bounds shared by the persisted models
"""

# Largest value a SQLite INTEGER column can hold
MAX_SQLITE_INT = 2 ** 63 - 1


def is_stored_int(value, minimum: int = 0) -> bool:
    """Check that value is an int SQLite can store, no lower than minimum"""
    return isinstance(value, int) and minimum <= value <= MAX_SQLITE_INT
