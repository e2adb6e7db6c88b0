"""Storage-side collaborators of the compiler."""

from rdf_mptstore.storage.tables import (
    TableManager,
    MemoryTableManager,
    DEFAULT_MAP_TABLE,
)

__all__ = [
    "TableManager",
    "MemoryTableManager",
    "DEFAULT_MAP_TABLE",
]
