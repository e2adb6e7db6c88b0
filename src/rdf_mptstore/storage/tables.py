"""
Predicate Table Managers.

In a Mapped Predicate Table (MPT) layout each predicate lives in its own
two-column table (s, o). A map table (tMap by default) records which
physical table holds which predicate:

    tMap(p, table)      t1(s, o)      t2(s, o)     ...

The compiler only reads from a TableManager: it asks for the table of a
predicate and, for variable predicates, for the full predicate list.
"""

from abc import ABC, abstractmethod
import logging
import threading
from typing import Dict, Iterable, List, Optional

from rdf_mptstore.models import IRIReference

logger = logging.getLogger(__name__)

DEFAULT_MAP_TABLE = "tMap"
DEFAULT_TABLE_PREFIX = "t"


class TableManager(ABC):
    """Oracle answering "which table holds this predicate?"."""

    @abstractmethod
    def table_for(self, predicate: IRIReference) -> Optional[str]:
        """Return the physical table for a predicate, or None if unmapped."""
        ...

    @abstractmethod
    def predicates(self) -> Iterable[IRIReference]:
        """Snapshot of every predicate that currently has a table."""
        ...

    @property
    def map_table(self) -> str:
        return DEFAULT_MAP_TABLE


class MemoryTableManager(TableManager):
    """
    Dictionary-backed TableManager.

    Tables are either assigned explicitly or allocated on demand as
    <prefix><n>. Safe to read from several compilers at once.

    Example:
        mgr = MemoryTableManager({IRIReference("http://ex.org/p"): "t_p"})
        mgr.table_for(IRIReference("http://ex.org/p"))   # 't_p'
    """

    def __init__(
        self,
        tables: Optional[Dict[IRIReference, str]] = None,
        map_table: str = DEFAULT_MAP_TABLE,
        table_prefix: str = DEFAULT_TABLE_PREFIX,
    ):
        self._tables: Dict[IRIReference, str] = dict(tables or {})
        self._map_table = map_table
        self._table_prefix = table_prefix
        self._next_id = len(self._tables) + 1
        self._lock = threading.Lock()

    @property
    def map_table(self) -> str:
        return self._map_table

    def table_for(self, predicate: IRIReference) -> Optional[str]:
        with self._lock:
            return self._tables.get(predicate)

    def predicates(self) -> List[IRIReference]:
        with self._lock:
            return list(self._tables)

    def add_table(self, predicate: IRIReference, table: Optional[str] = None) -> str:
        """
        Register a predicate, allocating a table name if none is given.

        Returns:
            The table that now holds the predicate
        """
        with self._lock:
            existing = self._tables.get(predicate)
            if existing is not None:
                return existing
            if table is None:
                table = f"{self._table_prefix}{self._next_id}"
                self._next_id += 1
            self._tables[predicate] = table
            logger.debug(f"Mapped predicate {predicate} to table {table}")
            return table

    def tables(self) -> Dict[IRIReference, str]:
        with self._lock:
            return dict(self._tables)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)
