"""
Predicate-to-table resolution.

Each triple pattern is matched against the table of its predicate. The
first reference to a table uses the bare table name as alias; later
references (self joins) are suffixed: t1, t1_1, t1_2, ...

Predicates without a table are replaced by a relation that has the shape
of a predicate table but never yields rows, so the join structure of the
query stays intact.
"""

from dataclasses import dataclass
import logging
from typing import Dict, List

from rdf_mptstore.errors import ArgumentError
from rdf_mptstore.models import IRIReference, NodePattern, Variable
from rdf_mptstore.storage.tables import DEFAULT_MAP_TABLE, TableManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MPTable:
    """A predicate table (or table expression) and the alias it is joined under."""
    name: str
    alias: str

    def column(self, column: str) -> str:
        return f"{self.alias}.{column}"


def empty_table_query(map_table: str = DEFAULT_MAP_TABLE) -> str:
    """Relation with columns (s, o) that is guaranteed to be empty."""
    return f"(SELECT p AS s, p AS o FROM {map_table} WHERE 1=0)"


class PredicateTableMapper:
    """
    Assigns table aliases to predicates for the lifetime of one compile.

    Attributes:
        predicate_map: Every alias issued per predicate, in order
        unknown_map: The first sentinel table issued per unmapped predicate
    """

    def __init__(self, table_manager: TableManager, map_table: str = DEFAULT_MAP_TABLE):
        self._table_manager = table_manager
        self._map_table = map_table
        self.predicate_map: Dict[IRIReference, List[str]] = {}
        self.unknown_map: Dict[IRIReference, MPTable] = {}
        # Alias counter for variable-predicate unions (ap_N); unused while
        # variable predicates are rejected
        self.all_map = 0

    def map_predicate_table(self, predicate: NodePattern) -> MPTable:
        """
        Resolve the table a triple pattern's predicate is read from.

        Args:
            predicate: A concrete predicate IRI

        Returns:
            The table and a fresh alias for this occurrence

        Raises:
            ArgumentError: If the predicate is a variable
        """
        if isinstance(predicate, Variable):
            raise ArgumentError(f"Predicate must not be a variable: {predicate}")
        if not isinstance(predicate, IRIReference):
            raise ArgumentError(f"Predicate must be an IRI: {predicate}")

        table_name = self._table_manager.table_for(predicate)

        if table_name is None:
            return self._map_unknown(predicate)

        aliases = self.predicate_map.get(predicate)
        if aliases is None:
            logger.debug(f"Predicate {predicate} never encountered, referring to {table_name} by name")
            alias = table_name
            self.predicate_map[predicate] = [alias]
        else:
            alias = f"{table_name}_{len(aliases)}"
            logger.debug(f"Predicate {predicate} already encountered, using alias {alias}")
            aliases.append(alias)

        return MPTable(table_name, alias)

    def _map_unknown(self, predicate: IRIReference) -> MPTable:
        table_name = empty_table_query(self._map_table)
        primary = self.unknown_map.get(predicate)

        if primary is None:
            alias = f"np_{len(self.unknown_map)}"
            logger.debug(f"No table for {predicate}, using empty table as {alias}")
            primary = MPTable(table_name, alias)
            self.unknown_map[predicate] = primary
            self.predicate_map[predicate] = [alias]
            return primary

        aliases = self.predicate_map[predicate]
        alias = f"{primary.alias}_{len(aliases)}"
        aliases.append(alias)
        logger.debug(f"Unmapped predicate {predicate} already encountered, using alias {alias}")
        return MPTable(table_name, alias)

    def all_table_query(self) -> str:
        """
        Union of every predicate table, for matching a variable predicate.

        Not used by the planner, which rejects variable predicates; kept as
        the plan such patterns would join against.
        """
        selects = []
        for predicate in self._table_manager.predicates():
            table = self._table_manager.table_for(predicate)
            if table is not None:
                selects.append(f"SELECT s, o FROM {table}")
        if not selects:
            return empty_table_query(self._map_table)
        return "(" + " UNION ALL ".join(selects) + ")"
