"""
GraphQuery to SQL translation.

Produces ANSI SQL-92 queries by converting each graph pattern of the query
into a series of JOINs over predicate tables. Join conditions come from
variables shared between triple patterns.

Example:
    provider = GraphQuerySQLProvider(table_manager, query, backslash_escape=True)
    provider.set_targets(["x", "z"])
    provider.order_by("x", desc=False)
    provider.get_sql()
    # ['SELECT t1.s, t2.o FROM t1 JOIN t2 ON (t1.o = t2.s) ORDER BY t1.s ASC']
"""

import logging
from typing import List, Optional, Sequence, Union

from rdf_mptstore.config import CompilerConfig
from rdf_mptstore.errors import ArgumentError, QueryError, QueryErrorKind
from rdf_mptstore.models import Variable
from rdf_mptstore.query.ast import GraphQuery
from rdf_mptstore.query.binder import Bindings, PlanState
from rdf_mptstore.query.mapping import PredicateTableMapper
from rdf_mptstore.query.planner import plan_query
from rdf_mptstore.sql.dialect import TermFormat
from rdf_mptstore.storage.tables import TableManager

logger = logging.getLogger(__name__)

EMPTY_RESULT_SQL = "SELECT 1 WHERE 1=0"

Target = Union[str, Variable]


def target_name(target: Target) -> str:
    """Variable name of a target given as 'x', '?x', '$x' or Variable('x')."""
    if isinstance(target, Variable):
        return target.name
    if target[:1] in ("?", "$"):
        return target[1:]
    return target


class GraphQuerySQLProvider:
    """
    Translates a GraphQuery into SQL statements.

    An instance is not reentrant: get_sql() rebuilds all planning state on
    every call, so calls must not overlap. Build one provider per thread.
    """

    def __init__(
        self,
        table_manager: TableManager,
        query: GraphQuery,
        backslash_escape: bool = False,
        term_format: TermFormat = TermFormat.LEXICAL,
        map_table: Optional[str] = None,
    ):
        """
        Args:
            table_manager: Looks up predicate table names
            query: The graph query to translate
            backslash_escape: Whether the database treats backslash as an
                escape character in string literals
            term_format: How constant nodes are written into SQL
            map_table: Name of the predicate map table; defaults to the
                table manager's
        """
        self.table_manager = table_manager
        self.query = query
        self.backslash_escape = backslash_escape
        self.term_format = TermFormat(term_format)
        self.map_table = map_table or table_manager.map_table
        self._targets: Optional[List[Target]] = None
        self._ordering: Optional[str] = None
        self._ordering_direction = "ASC"

    @classmethod
    def from_config(
        cls,
        table_manager: TableManager,
        query: GraphQuery,
        config: CompilerConfig,
    ) -> "GraphQuerySQLProvider":
        return cls(
            table_manager,
            query,
            backslash_escape=config.effective_backslash_escape,
            term_format=config.term_format,
            map_table=config.map_table,
        )

    def set_targets(self, targets: Sequence[Target]) -> None:
        """
        Choose the variables that make up result tuples, in order.

        Every target must be bound somewhere in the query. Clears any
        ordering set before.
        """
        self._targets = list(targets)
        self._ordering = None
        self._ordering_direction = "ASC"

    def get_targets(self) -> List[Target]:
        return list(self._targets or [])

    def order_by(self, target: Target, desc: bool = False) -> None:
        """
        Order results by the value bound to a target variable.

        Raises:
            ArgumentError: If the variable is not in the target list
        """
        name = target_name(target)
        if self._targets is None or name not in self._target_names():
            raise ArgumentError(
                f"Cannot order by variable '{name}' since it is not in the "
                f"target list {self._targets}"
            )
        self._ordering = name
        self._ordering_direction = "DESC" if desc else "ASC"

    def get_sql(self) -> List[str]:
        """
        Translate the query into SQL.

        Returns:
            A list holding one SQL statement

        Raises:
            QueryError: If the query cannot be translated
        """
        state = PlanState(
            mapper=PredicateTableMapper(self.table_manager, self.map_table),
            backslash_escape=self.backslash_escape,
            term_format=self.term_format,
        )

        plan = plan_query(state, self.query)
        if plan is None:
            logger.debug("No tables to join, returning empty result query")
            return [EMPTY_RESULT_SQL]

        if not self._targets:
            raise ArgumentError("No target variables set")

        sql = f"SELECT {self._projection(plan.all_bindings)} FROM {plan.joins}"

        residual = self._residual_conditions(state)
        if residual:
            sql += " WHERE " + " AND ".join(residual)

        if self._ordering is not None:
            sql += f" ORDER BY {plan.all_bindings[self._ordering]} {self._ordering_direction}"

        logger.debug(f"Generated SQL: {sql}")
        return [sql]

    def _target_names(self) -> List[str]:
        return [target_name(t) for t in self._targets or []]

    def _projection(self, bindings: Bindings) -> str:
        columns = []
        for name in self._target_names():
            column = bindings.get(name)
            if column is None:
                raise QueryError(QueryErrorKind.UNMAPPED_TARGET, f"?{name}")
            columns.append(column)
        return ", ".join(columns)

    def _residual_conditions(self, state: PlanState) -> List[str]:
        residual = []
        for alias, pending in state.value_bindings.items():
            for condition, from_optional in pending.items():
                if from_optional:
                    raise QueryError(QueryErrorKind.OPTIONAL_IN_WHERE, condition)
                logger.debug(f"Adding remaining unused binding for {alias}: {condition}")
                residual.append(condition)
        return residual
