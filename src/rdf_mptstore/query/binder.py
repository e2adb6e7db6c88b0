"""
Binding of triple patterns to predicate table columns.

Binding a pattern attaches a table alias to it and then:
- maps each new subject/object variable to <alias>.s or <alias>.o
- queues "<alias>.<col> = '<value>'" for each constant subject/object

All state lives in a PlanState that is created fresh for every compile and
passed explicitly through the planner.
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, List, Optional, Tuple

from rdf_mptstore.models import Node, NodePattern, TriplePattern, Variable
from rdf_mptstore.query.mapping import MPTable, PredicateTableMapper
from rdf_mptstore.sql.dialect import TermFormat, quoted_node

logger = logging.getLogger(__name__)

SUBJECT_COLUMN = "s"
OBJECT_COLUMN = "o"

# Variable name -> qualified column, e.g. {"x": "t1.s"}
Bindings = Dict[str, str]


@dataclass(frozen=True)
class VarOccurrence:
    """One occurrence of a variable in a bound triple pattern."""
    name: str
    column: str


@dataclass(frozen=True)
class BoundTriplePattern:
    """A triple pattern together with the table alias it reads from."""
    pattern: TriplePattern
    table: MPTable

    def positions(self) -> List[Tuple[NodePattern, str]]:
        """Subject and object with the column each maps to."""
        return [
            (self.pattern.subject, self.table.column(SUBJECT_COLUMN)),
            (self.pattern.object, self.table.column(OBJECT_COLUMN)),
        ]

    def join_vars(self) -> List[VarOccurrence]:
        return [
            VarOccurrence(node.name, column)
            for node, column in self.positions()
            if isinstance(node, Variable)
        ]

    def column_of(self, var_name: str) -> Optional[str]:
        for node, column in self.positions():
            if isinstance(node, Variable) and node.name == var_name:
                return column
        return None


@dataclass
class PlanState:
    """
    Mutable planner state of a single compile.

    Attributes:
        mapper: Predicate table resolver owned by this compile
        value_bindings: Pending conditions per table alias, in insertion
            order; the value records whether the condition came from an
            optional element
        encountered: Patterns already planned, with their bound form
        in_optional: True while an optional element is being planned
    """
    mapper: PredicateTableMapper
    backslash_escape: bool = False
    term_format: TermFormat = TermFormat.LEXICAL
    value_bindings: Dict[str, Dict[str, bool]] = field(default_factory=dict)
    encountered: Dict[TriplePattern, BoundTriplePattern] = field(default_factory=dict)
    in_optional: bool = False

    def quote(self, node: Node) -> str:
        return quoted_node(node, self.backslash_escape, self.term_format)

    def add_value_binding(self, alias: str, condition: str) -> None:
        pending = self.value_bindings.setdefault(alias, {})
        pending.setdefault(condition, self.in_optional)

    def discard_value_binding(self, alias: str, condition: str) -> None:
        pending = self.value_bindings.get(alias)
        if pending is not None:
            pending.pop(condition, None)

    def drain_value_bindings(self, alias: str) -> List[str]:
        """Remove and return all pending conditions for a table alias."""
        return list(self.value_bindings.pop(alias, {}))


def is_bound(node: NodePattern, bindings: Bindings) -> bool:
    """Variables are bound once mapped to a column; constants always are."""
    if isinstance(node, Variable):
        return node.name in bindings
    return True


def bound_value(node: NodePattern, bindings: Bindings, state: PlanState) -> Optional[str]:
    """The bound column of a variable, or the quoted SQL value of a constant."""
    if isinstance(node, Variable):
        return bindings.get(node.name)
    return state.quote(node)


def bind_pattern(
    state: PlanState,
    pattern: TriplePattern,
    bindings: Bindings,
) -> Optional[BoundTriplePattern]:
    """
    Bind the variables and values of a triple pattern.

    Args:
        state: Per-compile planner state
        pattern: The pattern to bind
        bindings: Variable bindings to extend (first binding wins)

    Returns:
        The bound pattern, or None if it was already planned (redundant)
    """
    if pattern in state.encountered:
        logger.info(f"Already encountered pattern {pattern}")
        return None

    logger.debug(f"Processing new pattern {pattern}")
    bound = BoundTriplePattern(pattern, state.mapper.map_predicate_table(pattern.predicate))
    state.encountered[pattern] = bound

    for node, column in bound.positions():
        _bind_node(state, node, column, bound.table.alias, bindings)

    # ?x <p> ?x: both columns of the same row must agree
    subject, obj = bound.pattern.subject, bound.pattern.object
    if isinstance(subject, Variable) and subject == obj:
        subject_column = bound.table.column(SUBJECT_COLUMN)
        if bindings[subject.name] == subject_column:
            state.add_value_binding(
                bound.table.alias,
                f"{subject_column} = {bound.table.column(OBJECT_COLUMN)}",
            )
    return bound


def _bind_node(
    state: PlanState,
    node: NodePattern,
    column: str,
    alias: str,
    bindings: Bindings,
) -> None:
    if isinstance(node, Variable):
        if node.name not in bindings:
            logger.debug(f"Bound ?{node.name} to {column}")
            bindings[node.name] = column
    else:
        condition = f"{column} = {state.quote(node)}"
        logger.debug(f"Adding value binding {condition}")
        state.add_value_binding(alias, condition)
