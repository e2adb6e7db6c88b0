"""
Join planning for graph queries.

Each graph pattern becomes a JoinSequence: the first pattern that binds
seeds the sequence, and every further pattern is joined only once one of
its subject/object variables is already bound, so each JOIN has a condition
linking it to what came before.

Required elements are chained with inner joins; optional elements with
left outer joins that only link against variables bound by required
elements.
"""

from dataclasses import dataclass
import logging
from typing import Dict, List, Optional

from rdf_mptstore.errors import QueryError, QueryErrorKind
from rdf_mptstore.models import TriplePattern, Variable
from rdf_mptstore.query.ast import ElementType, GraphPattern, GraphQuery, NodeFilter
from rdf_mptstore.query.binder import (
    Bindings,
    BoundTriplePattern,
    PlanState,
    VarOccurrence,
    bind_pattern,
    bound_value,
    is_bound,
)
from rdf_mptstore.query.joins import JoinConditions, JoinSequence, JoinTable, JoinType

logger = logging.getLogger(__name__)


@dataclass
class QueryPlan:
    """The planned FROM clause and the variable bindings it establishes."""
    joins: JoinSequence
    required_bindings: Bindings
    all_bindings: Bindings


def check_element(element) -> GraphPattern:
    """Only graph patterns are planned; subqueries are rejected."""
    element_type = getattr(element, "element_type", None)
    if element_type is ElementType.GRAPH_QUERY:
        raise QueryError(QueryErrorKind.UNSUPPORTED_SUBQUERY, str(element))
    if element_type is not ElementType.GRAPH_PATTERN or not isinstance(element, GraphPattern):
        raise QueryError(QueryErrorKind.UNKNOWN_ELEMENT, repr(element))
    return element


def plan_query(state: PlanState, query: GraphQuery) -> Optional[QueryPlan]:
    """
    Plan the joins of a whole graph query.

    Args:
        state: Fresh per-compile state
        query: The query to plan

    Returns:
        The plan, or None if no element contributed any table

    Raises:
        QueryError: If the query cannot be planned
    """
    required_bindings: Bindings = {}
    joins: Optional[JoinSequence] = None

    for element in query.required():
        logger.debug(f"Processing required element: {element}")
        pattern = check_element(element)
        sub_plan = plan_graph_pattern(state, pattern, required_bindings)
        if sub_plan is None:
            continue
        if joins is None:
            joins = sub_plan
        else:
            conditions = joins.conditions_against(sub_plan, required_bindings)
            joins.add_join(JoinType.INNER_JOIN, sub_plan, _or_true(conditions))

    all_bindings: Bindings = dict(required_bindings)

    for element in query.optional():
        logger.debug(f"Processing optional element: {element}")
        pattern = check_element(element)
        if joins is None:
            raise QueryError(QueryErrorKind.MISSING_REQUIRED, str(element))

        optional_bindings = dict(required_bindings)
        state.in_optional = True
        try:
            sub_plan = plan_graph_pattern(state, pattern, optional_bindings)
        finally:
            state.in_optional = False
        if sub_plan is None:
            continue

        conditions = joins.conditions_against(sub_plan, required_bindings)
        # Constants and filters of the optional part restrict the outer join
        for alias in sub_plan.aliases():
            conditions.extend(state.drain_value_bindings(alias))
        joins.add_join(JoinType.LEFT_OUTER_JOIN, sub_plan, _or_true(conditions))

        for name, column in optional_bindings.items():
            all_bindings.setdefault(name, column)

    if joins is None:
        return None
    return QueryPlan(joins, required_bindings, all_bindings)


def plan_graph_pattern(
    state: PlanState,
    pattern: GraphPattern,
    bindings: Bindings,
) -> Optional[JoinSequence]:
    """
    Plan the joins of one graph pattern.

    Args:
        state: Per-compile state
        pattern: Triple patterns and filters to join
        bindings: Variable bindings visible to this pattern; extended in place

    Returns:
        The joins of this pattern, or None if every triple was redundant

    Raises:
        QueryError: If a triple cannot be linked to the others, or a filter
            cannot be applied
    """
    logger.debug(f"Planning graph pattern {pattern}")
    pending_filters: Dict[NodeFilter, None] = dict.fromkeys(pattern.filters)
    steps: List[TriplePattern] = list(dict.fromkeys(pattern.triple_patterns))
    distinct_count = len(steps)

    joins = None
    while steps:
        bound = bind_pattern(state, steps.pop(0), bindings)
        if bound is not None:
            joins = JoinSequence(JoinTable(bound))
            break

    if joins is None:
        logger.info(f"Pattern is entirely redundant. Ignoring: {pattern}")
    else:
        while steps:
            step = _joinable_pattern(steps, bindings)
            if step is None:
                raise QueryError(
                    QueryErrorKind.CANNOT_BIND_ALL_STEPS,
                    f"remaining: {[str(s) for s in steps]}; bound: {sorted(bindings)}",
                )
            steps.remove(step)

            bound = bind_pattern(state, step, bindings)
            if bound is None:
                continue
            table = JoinTable(bound)

            conditions = JoinConditions()
            _add_join_conditions(state, conditions, joins, bound, bindings)
            _add_filter_conditions(state, conditions, pending_filters, joins, table, bindings)

            for alias in joins.aliases() + table.aliases():
                for condition in state.drain_value_bindings(alias):
                    logger.debug(f"Adding remaining constant condition {condition}")
                    conditions.add_condition(condition)

            joins.add_join(JoinType.INNER_JOIN, table, _or_true(conditions))

        if distinct_count != 1:
            _defer_outer_filters(state, pending_filters, joins, bindings)

    if pending_filters:
        if distinct_count != 1:
            raise QueryError(
                QueryErrorKind.FILTER_UNBOUND,
                ", ".join(str(f) for f in pending_filters),
            )
        only = state.encountered[pattern.triple_patterns[0]]
        for node_filter in pending_filters:
            _attach_filter(state, only, node_filter)

    return joins


def _or_true(conditions: JoinConditions) -> JoinConditions:
    # SQL-92 requires an ON clause for qualified joins
    if not conditions:
        conditions.add_condition("1=1")
    return conditions


def _joinable_pattern(steps: List[TriplePattern], bindings: Bindings) -> Optional[TriplePattern]:
    """First pattern whose subject or object is already bound."""
    for step in steps:
        if is_bound(step.subject, bindings) or is_bound(step.object, bindings):
            return step
    return None


def _alias_of(column: str) -> str:
    return column.rsplit(".", 1)[0]


def _local_column(
    name: str,
    bindings: Bindings,
    aliases: List[str],
    occurrences: List[VarOccurrence],
) -> Optional[str]:
    """
    Column of a variable that is visible inside the current join sequence.

    That is the variable's binding when it points at one of the given
    aliases, else its first occurrence among them. Variables bound only
    outside the sequence have no local column.
    """
    column = bindings.get(name)
    if column is not None and _alias_of(column) in aliases:
        return column
    for occurrence in occurrences:
        if occurrence.name == name:
            return occurrence.column
    return None


def _add_join_conditions(
    state: PlanState,
    conditions: JoinConditions,
    joins: JoinSequence,
    bound: BoundTriplePattern,
    bindings: Bindings,
) -> None:
    """Equate each bound position of a new table with its earlier occurrence."""
    aliases, occurrences = joins.aliases(), joins.join_vars()
    for node, column in bound.positions():
        if isinstance(node, Variable):
            value = _local_column(node.name, bindings, aliases, occurrences)
            if value is None or value == column:
                continue
            logger.debug(f"Adding join condition {value} = {column}")
            conditions.add(value, "=", column)
        else:
            condition = f"{column} = {state.quote(node)}"
            logger.debug(f"Moving value binding into join: {condition}")
            conditions.add_condition(condition)
            state.discard_value_binding(bound.table.alias, condition)


def _add_filter_conditions(
    state: PlanState,
    conditions: JoinConditions,
    pending_filters: Dict[NodeFilter, None],
    joins: JoinSequence,
    table: JoinTable,
    bindings: Bindings,
) -> None:
    """Apply every pending filter whose variables have all been joined locally."""
    aliases = joins.aliases() + table.aliases()
    occurrences = joins.join_vars() + table.join_vars()
    join_var_names = {v.name for v in occurrences}

    for node_filter in list(pending_filters):
        names = node_filter.variables()
        if not any(name in join_var_names for name in names):
            continue
        columns = {name: _local_column(name, bindings, aliases, occurrences) for name in names}
        if None in columns.values():
            continue
        left = _filter_operand(state, node_filter.left, columns)
        right = _filter_operand(state, node_filter.right, columns)
        logger.debug(f"Adding filter condition: {left} {node_filter.operator} {right}")
        conditions.add(left, node_filter.operator, right)
        del pending_filters[node_filter]


def _filter_operand(state: PlanState, node, columns: Dict[str, str]) -> str:
    if isinstance(node, Variable):
        return columns[node.name]
    return state.quote(node)


def _defer_outer_filters(
    state: PlanState,
    pending_filters: Dict[NodeFilter, None],
    joins: JoinSequence,
    bindings: Bindings,
) -> None:
    """
    Queue filters that also refer to variables bound outside this pattern.

    They become value bindings of the sequence's last table, so they end up
    in the ON clause joining this pattern (optional elements) or in WHERE.
    """
    alias = joins.aliases()[-1]
    for node_filter in list(pending_filters):
        if not all(name in bindings for name in node_filter.variables()):
            continue
        left = bound_value(node_filter.left, bindings, state)
        right = bound_value(node_filter.right, bindings, state)
        condition = f"{left} {node_filter.operator.strip()} {right}"
        logger.debug(f"Deferring filter to enclosing join: {condition}")
        state.add_value_binding(alias, condition)
        del pending_filters[node_filter]


def _attach_filter(state: PlanState, bound: BoundTriplePattern, node_filter: NodeFilter) -> None:
    """Queue a filter of a single-triple pattern as a condition on its table."""
    left, right = node_filter.left, node_filter.right

    if isinstance(left, Variable) and isinstance(right, Variable):
        logger.warning(
            f"Filter {node_filter} compares two variables; it is not evaluated"
        )
        return

    var = left if isinstance(left, Variable) else right
    column = bound.column_of(var.name)
    if column is None:
        raise QueryError(
            QueryErrorKind.FILTER_UNBOUND,
            f"Variable ?{var.name} in filter cannot be found in {bound.pattern}",
        )

    if var is left:
        condition = f"{column} {node_filter.operator.strip()} {state.quote(right)}"
    else:
        condition = f"{state.quote(left)} {node_filter.operator.strip()} {column}"
    logger.debug(f"Remaining filter: {condition}")
    state.add_value_binding(bound.table.alias, condition)
