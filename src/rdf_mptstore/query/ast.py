"""
Query AST for graph queries over Mapped Predicate Tables.

A GraphQuery is two ordered lists of query elements: the required ones are
inner joined, the optional ones left outer joined. Each element is either a
GraphPattern (triple patterns + filters) or, reserved for subqueries, a
nested GraphQuery.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple, Union

from rdf_mptstore.errors import ArgumentError
from rdf_mptstore.models import NodePattern, TriplePattern, Variable, is_variable


# =============================================================================
# Filters
# =============================================================================

@dataclass(frozen=True)
class NodeFilter:
    """
    A filter predicate (e.g., ?age > "30").

    The operator is opaque and copied verbatim into the SQL. At least one
    side must be a variable.
    """
    left: NodePattern
    operator: str
    right: NodePattern

    def __post_init__(self):
        if not (is_variable(self.left) or is_variable(self.right)):
            raise ArgumentError(
                f"Filters must contain a variable. Neither {self.left} nor "
                f"{self.right} is a variable"
            )
        if not self.operator or not self.operator.strip():
            raise ArgumentError("Filter operator must not be empty")

    def variables(self) -> Tuple[str, ...]:
        """Names of the variables in this filter, left first, no repeats."""
        names = []
        for node in (self.left, self.right):
            if isinstance(node, Variable) and node.name not in names:
                names.append(node.name)
        return tuple(names)

    def __str__(self) -> str:
        return f"FILTER({self.left} {self.operator} {self.right})"


# =============================================================================
# Query Elements
# =============================================================================

class ElementType(Enum):
    """Discriminator of query elements."""
    GRAPH_PATTERN = "graph_pattern"
    GRAPH_QUERY = "graph_query"


@dataclass(frozen=True)
class GraphPattern:
    """A conjunction of triple patterns constrained by filters."""
    triple_patterns: Tuple[TriplePattern, ...] = ()
    filters: Tuple[NodeFilter, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "triple_patterns", tuple(self.triple_patterns))
        object.__setattr__(self, "filters", tuple(self.filters))

    @property
    def element_type(self) -> ElementType:
        return ElementType.GRAPH_PATTERN

    def variables(self) -> set:
        names = set()
        for tp in self.triple_patterns:
            names |= tp.variables()
        return names

    def __str__(self) -> str:
        lines = [str(tp) for tp in self.triple_patterns]
        lines.extend(str(f) for f in self.filters)
        return "{ " + " ".join(lines) + " }"


@dataclass(frozen=True)
class GraphQuery:
    """
    A query made of required and optional elements.

    SELECT ... WHERE { required... OPTIONAL { optional... } }
    """
    required_elements: Tuple["QueryElement", ...] = ()
    optional_elements: Tuple["QueryElement", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "required_elements", tuple(self.required_elements))
        object.__setattr__(self, "optional_elements", tuple(self.optional_elements))

    @property
    def element_type(self) -> ElementType:
        return ElementType.GRAPH_QUERY

    def required(self) -> Tuple["QueryElement", ...]:
        return self.required_elements

    def optional(self) -> Tuple["QueryElement", ...]:
        return self.optional_elements

    def __str__(self) -> str:
        parts = [str(e) for e in self.required_elements]
        parts.extend(f"OPTIONAL {e}" for e in self.optional_elements)
        return "{ " + " ".join(parts) + " }"


QueryElement = Union[GraphPattern, GraphQuery]


def graph_query(
    required: Iterable[QueryElement] = (),
    optional: Iterable[QueryElement] = (),
) -> GraphQuery:
    """Convenience constructor accepting any iterables."""
    return GraphQuery(tuple(required), tuple(optional))
