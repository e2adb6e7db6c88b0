"""
Graph query compilation.

- ast: GraphQuery, GraphPattern and NodeFilter
- mapping, binder, joins, planner: turning patterns into JOIN sequences
- provider: GraphQuerySQLProvider, the SQL entry point
- parser: a SPARQL-like text syntax for graph queries
"""

from rdf_mptstore.query.ast import (
    ElementType,
    GraphPattern,
    GraphQuery,
    NodeFilter,
    graph_query,
)
from rdf_mptstore.query.provider import EMPTY_RESULT_SQL, GraphQuerySQLProvider
from rdf_mptstore.query.parser import (
    GraphQueryParser,
    ParsedQuery,
    parse_query,
    compile_query,
)

__all__ = [
    "ElementType",
    "GraphPattern",
    "GraphQuery",
    "NodeFilter",
    "graph_query",
    "EMPTY_RESULT_SQL",
    "GraphQuerySQLProvider",
    "GraphQueryParser",
    "ParsedQuery",
    "parse_query",
    "compile_query",
]
