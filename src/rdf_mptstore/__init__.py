"""
rdf-mptstore: Graph query to SQL compiler for Mapped Predicate Table stores.

Triples live in one two-column (s, o) table per predicate. Graph queries made
of triple patterns, filters and OPTIONAL branches are translated to SQL-92
joins over those tables.
"""

__version__ = "0.1.0"

from rdf_mptstore.errors import (
    MPTStoreError,
    ParseError,
    ParseErrorKind,
    QueryError,
    QueryErrorKind,
    ArgumentError,
    InternalError,
)
from rdf_mptstore.models import (
    IRIReference,
    PlainLiteral,
    LanguageLiteral,
    TypedLiteral,
    Variable,
    Triple,
    TriplePattern,
)
from rdf_mptstore.formats import (
    escape,
    unescape,
    parse_node,
    parse_triple,
    parse_ntriples,
)
from rdf_mptstore.sql import Dialect, TermFormat
from rdf_mptstore.storage import TableManager, MemoryTableManager
from rdf_mptstore.config import CompilerConfig, ConfigValidationError, load_config
from rdf_mptstore.query import (
    GraphPattern,
    GraphQuery,
    NodeFilter,
    GraphQuerySQLProvider,
    parse_query,
    compile_query,
)

__all__ = [
    # Errors
    "MPTStoreError",
    "ParseError",
    "ParseErrorKind",
    "QueryError",
    "QueryErrorKind",
    "ArgumentError",
    "InternalError",
    # Values
    "IRIReference",
    "PlainLiteral",
    "LanguageLiteral",
    "TypedLiteral",
    "Variable",
    "Triple",
    "TriplePattern",
    # N-Triples
    "escape",
    "unescape",
    "parse_node",
    "parse_triple",
    "parse_ntriples",
    # Compiler
    "Dialect",
    "TermFormat",
    "TableManager",
    "MemoryTableManager",
    "CompilerConfig",
    "ConfigValidationError",
    "load_config",
    "GraphPattern",
    "GraphQuery",
    "NodeFilter",
    "GraphQuerySQLProvider",
    "parse_query",
    "compile_query",
]
