"""
Dialect-aware SQL string utilities.

Databases disagree on whether a backslash inside a string literal is an
escape character. Postgres and MySQL treat it as one; Derby, H2 and Oracle
do not.
"""

from enum import Enum

from rdf_mptstore.errors import InternalError
from rdf_mptstore.models import IRIReference, LITERAL_TYPES, Node, lexical_value
from rdf_mptstore.escaping import escape


class Dialect(str, Enum):
    """Supported SQL dialects."""
    DERBY = "derby"
    H2 = "h2"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    ORACLE = "oracle"

    @property
    def backslash_escape(self) -> bool:
        return _BACKSLASH_ESCAPE[self]


_BACKSLASH_ESCAPE = {
    Dialect.DERBY: False,
    Dialect.H2: False,
    Dialect.POSTGRES: True,
    Dialect.MYSQL: True,
    Dialect.ORACLE: False,
}


class TermFormat(str, Enum):
    """How constant RDF nodes are written into SQL string literals."""
    LEXICAL = "lexical"      # bare IRI / escaped lexical form
    NTRIPLES = "ntriples"    # full N-Triples form, e.g. "5"^^<...>


def quoted_string(s: str, backslash_escape: bool) -> str:
    """
    Quote a string as an SQL-92 string literal.

    Args:
        s: Raw string
        backslash_escape: Whether the target database treats backslash as
            an escape character

    Returns:
        The string wrapped in single quotes with embedded quotes doubled
    """
    s = s.replace("'", "''")
    if backslash_escape:
        s = s.replace("\\", "\\\\")
    return f"'{s}'"


def node_text(node: Node, term_format: TermFormat = TermFormat.LEXICAL) -> str:
    """Canonical ASCII text of a constant node, as stored in MPT columns."""
    if term_format is TermFormat.NTRIPLES:
        return node.to_ntriples()
    if isinstance(node, IRIReference):
        return node.value
    if isinstance(node, LITERAL_TYPES):
        return escape(lexical_value(node))
    raise InternalError(f"Unexpected node type {type(node).__name__}")


def quoted_node(
    node: Node,
    backslash_escape: bool,
    term_format: TermFormat = TermFormat.LEXICAL,
) -> str:
    return quoted_string(node_text(node, term_format), backslash_escape)
