"""SQL rendering helpers."""

from rdf_mptstore.sql.dialect import (
    Dialect,
    TermFormat,
    quoted_string,
    quoted_node,
    node_text,
)

__all__ = [
    "Dialect",
    "TermFormat",
    "quoted_string",
    "quoted_node",
    "node_text",
]
