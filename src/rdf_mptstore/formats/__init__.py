"""
RDF Format Codecs.

Supports:
- N-Triples (.nt) lexical forms for IRIs, literals and triples
"""

from rdf_mptstore.escaping import escape, unescape
from rdf_mptstore.formats.ntriples import (
    parse_iri,
    parse_literal,
    parse_node,
    parse_triple,
    parse_ntriples,
    serialize_triple,
    serialize_ntriples,
)

__all__ = [
    "escape",
    "unescape",
    "parse_iri",
    "parse_literal",
    "parse_node",
    "parse_triple",
    "parse_ntriples",
    "serialize_triple",
    "serialize_ntriples",
]
