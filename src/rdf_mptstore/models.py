"""
RDF value model.

Nodes are a tagged union:

    Node        = IRIReference | PlainLiteral | LanguageLiteral | TypedLiteral
    NodePattern = Node | Variable

Triples hold concrete nodes only; triple patterns also accept variables.
All classes are immutable and compare structurally.
"""

from dataclasses import dataclass
import re
from typing import Iterator, Union

from rdf_mptstore.errors import ArgumentError
from rdf_mptstore.escaping import escape


_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_BAD_URI_CHARS = frozenset(' <>"{}|\\^`')
_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def is_absolute_uri(value: str) -> bool:
    """
    Check that a string is a syntactically valid absolute URI.

    An absolute URI has a scheme followed by a non-empty scheme-specific
    part, contains no whitespace, control or excluded delimiter characters,
    and uses only well-formed percent escapes.
    """
    match = _SCHEME.match(value)
    if match is None or match.end() == len(value):
        return False
    for c in value:
        if c in _BAD_URI_CHARS or ord(c) < 0x20 or ord(c) == 0x7F:
            return False
    return _PERCENT.search(value) is None


# =============================================================================
# Nodes
# =============================================================================

@dataclass(frozen=True)
class IRIReference:
    """An absolute IRI, e.g. <http://xmlns.com/foaf/0.1/name>."""
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not is_absolute_uri(self.value):
            raise ArgumentError(f"Not an absolute URI: {self.value!r}")

    def to_ntriples(self) -> str:
        return f"<{self.value}>"

    def __str__(self) -> str:
        return self.to_ntriples()


@dataclass(frozen=True)
class PlainLiteral:
    """A literal with neither datatype nor language tag."""
    lexical: str

    def to_ntriples(self) -> str:
        return f'"{escape(self.lexical)}"'

    def __str__(self) -> str:
        return self.to_ntriples()


@dataclass(frozen=True, eq=False)
class LanguageLiteral:
    """
    A language-tagged literal, e.g. "chat"@fr.

    The tag keeps its original case but compares case-insensitively.
    """
    lexical: str
    language: str

    def __post_init__(self):
        if not self.language:
            raise ArgumentError("Language tag must not be empty")

    def __eq__(self, other) -> bool:
        if not isinstance(other, LanguageLiteral):
            return NotImplemented
        return (
            self.lexical == other.lexical
            and self.language.lower() == other.language.lower()
        )

    def __hash__(self) -> int:
        return hash((LanguageLiteral, self.lexical, self.language.lower()))

    def to_ntriples(self) -> str:
        return f'"{escape(self.lexical)}"@{self.language}'

    def __str__(self) -> str:
        return self.to_ntriples()


@dataclass(frozen=True)
class TypedLiteral:
    """A literal with a datatype IRI, e.g. "3"^^xsd:integer."""
    lexical: str
    datatype: IRIReference

    def __post_init__(self):
        if not isinstance(self.datatype, IRIReference):
            raise ArgumentError(
                f"Datatype must be an IRIReference, got {type(self.datatype).__name__}"
            )

    def to_ntriples(self) -> str:
        return f'"{escape(self.lexical)}"^^{self.datatype.to_ntriples()}'

    def __str__(self) -> str:
        return self.to_ntriples()


@dataclass(frozen=True)
class Variable:
    """A query variable, written ?name."""
    name: str

    def __post_init__(self):
        if not self.name:
            raise ArgumentError("Variable name must not be empty")

    def __str__(self) -> str:
        return f"?{self.name}"


Literal = Union[PlainLiteral, LanguageLiteral, TypedLiteral]
Node = Union[IRIReference, PlainLiteral, LanguageLiteral, TypedLiteral]
NodePattern = Union[Node, Variable]

LITERAL_TYPES = (PlainLiteral, LanguageLiteral, TypedLiteral)
NODE_TYPES = (IRIReference,) + LITERAL_TYPES


def is_variable(node: NodePattern) -> bool:
    return isinstance(node, Variable)


def is_literal(node: NodePattern) -> bool:
    return isinstance(node, LITERAL_TYPES)


def lexical_value(node: Node) -> str:
    """The bare value of a node: the IRI text or the literal's lexical form."""
    if isinstance(node, IRIReference):
        return node.value
    return node.lexical


# =============================================================================
# Triples
# =============================================================================

def _check_position(name: str, node, allow_variables: bool) -> None:
    allowed = NODE_TYPES + ((Variable,) if allow_variables else ())
    if not isinstance(node, allowed):
        raise ArgumentError(f"Invalid {name}: {node!r}")


@dataclass(frozen=True)
class TriplePattern:
    """
    A triple whose positions may each be a concrete node or a variable.

    The predicate may never be a literal.
    """
    subject: NodePattern
    predicate: NodePattern
    object: NodePattern

    def __post_init__(self):
        _check_position("subject", self.subject, True)
        _check_position("predicate", self.predicate, True)
        _check_position("object", self.object, True)
        if is_literal(self.predicate):
            raise ArgumentError(f"Predicate must not be a literal: {self.predicate}")

    def __iter__(self) -> Iterator[NodePattern]:
        return iter((self.subject, self.predicate, self.object))

    def variables(self) -> set:
        """Return the names of all variables in this pattern."""
        return {n.name for n in self if isinstance(n, Variable)}

    def __str__(self) -> str:
        return f"{self.subject} {self.predicate} {self.object} ."


@dataclass(frozen=True)
class Triple(TriplePattern):
    """A concrete triple; no position may be a variable."""

    def __post_init__(self):
        _check_position("subject", self.subject, False)
        _check_position("predicate", self.predicate, False)
        _check_position("object", self.object, False)
        if not isinstance(self.predicate, IRIReference):
            raise ArgumentError(f"Predicate must be an IRI: {self.predicate}")

    def to_ntriples(self) -> str:
        return (
            f"{self.subject.to_ntriples()} {self.predicate.to_ntriples()} "
            f"{self.object.to_ntriples()} ."
        )
