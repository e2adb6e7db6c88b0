"""
N-Triples Lexical Codec.

Parses and serializes the N-Triples forms of IRIs, literals and triples.

Grammar:
  triple   ::= subject ws predicate ws object ws? '.'
  iri      ::= '<' absoluteURI '>'
  literal  ::= '"' escaped '"' ( '@' language | '^^' iri )?
  ws       ::= ' ' | TAB

Every ParseError carries the offset of the offending character in the
string that was handed to the outermost parse call.

Reference: https://www.w3.org/TR/rdf-testcases/#ntriples
"""

from io import StringIO
from pathlib import Path
from typing import Iterator, Union

from rdf_mptstore.errors import ArgumentError, ParseError, ParseErrorKind
from rdf_mptstore.escaping import escape, unescape
from rdf_mptstore.models import (
    IRIReference,
    LanguageLiteral,
    Literal,
    Node,
    PlainLiteral,
    Triple,
    TypedLiteral,
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


def parse_iri(s: str) -> IRIReference:
    """
    Parse an IRI reference of the form <absolute-uri>.

    Raises:
        ParseError: EXPECTED_OPEN_ANGLE (0), EXPECTED_CLOSE_ANGLE (len - 1)
            or EXPECTED_ABSOLUTE_URI (1)
    """
    if not s or s[0] != "<":
        raise ParseError(ParseErrorKind.EXPECTED_OPEN_ANGLE, 0)
    if len(s) < 2 or s[-1] != ">":
        raise ParseError(ParseErrorKind.EXPECTED_CLOSE_ANGLE, len(s) - 1)
    try:
        return IRIReference(s[1:-1])
    except ArgumentError:
        raise ParseError(ParseErrorKind.EXPECTED_ABSOLUTE_URI, 1) from None


def parse_literal(s: str) -> Literal:
    """
    Parse an N-Triples literal.

    Args:
        s: e.g. '"chat"@fr', '"3"^^<http://www.w3.org/2001/XMLSchema#int>'

    Returns:
        PlainLiteral, LanguageLiteral or TypedLiteral with the unescaped
        lexical form

    Raises:
        ParseError: With an offset pointing into s
    """
    last = max(len(s) - 1, 0)
    if not s or s[0] != '"':
        raise ParseError(ParseErrorKind.EXPECTED_QUOTE, 0)

    # Copy the escaped content up to the first unescaped quote
    i = 1
    length = len(s)
    while True:
        if i >= length:
            raise ParseError(ParseErrorKind.EXPECTED_QUOTE, last)
        c = s[i]
        if c == '"':
            break
        if c == "\\":
            i += 1
            if i >= length:
                raise ParseError(ParseErrorKind.EXPECTED_QUOTE, last)
        i += 1

    close = i
    try:
        value = unescape(s[1:close])
    except ParseError as e:
        raise e.rebased(1) from None

    tail = close + 1
    if tail >= length:
        return PlainLiteral(value)

    c = s[tail]
    if c == "@":
        language = s[tail + 1:]
        if not language:
            raise ParseError(ParseErrorKind.EXPECTED_LANGUAGE, tail)
        return LanguageLiteral(value, language)
    if c == "^":
        if tail + 1 >= length or s[tail + 1] != "^":
            raise ParseError(ParseErrorKind.EXPECTED_CARET, min(tail + 1, last))
        start = tail + 2
        try:
            datatype = parse_iri(s[start:])
        except ParseError as e:
            raise e.rebased(start, limit=last) from None
        return TypedLiteral(value, datatype)

    raise ParseError(ParseErrorKind.EXPECTED_AT_CARET_OR_EOF, tail)


def parse_node(s: str) -> Node:
    """Parse either a literal or an IRI reference, by its first character."""
    if s.startswith('"'):
        return parse_literal(s)
    if s.startswith("<"):
        return parse_iri(s)
    raise ParseError(ParseErrorKind.EXPECTED_QUOTE_OR_ANGLE, 0)


def _first_whitespace(s: str, start: int = 0) -> int:
    space = s.find(" ", start)
    tab = s.find("\t", start)
    if space == -1:
        return tab
    if tab == -1:
        return space
    return min(space, tab)


def parse_triple(line: str) -> Triple:
    """
    Parse a single N-Triples statement.

    The subject ends at the first space or tab, the predicate (an IRI,
    which cannot contain whitespace) at the next one, and everything up to
    the terminating ' .' is the object.

    Raises:
        ParseError: With an offset into line
    """
    if len(line) < 2 or line[-1] != "." or line[-2] not in " \t":
        raise ParseError(ParseErrorKind.EXPECTED_TERMINATOR, max(len(line) - 1, 0))
    body = line[:-2].rstrip(" \t")

    subject_end = _first_whitespace(body)
    if subject_end == -1:
        raise ParseError(ParseErrorKind.EXPECTED_SPACE_OR_TAB, len(body))
    predicate_start = subject_end + 1
    predicate_end = _first_whitespace(body, predicate_start)
    if predicate_end == -1:
        raise ParseError(ParseErrorKind.EXPECTED_SPACE_OR_TAB, len(body))
    object_start = predicate_end + 1

    subject_text = body[:subject_end]
    if not subject_text.startswith("<"):
        raise ParseError(ParseErrorKind.EXPECTED_OPEN_ANGLE, 0)
    subject = parse_iri(subject_text)

    try:
        predicate = parse_iri(body[predicate_start:predicate_end])
    except ParseError as e:
        raise e.rebased(predicate_start) from None

    try:
        obj = parse_node(body[object_start:])
    except ParseError as e:
        raise e.rebased(object_start) from None

    return Triple(subject, predicate, obj)


def parse_ntriples(source: Union[str, Path, StringIO]) -> Iterator[Triple]:
    """
    Parse an N-Triples document.

    Blank lines and comment lines are skipped.

    Args:
        source: N-Triples content as string, file path, or StringIO

    Yields:
        Triple objects in document order

    Raises:
        ParseError: Tagged with the 1-based line number
    """
    if isinstance(source, Path):
        text = source.read_text(encoding="utf-8")
    elif isinstance(source, StringIO):
        text = source.read()
    else:
        text = source

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            yield parse_triple(line)
        except ParseError as e:
            raise e.at_line(number) from None


def serialize_triple(triple: Triple) -> str:
    return triple.to_ntriples()


def serialize_ntriples(triples) -> str:
    """Serialize triples to an N-Triples document, one statement per line."""
    return "".join(f"{serialize_triple(t)}\n" for t in triples)
