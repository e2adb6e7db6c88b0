"""
Tests for the N-Triples codec.

Covers nodes, single statements and whole documents, including the offsets
reported for malformed input.
"""

from io import StringIO

import pytest

from rdf_mptstore.errors import ParseError, ParseErrorKind
from rdf_mptstore.formats import (
    parse_iri,
    parse_literal,
    parse_node,
    parse_ntriples,
    parse_triple,
    serialize_ntriples,
)
from rdf_mptstore.models import (
    IRIReference,
    LanguageLiteral,
    PlainLiteral,
    Triple,
    TypedLiteral,
)

XSD_DOUBLE = "http://www.w3.org/2001/XMLSchema#double"
S = "<http://ex.org/s>"
P = "<http://ex.org/p>"


def _error(func, text) -> ParseError:
    with pytest.raises(ParseError) as exc:
        func(text)
    assert 0 <= exc.value.offset < max(len(text), 1)
    return exc.value


class TestParseIRI:

    def test_valid(self):
        assert parse_iri("<http://example.org/a>") == IRIReference("http://example.org/a")

    def test_missing_open_angle(self):
        err = _error(parse_iri, "http://x")
        assert err.kind is ParseErrorKind.EXPECTED_OPEN_ANGLE
        assert err.offset == 0

    def test_missing_close_angle(self):
        err = _error(parse_iri, "<http://x")
        assert err.kind is ParseErrorKind.EXPECTED_CLOSE_ANGLE
        assert err.offset == 8

    @pytest.mark.parametrize("text", ["<relative/path>", "<>", "<http://a b>"])
    def test_not_absolute(self, text):
        err = _error(parse_iri, text)
        assert err.kind is ParseErrorKind.EXPECTED_ABSOLUTE_URI
        assert err.offset == 1


class TestParseLiteral:
    """Plain, language-tagged and typed literals."""

    def test_typed_literal(self):
        lit = parse_literal(f'"3.14"^^<{XSD_DOUBLE}>')
        assert lit == TypedLiteral("3.14", IRIReference(XSD_DOUBLE))

    def test_plain_literal(self):
        assert parse_literal('"hello"') == PlainLiteral("hello")

    def test_language_literal(self):
        lit = parse_literal('"chat"@fr')
        assert lit == LanguageLiteral("chat", "fr")
        assert lit == LanguageLiteral("chat", "FR")

    def test_escaped_quote_inside(self):
        assert parse_literal('"say \\"hi\\""') == PlainLiteral('say "hi"')

    def test_unicode_escape(self):
        assert parse_literal('"caf\\u00E9"') == PlainLiteral("café")

    def test_not_a_literal(self):
        err = _error(parse_literal, "abc")
        assert err.kind is ParseErrorKind.EXPECTED_QUOTE
        assert err.offset == 0

    def test_unterminated(self):
        err = _error(parse_literal, '"abc')
        assert err.kind is ParseErrorKind.EXPECTED_QUOTE
        assert err.offset == 3

    def test_trailing_garbage(self):
        err = _error(parse_literal, '"abc"x')
        assert err.kind is ParseErrorKind.EXPECTED_AT_CARET_OR_EOF
        assert err.offset == 5

    def test_empty_language(self):
        err = _error(parse_literal, '"abc"@')
        assert err.kind is ParseErrorKind.EXPECTED_LANGUAGE
        assert err.offset == 5

    def test_single_caret(self):
        err = _error(parse_literal, '"abc"^<http://x>')
        assert err.kind is ParseErrorKind.EXPECTED_CARET
        assert err.offset == 6

    def test_datatype_error_offset(self):
        err = _error(parse_literal, '"abc"^^<http://x')
        assert err.kind is ParseErrorKind.EXPECTED_CLOSE_ANGLE
        assert err.offset == 15

    def test_relative_datatype(self):
        err = _error(parse_literal, '"abc"^^<rel>')
        assert err.kind is ParseErrorKind.EXPECTED_ABSOLUTE_URI
        assert err.offset == 8

    def test_bad_escape_points_at_backslash(self):
        text = '"a\\qb"'
        err = _error(parse_literal, text)
        assert err.kind is ParseErrorKind.UNESCAPED_BACKSLASH
        assert text[err.offset] == "\\"

    def test_incomplete_escape(self):
        err = _error(parse_literal, '"\\u00"')
        assert err.kind is ParseErrorKind.INCOMPLETE_ESCAPE
        assert err.offset == 1

    def test_non_ascii(self):
        err = _error(parse_literal, '"é"')
        assert err.kind is ParseErrorKind.NON_ASCII_CHAR
        assert err.offset == 1


class TestParseNode:

    def test_dispatch(self):
        assert parse_node("<http://ex.org/a>") == IRIReference("http://ex.org/a")
        assert parse_node('"a"') == PlainLiteral("a")

    def test_neither(self):
        err = _error(parse_node, "_:b0")
        assert err.kind is ParseErrorKind.EXPECTED_QUOTE_OR_ANGLE


class TestParseTriple:
    """Single N-Triples statements."""

    def test_literal_object_with_spaces(self):
        triple = parse_triple(f'{S} {P} "hello world" .')
        assert triple == Triple(
            IRIReference("http://ex.org/s"),
            IRIReference("http://ex.org/p"),
            PlainLiteral("hello world"),
        )

    def test_tab_separated(self):
        triple = parse_triple(f"{S}\t{P}\t<http://ex.org/o>\t.")
        assert triple.object == IRIReference("http://ex.org/o")

    def test_missing_terminator(self):
        line = f"{S} {P} <http://ex.org/o>"
        err = _error(parse_triple, line)
        assert err.kind is ParseErrorKind.EXPECTED_TERMINATOR
        assert err.offset == len(line) - 1

    def test_literal_subject(self):
        err = _error(parse_triple, f'"s" {P} <http://ex.org/o> .')
        assert err.kind is ParseErrorKind.EXPECTED_OPEN_ANGLE
        assert err.offset == 0

    def test_missing_separator(self):
        err = _error(parse_triple, f"{S} .")
        assert err.kind is ParseErrorKind.EXPECTED_SPACE_OR_TAB

    def test_predicate_error_is_rebased(self):
        err = _error(parse_triple, f"{S} p <http://ex.org/o> .")
        assert err.kind is ParseErrorKind.EXPECTED_OPEN_ANGLE
        assert err.offset == len(S) + 1

    def test_object_error_is_rebased(self):
        line = f'{S} {P} "abc .'
        err = _error(parse_triple, line)
        assert err.kind is ParseErrorKind.EXPECTED_QUOTE
        assert line[err.offset] == "c"

    def test_serialized_triple_parses_back(self):
        triple = Triple(
            IRIReference("http://ex.org/s"),
            IRIReference("http://ex.org/p"),
            LanguageLiteral("línea\nnueva", "es"),
        )
        line = triple.to_ntriples()
        assert line.isascii()
        assert parse_triple(line) == triple


class TestParseDocument:
    """Multi-line N-Triples documents."""

    DOC = (
        "# people\n"
        f'{S} {P} "one" .\n'
        "\n"
        f"{S} {P} <http://ex.org/o> .\n"
    )

    def test_skips_comments_and_blank_lines(self):
        triples = list(parse_ntriples(self.DOC))
        assert len(triples) == 2
        assert triples[0].object == PlainLiteral("one")

    def test_string_io_and_path(self, tmp_path):
        path = tmp_path / "data.nt"
        path.write_text(self.DOC, encoding="utf-8")
        assert list(parse_ntriples(path)) == list(parse_ntriples(StringIO(self.DOC)))

    def test_error_reports_line(self):
        doc = self.DOC + f"{S} {P} broken .\n"
        with pytest.raises(ParseError) as exc:
            list(parse_ntriples(doc))
        assert exc.value.line == 5
        assert exc.value.kind is ParseErrorKind.EXPECTED_QUOTE_OR_ANGLE

    def test_serialize_document(self):
        triples = list(parse_ntriples(self.DOC))
        text = serialize_ntriples(triples)
        assert text.count("\n") == 2
        assert list(parse_ntriples(text)) == triples
